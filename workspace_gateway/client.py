# HTTP API Client for the Workspace Gateway

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

GATEWAY_BASE_URL = os.getenv('WORKSPACE_GATEWAY_URL', 'http://localhost:5002')

FileSource = Union[str, Path, bytes]


class WorkspaceClientError(RuntimeError):
    """Raised when the gateway rejects a request or answers unexpectedly."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WorkspaceClient:
    """HTTP client for one agent's workspace"""

    def __init__(
        self,
        base_url: str = GATEWAY_BASE_URL,
        token: Optional[str] = None,
        username: Optional[str] = None,
        agent_id: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize API client

        Args:
            base_url: Base URL of the gateway
            token: Gateway token (or the user's password in password mode)
            username: Username for password mode
            agent_id: Workspace to address; the gateway default if None
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.username = username
        self.agent_id = agent_id
        self.timeout = timeout
        self.session = requests.Session()

    def _params(self, path: str = '') -> Dict[str, str]:
        # Auth travels as query parameters, the same way direct links do
        params = {'token': self.token or ''}
        if self.username:
            params['username'] = self.username
        if self.agent_id:
            params['agentId'] = self.agent_id
        if path:
            params['path'] = path
        return params

    def _url(self, endpoint: str, name: Optional[str] = None) -> str:
        url = f"{self.base_url}/api/workspace{endpoint}"
        if name is not None:
            url = f"{url}/{quote(name, safe='')}"
        return url

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self.session.request(method=method, url=url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error("API request failed: %s %s - %s", method, url, e)
            raise
        if not response.ok:
            raise WorkspaceClientError(
                f"{method} {url} failed with {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise WorkspaceClientError(
                f"Non-JSON response from gateway: {response.url}"
            ) from exc

    def list(self, path: str = '') -> List[Dict[str, Any]]:
        """List a directory; directories first, then by name"""
        response = self._request('GET', self._url(''), params=self._params(path))
        files = self._json(response)
        if not isinstance(files, list):
            raise WorkspaceClientError("Expected list from /api/workspace")
        return sorted(files, key=lambda f: (not f.get('isDirectory'), f.get('name', '')))

    def download(self, name: str, dest: Union[str, Path], path: str = '') -> Path:
        """Stream a file to `dest` without holding it in memory"""
        dest = Path(dest)
        response = self._request('GET', self._url('', name), params=self._params(path), stream=True)
        with response, open(dest, 'wb') as f:
            for chunk in response.iter_content(chunk_size=64 * 1024):
                f.write(chunk)
        return dest

    def read_text(self, name: str, path: str = '') -> str:
        response = self._request('GET', self._url('/text', name), params=self._params(path))
        response.encoding = 'utf-8'
        return response.text

    def write_text(self, name: str, content: str, path: str = '') -> Dict[str, Any]:
        response = self._request(
            'PUT',
            self._url('/text', name),
            params=self._params(path),
            data=content.encode('utf-8'),
            headers={'Content-Type': 'text/plain; charset=utf-8'},
        )
        return self._json(response)

    def delete(self, name: str, path: str = '') -> Dict[str, Any]:
        response = self._request('DELETE', self._url('', name), params=self._params(path))
        return self._json(response)

    def upload(self, files: Mapping[str, FileSource], path: str = '') -> Dict[str, Any]:
        """
        Upload several files in one multipart request

        Args:
            files: Upload name -> local path or raw bytes
            path: Target directory inside the workspace
        """
        handles = []
        parts = []
        try:
            for filename, source in files.items():
                if isinstance(source, bytes):
                    payload = source
                else:
                    payload = open(source, 'rb')
                    handles.append(payload)
                parts.append(('files', (filename, payload, 'application/octet-stream')))
            response = self._request('POST', self._url('/upload'), params=self._params(path), files=parts)
        finally:
            for handle in handles:
                handle.close()
        return self._json(response)
