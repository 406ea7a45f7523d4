# API routes for the Workspace Gateway

import logging
from typing import Optional

from flask import Blueprint, Response, jsonify, request
from werkzeug.wsgi import wrap_file

from .auth import AuthAuthority, ConfiguredAuthority, extract_credentials
from .config import Settings
from .locator import WorkspaceLocator
from .serializers import content_disposition, file_entry_to_dict
from .workspace import (
    NotFoundError,
    UnauthorizedError,
    Workspace,
    WorkspaceError,
    WorkspaceIOError,
)
from .workspace.multipart import boundary_from_content_type
from .workspace.transfer import CHUNK_SIZE

logger = logging.getLogger(__name__)


def create_workspace_blueprint(
    settings: Settings,
    authority: Optional[AuthAuthority] = None,
    locator: Optional[WorkspaceLocator] = None,
):
    """
    Create the Flask blueprint serving /api/workspace

    Collaborators are fixed at construction; requests never reload
    configuration.

    Args:
        settings: Gateway settings
        authority: Auth decision maker (defaults to the settings-backed one)
        locator: Agent -> workspace root mapping (defaults to settings)
    """
    bp = Blueprint('workspace', __name__)

    authority = authority or ConfiguredAuthority(settings.auth)
    locator = locator or WorkspaceLocator(settings)

    def _ok():
        return jsonify({'ok': True})

    def _directory_param() -> str:
        return request.args.get('path', '')

    def _body_chunks():
        return iter(lambda: request.stream.read(CHUNK_SIZE), b'')

    def _open_workspace() -> Workspace:
        """Authorize the caller, then locate (and lazily create) its root"""
        credentials = extract_credentials(request)
        result = authority.authorize(credentials)
        if not result.ok:
            raise UnauthorizedError(f"{result.reason} from {credentials.remote_addr}")

        agent_id = request.args.get('agentId') or locator.default_agent_id()
        workspace = Workspace(locator.locate(agent_id))
        workspace.ensure_root()
        return workspace

    @bp.errorhandler(WorkspaceError)
    def handle_workspace_error(error: WorkspaceError):
        cause = error.__cause__
        if error.status_code >= 500:
            logger.error("%s %s failed: %s (cause: %r)", request.method, request.path, error, cause)
        else:
            logger.warning("%s %s rejected with %d: %s", request.method, request.path, error.status_code, error)

        if isinstance(error, NotFoundError):
            return Response(error.public_message, status=404, mimetype='text/plain')
        return jsonify(error.to_dict()), error.status_code

    @bp.errorhandler(OSError)
    def handle_os_error(error: OSError):
        logger.exception("%s %s: unexpected filesystem error", request.method, request.path)
        return jsonify(WorkspaceIOError().to_dict()), 500

    @bp.route('/api/workspace', methods=['GET'], strict_slashes=False)
    def list_workspace():
        """List the directory named by the `path` query parameter"""
        workspace = _open_workspace()
        entries = workspace.list(_directory_param())
        return jsonify([file_entry_to_dict(e) for e in entries])

    @bp.route('/api/workspace/upload', methods=['POST'])
    def upload_to_workspace():
        """Store every file part of a multipart body"""
        workspace = _open_workspace()
        boundary = boundary_from_content_type(request.headers.get('Content-Type'))
        workspace.upload(request.stream, boundary, _directory_param())
        return _ok()

    @bp.route('/api/workspace/text/<path:name>', methods=['GET'])
    def read_workspace_text(name: str):
        workspace = _open_workspace()
        content = workspace.read_text(name, _directory_param())
        return Response(content, content_type='text/plain; charset=utf-8')

    @bp.route('/api/workspace/text/<path:name>', methods=['PUT'])
    def write_workspace_text(name: str):
        """Overwrite a file with the raw request body (UTF-8)"""
        workspace = _open_workspace()
        workspace.write_text(
            name,
            _body_chunks(),
            _directory_param(),
            expected_size=request.content_length,
        )
        return _ok()

    @bp.route('/api/workspace/<path:name>', methods=['GET'])
    def download_from_workspace(name: str):
        """Stream a file as an attachment"""
        workspace = _open_workspace()
        handle = workspace.open_download(name, _directory_param())
        response = Response(
            wrap_file(request.environ, handle.file, buffer_size=CHUNK_SIZE),
            mimetype='application/octet-stream',
            direct_passthrough=True,
        )
        response.headers['Content-Disposition'] = content_disposition(handle.download_name)
        response.content_length = handle.size
        return response

    @bp.route('/api/workspace/<path:name>', methods=['DELETE'])
    def delete_from_workspace(name: str):
        """Delete a file or directory tree; missing targets succeed"""
        workspace = _open_workspace()
        workspace.delete(name, _directory_param())
        return _ok()

    return bp
