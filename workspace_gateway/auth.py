# Auth Authority - decides whether a workspace request may proceed

import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from flask import Request

from .config import AuthSettings

logger = logging.getLogger(__name__)


@dataclass
class Credentials:
    token: Optional[str] = None
    username: Optional[str] = None
    remote_addr: Optional[str] = None


@dataclass
class AuthResult:
    ok: bool
    reason: Optional[str] = None  # server-side only, never sent to callers
    username: Optional[str] = None


class AuthAuthority(Protocol):
    def authorize(self, credentials: Credentials) -> AuthResult:
        ...


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get('Authorization', '')
    scheme, _, value = header.partition(' ')
    if scheme.lower() == 'bearer' and value.strip():
        return value.strip()
    return None


def extract_credentials(request: Request) -> Credentials:
    """
    Collect credentials from a request

    The bearer header and the `token` query parameter are equivalent; the
    query form exists for direct-link downloads that cannot set headers.
    """
    return Credentials(
        token=_bearer_token(request) or request.args.get('token') or None,
        username=request.args.get('username') or None,
        remote_addr=request.remote_addr,
    )


def _matches(expected: Optional[str], given: Optional[str]) -> bool:
    if not expected or given is None:
        return False
    return hmac.compare_digest(expected.encode('utf-8'), given.encode('utf-8'))


class ConfiguredAuthority:
    """
    Auth authority backed by the gateway settings

    Modes:
    - none: every request is authorized
    - token: the shared token must match
    - password: username + password (sent as the token) must match a
      configured user; without a username the shared token is accepted
    """

    def __init__(self, settings: AuthSettings):
        self.settings = settings

    def authorize(self, credentials: Credentials) -> AuthResult:
        mode = self.settings.mode
        if mode == 'none':
            return AuthResult(ok=True, username=credentials.username)

        if mode == 'password' and credentials.username:
            expected = self.settings.users.get(credentials.username)
            if expected is None:
                return AuthResult(ok=False, reason='user_unknown')
            if not _matches(expected, credentials.token):
                return AuthResult(ok=False, reason='password_mismatch')
            return AuthResult(ok=True, username=credentials.username)

        if not self.settings.token:
            return AuthResult(ok=False, reason='auth_not_configured')
        if not credentials.token:
            return AuthResult(ok=False, reason='token_missing')
        if not _matches(self.settings.token, credentials.token):
            return AuthResult(ok=False, reason='token_mismatch')
        return AuthResult(ok=True, username=credentials.username)
