# Workspace Errors - failure taxonomy shared by every workspace component

from typing import Any, Dict, Optional


class WorkspaceError(Exception):
    """
    Base class for failures surfaced to HTTP callers

    `public_message` is what the caller sees; the exception's own message
    (and its __cause__) is for server-side logs only.
    """

    status_code = 500
    public_message = "Workspace operation failed"

    def __init__(self, message: str = "", public_message: Optional[str] = None):
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.public_message}


class UnauthorizedError(WorkspaceError):
    status_code = 401
    public_message = "Unauthorized"


class PathForbiddenError(WorkspaceError):
    # Never carries the attempted path in the public message
    status_code = 403
    public_message = "Forbidden"


class NotFoundError(WorkspaceError):
    status_code = 404
    public_message = "Not Found"


class BadRequestError(WorkspaceError):
    status_code = 400
    public_message = "Bad Request"

    def __init__(self, message: str = ""):
        # Framing problems are safe to echo back
        super().__init__(message, public_message=message or None)


class WorkspaceIOError(WorkspaceError):
    status_code = 500
