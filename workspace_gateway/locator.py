# Workspace Locator - maps an agent identity to its workspace root

import re
from pathlib import Path
from typing import Optional

from .config import Settings
from .workspace.errors import PathForbiddenError

AGENT_ID_PATTERN = re.compile(r'[A-Za-z0-9][A-Za-z0-9_.-]{0,63}')


class WorkspaceLocator:
    """
    Resolves workspace roots from settings

    Roots are `<workspace_base>/<agent_id>` unless the agent has an explicit
    entry in `agent_workspaces`. The locator never touches the filesystem;
    roots are created lazily by the workspace on first access.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def default_agent_id(self) -> str:
        return self.settings.default_agent_id or 'main'

    def locate(self, agent_id: Optional[str] = None) -> Path:
        agent_id = agent_id or self.default_agent_id()
        # Agent ids become directory names
        if not AGENT_ID_PATTERN.fullmatch(agent_id):
            raise PathForbiddenError(f"invalid agent id: {agent_id!r}")

        override = self.settings.agent_workspaces.get(agent_id)
        if override is not None:
            return Path(override).expanduser().absolute()
        return (Path(self.settings.workspace_base).expanduser() / agent_id).absolute()
