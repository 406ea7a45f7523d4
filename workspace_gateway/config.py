"""
Gateway configuration

Settings are loaded once (from a YAML/JSON file with environment variable
substitution, or from environment defaults) and handed to the application
factory. Nothing below the factory reads the environment again.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

CONFIG_ENV_VAR = 'WORKSPACE_GATEWAY_CONFIG'


class AuthSettings(BaseModel):
    """Credentials accepted by the built-in auth authority"""
    mode: Literal['token', 'password', 'none'] = 'token'
    token: Optional[str] = None
    users: Dict[str, str] = Field(default_factory=dict)  # username -> password


class Settings(BaseModel):
    workspace_base: Path = Path('Runtime') / 'workspaces'
    default_agent_id: str = 'main'
    agent_workspaces: Dict[str, Path] = Field(default_factory=dict)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    log_level: str = 'INFO'
    max_content_length: Optional[int] = None  # bytes; None means unlimited

    @classmethod
    def from_env(cls) -> 'Settings':
        """Defaults overridden by well-known environment variables"""
        data: Dict[str, Any] = {
            'auth': {'token': os.getenv('WORKSPACE_GATEWAY_TOKEN')},
        }
        if os.getenv('WORKSPACE_BASE_DIR'):
            data['workspace_base'] = os.environ['WORKSPACE_BASE_DIR']
        if os.getenv('DEFAULT_AGENT_ID'):
            data['default_agent_id'] = os.environ['DEFAULT_AGENT_ID']
        if os.getenv('LOG_LEVEL'):
            data['log_level'] = os.environ['LOG_LEVEL']
        return cls.model_validate(data)


_PARSERS = {
    '.yaml': yaml.safe_load,
    '.yml': yaml.safe_load,
    '.json': json.load,
}


def _expand_env(value: Any) -> Any:
    # ${VAR} and $VAR inside any string value; unset variables stay as written
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    if isinstance(value, str):
        return os.path.expandvars(value)
    return value


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Parse a YAML/JSON settings file and expand environment variables"""
    path = Path(config_path)
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise ValueError(f"Unsupported configuration file format: {path.suffix}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            raw = parser(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Malformed configuration file {config_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")
    return _expand_env(raw)


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Build gateway settings

    Args:
        config_path: YAML/JSON file; falls back to $WORKSPACE_GATEWAY_CONFIG,
                     then to environment defaults

    Raises:
        FileNotFoundError: the named file does not exist
        ValueError: the file is malformed or fails validation
    """
    config_path = config_path or os.getenv(CONFIG_ENV_VAR)
    if not config_path:
        return Settings.from_env()

    raw = read_config_file(config_path)
    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid gateway configuration in {config_path}: {e}") from e
