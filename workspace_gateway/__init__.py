# Workspace Gateway - sandboxed per-agent file access over HTTP

from .app import create_app
from .config import Settings, load_settings

__all__ = ['create_app', 'Settings', 'load_settings']
