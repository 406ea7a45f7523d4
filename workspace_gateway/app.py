# Main Flask application for the Workspace Gateway

from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify
from flask_cors import CORS

from .auth import AuthAuthority
from .config import Settings, load_settings
from .locator import WorkspaceLocator
from .routes import create_workspace_blueprint


def create_app(
    config: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
    authority: Optional[AuthAuthority] = None,
    locator: Optional[WorkspaceLocator] = None,
):
    """
    Create and configure the Flask application

    Args:
        config: Extra Flask config values
        settings: Gateway settings; loaded from file/environment if omitted
        authority: Override for the settings-backed auth authority
        locator: Override for the settings-backed workspace locator
    """
    app = Flask(__name__)

    # Enable CORS for frontend integration
    CORS(app)

    settings = settings or load_settings()
    app.config['MAX_CONTENT_LENGTH'] = settings.max_content_length
    app.config['GATEWAY_SETTINGS'] = settings

    # Load configuration if provided
    if config:
        app.config.update(config)

    workspace_bp = create_workspace_blueprint(settings, authority=authority, locator=locator)
    app.register_blueprint(workspace_bp)

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    @app.errorhandler(404)
    def not_found(error):
        return Response('Not Found', status=404, mimetype='text/plain')

    return app
