#!/usr/bin/env python3
# Entry point for running the Workspace Gateway server

import logging
import os

from workspace_gateway import create_app, load_settings

if __name__ == '__main__':
    settings = load_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    app = create_app(settings=settings)
    # One thread per request: blocking disk I/O never stalls other callers
    app.run(
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', '5002')),
        threaded=True,
    )
