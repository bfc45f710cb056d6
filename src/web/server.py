#!/usr/bin/python3

""" Web server for wordlens. """

from typing import Optional

from flask import Flask
from flask_compress import Compress
from flask_cors import CORS
from waitress import serve

import constants

from common.base.logging_config import get_logger
from common.config.language_config import init_language_manager
from common.config.lookup_config import init_lookup_config
from common.services.wiktionary import init_wiktionary_service
from common.storage import init_store
from wordlens.pipeline import DictionarySource, LexicalResolver
from web.blueprints.lookup import EXTENSION_KEY, LookupState
from web.blueprints.metrics import observe_source_request

logger = get_logger(__name__)

def create_app(testing: bool = False, source: Optional[DictionarySource] = None,
               store_path: Optional[str] = None) -> Flask:
    """
    Create and configure Flask application instance.

    :param testing: Whether to configure app for testing
    :param source: Dictionary source to resolve against; defaults to the Wiktionary service
    :param store_path: Path of the settings and saved-words store
    :return: Configured Flask app
    """
    # Initialize system state before creating app
    if testing:
        constants.init_testing()

    # For production, initialization should already be done by launch.py
    if not constants.INITIALIZED:
        raise RuntimeError("System not initialized. In production, launch.py must initialize the system.")

    app = Flask(__name__)
    app.config['TESTING'] = testing
    app.json.ensure_ascii = False

    # Host pages and the browser extension call the API cross-origin
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # Entries carry whole inflection tables; compress them
    Compress(app)

    # Initialize managers
    languages = init_language_manager()
    config = init_lookup_config()
    store = init_store(store_path)

    if source is None:
        source = init_wiktionary_service(config.source, on_request=observe_source_request)
        logger.info(f"Dictionary source: {config.source.api_url}")

    resolver = LexicalResolver(source, languages, config.pipeline, config.source)
    app.extensions[EXTENSION_KEY] = LookupState(resolver, languages, store, config)

    # Request logging (skip for testing)
    if not testing:
        from common.base.request_logger import RequestLogger
        RequestLogger(app, log_dir=constants.REQUEST_LOG_DIR)

    from web.blueprints.metrics import metrics_bp, setup_request_metrics
    app.register_blueprint(metrics_bp)
    setup_request_metrics(app)

    from web.blueprints.lookup import lookup_bp
    app.register_blueprint(lookup_bp)

    from web.blueprints.errors import errors_bp
    app.register_blueprint(errors_bp)

    return app

# The app instance will be created when needed
app = None

def get_app():
    """Get or create the Flask application instance."""
    global app
    if app is None:
        app = create_app()
    return app

def run_server(host: str = '0.0.0.0', port: int = 5000, debug: bool = False) -> None:
    """Run the lookup server."""
    logger.info(f"Starting wordlens server on {host}:{port}")

    if debug:
        # Use Flask's built-in development server for debug mode
        app = get_app()
        app.config['DEBUG'] = True
        app.run(host=host, port=port, debug=True)
    else:
        # Lookups can take several sequential source requests
        serve(
            get_app(),
            host=host,
            port=port,
            channel_timeout=60,
            cleanup_interval=30,
            connection_limit=100
        )
