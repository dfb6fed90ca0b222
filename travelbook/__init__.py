"""
Travelbook Admin Platform
Flask application factory
"""
import os
import logging
from flask import Flask
from flask_cors import CORS

from .extensions import db, migrate
from .config import get_config, validate_config
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(config_name: str = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Setup logging before anything else
    setup_logging()

    validate_config(config_name)

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    from .utils.cache import cache, init_cache
    init_cache(app)

    CORS(
        app,
        origins=app.config['CORS_ORIGINS'],
        supports_credentials=True,
        allow_headers=['Content-Type', 'Authorization'],
    )

    # Reward configuration store, handed to handlers via app.extensions
    from .services.reward_config_service import build_reward_config_store
    app.extensions['reward_config_store'] = build_reward_config_store(app, db.session, cache)

    # Redirect rules for the admin area
    from .middleware import init_access_gate
    init_access_gate(app)

    register_blueprints(app)

    from .commands import init_app as init_commands
    init_commands(app)

    register_error_handlers(app)

    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'travelbook'}

    logger.info('Travelbook app created (config=%s)', config_name)
    return app


def register_blueprints(app: Flask) -> None:
    """Register all blueprints."""
    from .api.rewards import rewards_bp
    from .api.admin import admin_bp

    # Rewards program (configuration + calculations)
    app.register_blueprint(rewards_bp, url_prefix='/api/rewards')

    # Admin pages (behind the access gate)
    app.register_blueprint(admin_bp, url_prefix='/admin')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from .utils.errors import (
        ErrorCode,
        bad_request,
        error_response,
        internal_error,
        not_found,
        validation_failed,
    )
    from .utils.exceptions import (
        PersistenceError,
        RewardConfigValidationError,
        TravelbookError,
        ValidationError,
    )

    @app.errorhandler(400)
    def handle_bad_request(error):
        return bad_request('Bad request')

    @app.errorhandler(404)
    def handle_not_found(error):
        return not_found('Not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('Method not allowed', ErrorCode.METHOD_NOT_ALLOWED, 405, log_error=False)

    @app.errorhandler(500)
    def handle_internal_error(error):
        return internal_error('Internal server error')

    @app.errorhandler(TravelbookError)
    def travelbook_error(error):
        if isinstance(error, RewardConfigValidationError):
            return validation_failed(error.message, error.errors)
        if isinstance(error, ValidationError):
            return error_response(error.message, ErrorCode.VALIDATION_ERROR, 400, log_error=False)
        if isinstance(error, PersistenceError):
            return error_response(error.message, ErrorCode.DATABASE_ERROR, 503)
        return error_response(error.message, ErrorCode.INTERNAL_ERROR, 500)
