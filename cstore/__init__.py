"""Flask application factory."""

import os
from flask import Flask, jsonify
from .config import config
from .extensions import db, migrate


def create_app(config_name=None):
    """Create and configure the Flask application."""
    if config_name is None:
        config_name = os.environ.get('FLASK_CONFIG', 'development')
    
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    
    # Logging
    from .utils.logger import configure_logging
    configure_logging(app.config['LOG_LEVEL'])
    
    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    
    # Register blueprints
    from .routes import register_blueprints
    register_blueprints(app)
    
    # Error handlers
    from .errors import PricingError
    
    @app.errorhandler(PricingError)
    def pricing_error(error):
        return jsonify(error.to_dict()), error.status_code
    
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'NotFound', 'message': 'Resource not found'}), 404
    
    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'error': 'InternalServerError', 'message': 'Internal server error'}), 500
    
    return app
