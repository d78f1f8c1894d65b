"""Routes package - register all blueprints."""

from flask import Flask


def register_blueprints(app: Flask):
    """Register all blueprints with the application."""
    from .api import api_bp
    
    app.register_blueprint(api_bp, url_prefix='/api')
