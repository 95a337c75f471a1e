# CORS configuration
import logging

from flask import request
from flask_cors import CORS

logger = logging.getLogger(__name__)


def configure_cors(app):
    # Public read-only API: any origin, no credentials
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "OPTIONS"],
            "allow_headers": ["Content-Type"],
        }
    }, supports_credentials=False)

    # CORS logging
    @app.after_request
    def log_cors(response):
        origin = request.headers.get('Origin')
        if origin:
            logger.debug(f"CORS - Origin: {origin} Method: {request.method} Response: {response.status_code}")
        return response

    return app
