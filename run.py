import logging
import os

from flask_cors import CORS

from collabspace import create_app, shutdown_services, socketio

logger = logging.getLogger('collabspace.run')

# Create Flask app instance
app = create_app()

# Dynamically configure CORS
CORS(app, resources={
    r"/api/*": {
        "origins": app.config['CORS_ORIGINS'],
        "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        "allow_headers": ["Authorization", "Content-Type"],
        "expose_headers": ["Authorization"],
        "supports_credentials": True,
    }
})

logger.info("Running in %s mode", 'production' if os.getenv('FLASK_ENV') == 'production' else 'development')
logger.info("Allowed CORS Origins: %s", app.config['CORS_ORIGINS'])

if __name__ == '__main__':
    debug_mode = app.config['DEBUG']
    logger.info("Debug mode is %s", 'on' if debug_mode else 'off')
    try:
        socketio.run(app, debug=debug_mode, host="0.0.0.0", port=5000)
    finally:
        shutdown_services(app)
