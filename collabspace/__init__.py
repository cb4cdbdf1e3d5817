import logging
import sys

from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager
from flask_socketio import SocketIO

# Initialize extensions
db = SQLAlchemy()
bcrypt = Bcrypt()
jwt = JWTManager()
socketio = SocketIO()

logger = logging.getLogger(__name__)


def create_app(config_object='collabspace.config.Config', mailer=None, publisher=None, oauth_client=None):
    """Build the Flask app.

    ``mailer``, ``publisher`` and ``oauth_client`` replace the clients that
    would otherwise be constructed from configuration.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    bcrypt.init_app(app)
    jwt.init_app(app)
    socketio.init_app(
        app,
        # an empty list would switch origin checks off, so fall back to same-origin only
        cors_allowed_origins=app.config['CORS_ORIGINS'] or None,
        message_queue=app.config.get('SOCKETIO_MESSAGE_QUEUE'),
    )

    from collabspace.services import build_services

    app.extensions['collabspace'] = build_services(
        app, db.session, mailer=mailer, publisher=publisher, oauth_client=oauth_client
    )

    # Create tables if they don't exist
    with app.app_context():
        from collabspace import models  # noqa: F401  (registers the tables)
        db.create_all()

    # Import and register Blueprints
    from collabspace.auth_routes import auth_bp
    from collabspace.profile_routes import profile_bp
    from collabspace.project_routes import project_bp
    from collabspace.chat_routes import chat_bp, register_socket_handlers
    from collabspace.notification_routes import notification_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(profile_bp, url_prefix='/api/profile')
    app.register_blueprint(project_bp, url_prefix='/api/projects')
    app.register_blueprint(chat_bp, url_prefix='/api/messages')
    app.register_blueprint(notification_bp, url_prefix='/api/notifications')
    register_socket_handlers(socketio)

    logger.info("Running in %s mode", 'debug' if app.debug else 'production')
    return app


def get_services(app=None):
    """Return the service registry built for ``app`` (the current app by default)."""
    return (app or current_app).extensions['collabspace']


def shutdown_services(app):
    """Release the external clients held by the app's services."""
    services = app.extensions.get('collabspace')
    if services is not None:
        services.close()


def configure_logging(app):
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-4s [%(name)s] : %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    package_logger = logging.getLogger('collabspace')
    package_logger.handlers = [handler]
    package_logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    package_logger.propagate = False
