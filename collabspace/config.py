import os
from datetime import timedelta

from dotenv import load_dotenv

# Load environment variables from .env (only for local development)
if os.getenv("FLASK_ENV") != "production":
    load_dotenv()


def _split_csv(value):
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Config:
    """Base configuration."""

    # General settings
    SECRET_KEY = os.getenv("SECRET_KEY", "default-secret-key")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///collabspace.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "default-jwt-secret-key")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=int(os.getenv("JWT_ACCESS_DAYS", "7")))
    JWT_TOKEN_LOCATION = ["headers", "cookies"]

    BCRYPT_LOG_ROUNDS = int(os.getenv("BCRYPT_LOG_ROUNDS", "12"))

    # AWS SES configuration (email delivery)
    AWS_ACCESS_KEY = os.getenv("AWS_ACCESS_KEY")
    AWS_SECRET_KEY = os.getenv("AWS_SECRET_KEY")
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
    EMAIL_FROM = os.getenv("EMAIL_FROM", "CollabSpace <noreply@collabspace.dev>")
    MAIL_ENABLED = os.getenv("MAIL_ENABLED", "true").lower() == "true"

    # Public URLs
    APP_URL = os.getenv("APP_URL", "http://localhost:3000")
    FRONTEND_URL = os.getenv("FRONTEND_URL", APP_URL)
    BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:5000")

    # Google OAuth
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")

    # Socket.IO; set a redis:// URL to share chat channels between processes
    SOCKETIO_MESSAGE_QUEUE = os.getenv("SOCKETIO_MESSAGE_QUEUE")

    # CORS configuration
    CORS_ORIGINS = _split_csv(os.getenv("CORS_ORIGINS", "http://localhost:3000"))

    # Debug mode
    DEBUG = os.getenv("FLASK_ENV") != "production"


class TestConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length-for-hs256"
    BCRYPT_LOG_ROUNDS = 4
    MAIL_ENABLED = False
    GOOGLE_CLIENT_ID = "test-client-id"
    GOOGLE_CLIENT_SECRET = "test-client-secret"
    SOCKETIO_MESSAGE_QUEUE = None
