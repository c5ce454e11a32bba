"""
Environment-aware configuration.
Secrets, token lifetimes and hashing cost come from the environment (.env is
read if present) and are loaded once at process start. create_app freezes the
security subset into utils.security.SecuritySettings.
"""
import os
import tempfile
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    DATABASE_URL = os.getenv("DATABASE_URL")

    # Token signing: access and refresh tokens use separate secrets
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret-change-me")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret-change-me")
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "864000")))
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "yourtube-accounts")

    # Argon2 cost parameters, shared by every hash in the system
    PASSWORD_HASH_TIME_COST = int(os.getenv("PASSWORD_HASH_TIME_COST", "3"))
    PASSWORD_HASH_MEMORY_COST = int(os.getenv("PASSWORD_HASH_MEMORY_COST", "65536"))

    # Session cookies are always http-only
    COOKIE_SECURE = _flag("COOKIE_SECURE", "true")
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "Lax")

    MEDIA_ROOT = os.getenv("MEDIA_ROOT", os.path.abspath("media"))
    MEDIA_BASE_URL = os.getenv("MEDIA_BASE_URL", "/media")
    UPLOAD_TEMP_DIR = os.getenv("UPLOAD_TEMP_DIR", os.path.abspath(os.path.join("public", "temp")))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    ACCESS_TOKEN_SECRET = "test-access-secret"
    REFRESH_TOKEN_SECRET = "test-refresh-secret"
    # cheap hashes keep the suite fast
    PASSWORD_HASH_TIME_COST = 1
    PASSWORD_HASH_MEMORY_COST = 1024
    MEDIA_ROOT = os.path.join(tempfile.gettempdir(), "yourtube-test-media")
    UPLOAD_TEMP_DIR = os.path.join(tempfile.gettempdir(), "yourtube-test-uploads")


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
