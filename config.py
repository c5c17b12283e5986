import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.environ.get("AUTHGATE_CONFIG", os.path.join(ROOT_PATH, "env.yaml"))

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./authgate.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    # No default: a missing secret is fatal at startup
    JWT_SECRET = os.environ.get("JWT_SECRET", data.get("JWT_SECRET"))
    ACCESS_TTL_MIN = int(data.get("ACCESS_TTL_MIN", 15))
    REFRESH_TTL_HOURS = int(data.get("REFRESH_TTL_HOURS", 24))
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))
    SESSION_WRITE_RETRIES = int(data.get("SESSION_WRITE_RETRIES", 3))
    STORE_TIMEOUT_SECONDS = float(data.get("STORE_TIMEOUT_SECONDS", 5))
    EMAIL_VERIFICATION_TTL_HOURS = int(data.get("EMAIL_VERIFICATION_TTL_HOURS", 24))
    PUBLIC_BASE_URL = data.get("PUBLIC_BASE_URL", "http://localhost:8000")
    COOKIE_SECURE = bool(data.get("COOKIE_SECURE", False))
