import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./sso.db")
    API_PREFIX = data.get("API_PREFIX", "/api/v1")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Token issuer
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_KEY_ID = data.get("JWT_KEY_ID", "k1")
    JWT_PREVIOUS_SECRET = data.get("JWT_PREVIOUS_SECRET", "")
    JWT_PREVIOUS_KEY_ID = data.get("JWT_PREVIOUS_KEY_ID", "k0")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    JWT_KEY_GRACE_SECONDS = int(data.get("JWT_KEY_GRACE_SECONDS", 86400))
    ACCESS_TOKEN_TTL_SECONDS = int(data.get("ACCESS_TOKEN_TTL_SECONDS", 3600))
    REFRESH_TOKEN_TTL_DAYS = int(data.get("REFRESH_TOKEN_TTL_DAYS", 30))
    TRUSTED_DEVICE_TTL_DAYS = int(data.get("TRUSTED_DEVICE_TTL_DAYS", 90))
    PROPAGATION_PAYLOAD_TTL_SECONDS = int(
        data.get("PROPAGATION_PAYLOAD_TTL_SECONDS", 120)
    )

    # Validation consults the session store so logout revokes live access tokens
    VALIDATE_CHECKS_REVOCATION = bool(data.get("VALIDATE_CHECKS_REVOCATION", True))

    # Cross-domain propagation
    PROPAGATION_MODE = data.get("PROPAGATION_MODE", "relay")  # relay | http
    PROPAGATION_TIMEOUT_SECONDS = float(data.get("PROPAGATION_TIMEOUT_SECONDS", 3))
    PROPAGATION_MAX_CONCURRENCY = int(data.get("PROPAGATION_MAX_CONCURRENCY", 8))
    PROPAGATION_ACK_DEADLINE_SECONDS = int(
        data.get("PROPAGATION_ACK_DEADLINE_SECONDS", 30)
    )
    DEFAULT_SET_COOKIE_PATH = data.get("DEFAULT_SET_COOKIE_PATH", "/sso/cookies")
    DEFAULT_CLEAR_COOKIE_PATH = data.get(
        "DEFAULT_CLEAR_COOKIE_PATH", "/sso/cookies/clear"
    )

    # Browser flow
    LOGIN_PAGE_URL = data.get("LOGIN_PAGE_URL", "http://localhost:3000/login")
    SSO_COOKIE_NAME = data.get("SSO_COOKIE_NAME", "sso_session")
    SSO_COOKIE_SECURE = bool(data.get("SSO_COOKIE_SECURE", True))
    REFRESH_COOKIE_NAME = data.get("REFRESH_COOKIE_NAME", "refresh_token")
    TRUSTED_DEVICE_COOKIE_NAME = data.get("TRUSTED_DEVICE_COOKIE_NAME", "trusted_device")

    # Background timers (0 disables)
    SESSION_GC_INTERVAL_SECONDS = int(data.get("SESSION_GC_INTERVAL_SECONDS", 300))
    KEY_ROTATION_INTERVAL_SECONDS = int(data.get("KEY_ROTATION_INTERVAL_SECONDS", 0))
