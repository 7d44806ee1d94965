import os


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    # --- Tokens ---
    JWT_SECRET = os.environ.get("JWT_SECRET") or os.environ.get("SECRET_KEY")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRY_DAYS = int(os.environ.get("JWT_EXPIRY_DAYS", 7))

    # --- Audit trail ---
    AUDIT_PAGE_SIZE = int(os.environ.get("AUDIT_PAGE_SIZE", 50))

    # --- Entity codes ---
    # Prefix for bugs filed without a project, e.g. "BUGS-12".
    BUG_CODE_FALLBACK_PREFIX = os.environ.get("BUG_CODE_FALLBACK_PREFIX", "BUGS")
    # How many times a duplicate code is recounted before giving up with 409.
    CODE_ASSIGN_ATTEMPTS = int(os.environ.get("CODE_ASSIGN_ATTEMPTS", 3))

    # --- CORS (dashboard origins) ---
    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
        ).split(",")
        if o.strip()
    ]

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "SECRET_KEY",
            "DATABASE_URL",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI or "sqlite:///tracker.db"


class TestConfig(Config):
    """Testing — in-memory SQLite, rate limiting off."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    JWT_SECRET = "test-jwt-secret-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    AUDIT_PAGE_SIZE = 50
    BUG_CODE_FALLBACK_PREFIX = "BUGS"
    CODE_ASSIGN_ATTEMPTS = 3
    CORS_ORIGINS = ["http://localhost:5173"]
    RATELIMIT_ENABLED = False  # disable rate limiting in tests
    SERVER_NAME = "localhost"

    @staticmethod
    def validate():
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
