import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    def __init__(self):
        self.app_name = "GritSync Portal"
        self.api_version = "1.0.0"
        self.environment = os.getenv("APP_ENV", "development")
        self.secret_key = os.getenv("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./gritsync.db")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        self.stripe_secret_key = os.getenv("STRIPE_SECRET_KEY") or None
        self.stripe_webhook_secret = os.getenv("STRIPE_WEBHOOK_SECRET") or None
        self.stripe_checkout_logo_url = os.getenv("STRIPE_CHECKOUT_LOGO_URL") or None
        self.frontend_url = os.getenv("FRONTEND_URL") or None

        # Tracebacks are only ever attached to error bodies when this is set.
        self.debug_errors = _env_flag("DEBUG_ERRORS")


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
