import json
import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()

SUPPORTED_DATABASE_SCHEMES = frozenset(
    {"postgresql+asyncpg", "mysql+aiomysql", "sqlite+aiosqlite"}
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean value")


def _parse_allowed_origins(raw: str) -> list[str]:
    # Accepts either a JSON array or a comma separated list.
    if raw.startswith("["):
        try:
            parsed_list = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"ALLOWED_ORIGINS JSON is malformed: {exc}") from exc
        if not isinstance(parsed_list, list):
            raise ValueError("ALLOWED_ORIGINS JSON must be an array")
        origins = [
            origin.strip() for origin in parsed_list if isinstance(origin, str) and origin.strip()
        ]
    else:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

    if "*" in origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot contain '*' when credentialed requests are used"
        )
    for origin in origins:
        parsed = urlparse(origin)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "ALLOWED_ORIGINS must contain valid http/https origins with host"
            )
    return origins


class Settings(BaseModel):
    app_name: str = Field(default="UniQUE API")
    debug: bool = Field(default=False)
    database_url: str = Field(default="")
    api_key: str = Field(default="", repr=False)
    api_key_header: str = Field(default="x-api-key")
    session_cookie_name: str = Field(default="unique-sid")
    constant_time_secret_compare: bool = Field(default=False)
    email_domain: str = Field(default="uniproject.jp")
    allowed_origins: list[str] = Field(default_factory=list)
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)

    @property
    def is_sqlite(self) -> bool:
        return urlparse(self.database_url).scheme.startswith("sqlite")

    @classmethod
    def from_env(cls) -> "Settings":
        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")

        parsed_db = urlparse(database_url)
        if parsed_db.scheme not in SUPPORTED_DATABASE_SCHEMES:
            supported = ", ".join(sorted(SUPPORTED_DATABASE_SCHEMES))
            raise ValueError(f"DATABASE_URL scheme must be one of: {supported}")
        if not parsed_db.scheme.startswith("sqlite") and not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        api_key_header = os.getenv(
            "API_KEY_HEADER", cls.model_fields["api_key_header"].default
        ).strip().lower()
        if not api_key_header:
            raise ValueError("API_KEY_HEADER must not be empty")

        session_cookie_name = os.getenv(
            "SESSION_COOKIE_NAME", cls.model_fields["session_cookie_name"].default
        ).strip()
        if not session_cookie_name:
            raise ValueError("SESSION_COOKIE_NAME must not be empty")

        allowed_origins = _parse_allowed_origins(os.getenv("ALLOWED_ORIGINS", "").strip())

        db_pool_size = int(os.getenv("DB_POOL_SIZE", cls.model_fields["db_pool_size"].default))
        if db_pool_size <= 0:
            raise ValueError("DB_POOL_SIZE must be greater than 0")

        db_max_overflow = int(
            os.getenv("DB_MAX_OVERFLOW", cls.model_fields["db_max_overflow"].default)
        )
        if db_max_overflow < 0:
            raise ValueError("DB_MAX_OVERFLOW must be greater than or equal to 0")

        db_pool_recycle = int(
            os.getenv("DB_POOL_RECYCLE", cls.model_fields["db_pool_recycle"].default)
        )
        if db_pool_recycle <= 0:
            raise ValueError("DB_POOL_RECYCLE must be greater than 0")

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            database_url=database_url,
            # The secret is read once here and handed to the resolver.
            api_key=os.getenv("API_KEY", ""),
            api_key_header=api_key_header,
            session_cookie_name=session_cookie_name,
            constant_time_secret_compare=_parse_bool(
                "CONSTANT_TIME_SECRET_COMPARE",
                os.getenv("CONSTANT_TIME_SECRET_COMPARE", "false"),
            ),
            email_domain=os.getenv(
                "EMAIL_DOMAIN", cls.model_fields["email_domain"].default
            ).strip(),
            allowed_origins=allowed_origins,
            db_pool_size=db_pool_size,
            db_max_overflow=db_max_overflow,
            db_pool_recycle=db_pool_recycle,
            db_pool_pre_ping=_parse_bool(
                "DB_POOL_PRE_PING",
                os.getenv(
                    "DB_POOL_PRE_PING", str(cls.model_fields["db_pool_pre_ping"].default)
                ),
            ),
        )


_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use.

    Importing this module never validates the environment; the first call
    does, and raises ``ValueError`` when a variable is missing or invalid.
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


class _SettingsProxy:
    """Defers ``Settings.from_env()`` until an attribute is first read."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
