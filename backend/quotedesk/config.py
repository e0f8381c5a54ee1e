import json
import os
import re
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = Field(default="Quote Desk API", validation_alias="PROJECT_NAME")
    environment: str = Field(default="dev", validation_alias="ENVIRONMENT")
    build_version: Optional[str] = Field(default=None, validation_alias="BUILD_VERSION")
    database_url: str = Field(
        default="sqlite+pysqlite:///./dev-local.db", validation_alias="DATABASE_URL"
    )
    # API prefix used by FastAPI router include (e.g. "/api").
    api_prefix: str = Field(default="", validation_alias="API_V1_STR")
    enable_docs: Optional[bool] = Field(
        default=None, validation_alias="ENABLE_DOCS", validate_default=True
    )
    secret_key: str = Field(default="change-me", validation_alias="SECRET_KEY")
    access_token_expire_minutes: int = Field(
        default=30, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )
    algorithm: str = Field(default="HS256", validation_alias="ALGORITHM")
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=list, validation_alias="CORS_ORIGINS", validate_default=True
    )

    default_currency: str = Field(default="INR", validation_alias="DEFAULT_CURRENCY")
    quotes_list_default_limit: int = Field(
        default=20, ge=1, validation_alias="QUOTES_LIST_DEFAULT_LIMIT"
    )
    quotes_list_max_limit: int = Field(default=100, ge=1, validation_alias="QUOTES_LIST_MAX_LIMIT")
    quote_search_product_limit: int = Field(
        default=100, ge=1, validation_alias="QUOTE_SEARCH_PRODUCT_LIMIT"
    )
    notifications_enabled: bool = Field(default=True, validation_alias="NOTIFICATIONS_ENABLED")

    @field_validator("enable_docs", mode="after")
    @classmethod
    def default_enable_docs(cls, value: Optional[bool], info: ValidationInfo) -> bool:
        if value is None:
            env = str(info.data.get("environment", "dev") or "dev").lower()
            return env in {"dev", "development", "test"}
        return bool(value)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_and_default_cors_origins(cls, value, info: ValidationInfo):
        env = str(info.data.get("environment", "dev") or "dev").lower()

        def _normalize_origin(o: str) -> str:
            s = str(o).strip().strip('"').strip("'")
            # Browsers send the Origin header without a trailing slash.
            if s.endswith("/"):
                s = s[:-1]
            return s

        if value is None or value == "" or value == []:
            if env in {"prod", "production"}:
                raise ValueError("CORS_ORIGINS must be explicitly set in production")
            return [
                "http://localhost:3000",
                "http://localhost:5173",
                "http://localhost:8081",
                "http://127.0.0.1:3000",
                "http://127.0.0.1:5173",
            ]

        if isinstance(value, str):
            s = value.strip()
            if (s.startswith('"') and s.endswith('"')) or (s.startswith("'") and s.endswith("'")):
                s = s[1:-1].strip()

            try:
                parsed = json.loads(s)
                if isinstance(parsed, str):
                    return [_normalize_origin(parsed)]
                if isinstance(parsed, list):
                    return [_normalize_origin(v) for v in parsed if str(v).strip()]
                return [_normalize_origin(str(parsed))]
            except json.JSONDecodeError:
                pass

            return [_normalize_origin(v) for v in s.split(",") if str(v).strip()]

        return [_normalize_origin(v) for v in value if str(v).strip()]

    @field_validator("api_prefix", mode="before")
    @classmethod
    def normalize_api_prefix(cls, v: Optional[str]) -> str:
        if v is None:
            return ""
        s = str(v).strip().rstrip("/")
        if not s:
            return ""
        if s.startswith("/api"):
            return s

        # Git Bash on Windows may rewrite "/api/v1" into an absolute filesystem path.
        m = re.search(r"(/api(?:/[^\s]*)?)$", s.replace("\\", "/"))
        if m:
            return m.group(1)
        if not s.startswith("/"):
            return f"/{s}"
        return s

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_database_url(cls, v: Optional[str]) -> Optional[str]:
        """Normalize driver names and anchor relative SQLite paths.

        Relative paths like ``sqlite+pysqlite:///./dev-local.db`` resolve against
        the backend folder so the same database is used regardless of the
        working directory ``uvicorn`` was started from.
        """

        if v is None:
            return v

        s = str(v).strip()
        if not s:
            return s

        if s.startswith("postgres://"):
            s = "postgresql://" + s[len("postgres://") :]
        if s.startswith("postgresql://"):
            return "postgresql+psycopg://" + s[len("postgresql://") :]
        if s.startswith("postgresql+psycopg2://"):
            return "postgresql+psycopg://" + s[len("postgresql+psycopg2://") :]

        if not s.startswith("sqlite"):
            return s

        marker = ":///"
        i = s.find(marker)
        if i == -1:
            return s

        path_part = s[i + len(marker) :]
        if path_part.startswith("/") or path_part.startswith(":memory:"):
            return s
        if re.match(r"^[A-Za-z]:/", path_part):
            return s

        if path_part.startswith("./") or path_part.startswith(".\\"):
            backend_root = Path(__file__).resolve().parents[1]
            abs_path = (backend_root / path_part[2:]).resolve().as_posix()
            return f"{s[: i + len(marker)]}{abs_path}"

        return s

    @field_validator("database_url", mode="after")
    @classmethod
    def validate_database_url_for_environment(cls, v: str, info: ValidationInfo) -> str:
        env = str(info.data.get("environment", "dev") or "dev").strip().lower()
        s = str(v or "").strip()

        if env in {"prod", "production"}:
            if not os.getenv("DATABASE_URL"):
                raise ValueError("DATABASE_URL must be explicitly set in production")
            if s.startswith("sqlite"):
                raise ValueError("SQLite DATABASE_URL is not allowed in production")
            if "localhost" in s or "127.0.0.1" in s:
                raise ValueError("DATABASE_URL must not point to localhost in production")

        return s

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if not v or v.lower() in {"change-me", "secret", "changeme"}:
            raise ValueError("SECRET_KEY must be set to a strong value")
        return v

    @field_validator("default_currency")
    @classmethod
    def normalize_default_currency(cls, v: str) -> str:
        s = str(v or "").strip().upper()
        if not re.fullmatch(r"[A-Z]{3,5}", s):
            raise ValueError("DEFAULT_CURRENCY must be a 3-5 letter code")
        return s


settings = Settings()
