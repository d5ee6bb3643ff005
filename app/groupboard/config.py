import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    log_level: str

    data_dir: str
    static_dir: str
    cors_origins: str

    upload_max_bytes: int
    upload_allowed_extensions: tuple[str, ...]


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _parse_extensions(raw: str) -> tuple[str, ...]:
    exts = []
    for part in raw.split(","):
        part = part.strip().lower().lstrip(".")
        if part:
            exts.append(f".{part}")
    return tuple(exts)


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        data_dir=_getenv("DATA_DIR", ""),
        static_dir=_getenv("STATIC_DIR", os.path.join(os.getcwd(), "public")),
        cors_origins=_getenv("CORS_ORIGINS", "*"),
        upload_max_bytes=int(_getenv("UPLOAD_MAX_BYTES", str(50 * 1024 * 1024))),
        upload_allowed_extensions=_parse_extensions(_getenv("UPLOAD_ALLOWED_EXTENSIONS", "pdf")),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "LOG_LEVEL": s.log_level,
        "DATA_DIR": s.data_dir,
        "STATIC_DIR": s.static_dir,
        "CORS_ORIGINS": s.cors_origins,
        "UPLOAD_MAX_BYTES": s.upload_max_bytes,
        "UPLOAD_ALLOWED_EXTENSIONS": s.upload_allowed_extensions,
        # multipart framing on top of the largest allowed file
        "MAX_CONTENT_LENGTH": s.upload_max_bytes + 1024 * 1024,
    }
