"""Application configuration settings."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Final

BASE_DIR: Final[Path] = Path(__file__).resolve().parent.parent
DATA_DIR: Final[Path] = BASE_DIR / "data"

DATABASE_URL: Final[str] = os.getenv(
    "DATABASE_URL", f"sqlite:///{(DATA_DIR / 'registrar.db').as_posix()}"
)
SQLALCHEMY_ECHO: Final[bool] = os.getenv("SQLALCHEMY_ECHO") == "1"

# Shared secret of the identity provider that signs bearer tokens.
JWT_SECRET: Final[str] = os.getenv("JWT_SECRET", "local-dev-secret")
JWT_ALGORITHM: Final[str] = os.getenv("JWT_ALGORITHM", "HS256")

CORS_ORIGIN: Final[str] = os.getenv("CORS_ORIGIN", "http://localhost:3001")

DEFAULT_PAGE_SIZE: Final[int] = int(os.getenv("DEFAULT_PAGE_SIZE", 10))
MAX_PAGE_SIZE: Final[int] = int(os.getenv("MAX_PAGE_SIZE", 100))

SEED_DEV_DATA: Final[bool] = os.getenv("SEED_DEV_DATA") == "1"
