"""Application settings read from the environment.

A `.env` file in the project root is loaded first, if present, so local
variables (e.g. OPENAI_API_KEY) are available without exporting them.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
env_path = BASE_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)


def _float_env(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _int_env(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


class Settings:
    PROJECT_NAME = "Plant Doctor Scan API"

    STORAGE_DIR = os.getenv("STORAGE_DIR", "./storage")
    STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "plant-images")
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-5")
    OPENAI_TIMEOUT_SECONDS = _float_env("OPENAI_TIMEOUT_SECONDS", 60.0)

    # OpenCV has no facing mode; the environment-facing camera is picked by index.
    CAMERA_INDEX = _int_env("CAMERA_INDEX", 0)
    CAMERA_JPEG_QUALITY = _int_env("CAMERA_JPEG_QUALITY", 90)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
