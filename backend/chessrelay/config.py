"""Конфигурация приложения."""
import os
from functools import lru_cache


@lru_cache
def get_config():
    return type("Config", (), {
        "host": os.environ.get("HOST", "0.0.0.0"),
        "port": int(os.environ.get("PORT", "4000")),
        "debug": os.environ.get("DEBUG", "0").lower() in ("1", "true", "yes"),
        "allowed_origins": os.environ.get("ALLOWED_ORIGINS", "*").split(","),
    })()
