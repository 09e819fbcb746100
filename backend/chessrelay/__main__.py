"""Запуск: python -m chessrelay (порт из PORT, по умолчанию 4000)."""
import uvicorn

from .config import get_config


def main() -> None:
    config = get_config()
    uvicorn.run(
        "chessrelay.main:app",
        host=config.host,
        port=config.port,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
