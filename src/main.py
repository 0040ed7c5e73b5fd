"""
Entrypoint: serve the app with uvicorn.

Usage: chess-match  (or: uvicorn --factory src.main:build_app)
"""

import uvicorn
from fastapi import FastAPI

from src.api.app import create_app
from src.core.config import Settings


def build_app() -> FastAPI:
    return create_app(Settings.from_env())


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        create_app(settings),
        host="127.0.0.1",
        port=8000,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
