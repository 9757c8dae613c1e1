"""
Run the API with uvicorn: ``python -m projects_backend``.
"""

from __future__ import annotations

import uvicorn

from projects_backend.config import get_settings
from projects_backend.logging_config import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "projects_backend.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
