"""Serve the claims API: ``python -m lostfound`` or the ``lostfound-api`` script."""

from __future__ import annotations

import uvicorn

from lostfound.settings import settings


def main() -> None:
    uvicorn.run(
        "lostfound.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
