"""Server entry point.

Enables execution via: python -m merchmagic
"""

import uvicorn

from merchmagic.core.config import Settings


def main() -> int:
    settings = Settings()  # type: ignore[call-arg]
    uvicorn.run("merchmagic.app:app", host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
