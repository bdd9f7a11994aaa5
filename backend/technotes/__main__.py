"""Run the API server: `python -m technotes` or the `technotes` console script."""

import uvicorn

from technotes.config import settings


def main() -> None:
    uvicorn.run(
        "technotes.main:app",
        host=settings.backend_host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
