"""Run the server: `python -m storefront` (honours HOST, PORT and LOG_LEVEL)."""

import uvicorn

from storefront.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
