# src/vrchat_relay/__main__.py

import logging

import uvicorn

from .config import settings


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger("vrchat_relay")
    logger.info("--- VRChat Relay Starting Up ---")
    logger.info("VRChat API Base URL: %s", settings.VRCHAT_API_BASE_URL)
    logger.info("Upstream timeout: %ss", settings.UPSTREAM_TIMEOUT_SECONDS)
    logger.info("Secure cookies: %s", settings.COOKIE_SECURE)
    logger.info("Server is running on http://%s:%s", settings.HOST, settings.PORT)

    uvicorn.run("vrchat_relay.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
