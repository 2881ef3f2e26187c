import logging
import uvicorn
from .config import load_settings
from .main import configure_logging, create_app


logger = logging.getLogger("app")


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Scoring service starting on :%s", settings.port)
    logger.info("Config API: %s", settings.config_api_url)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
