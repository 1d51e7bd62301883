import uvicorn
import logging

from .app import app
from .core.config import Config

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
        ]
    )


def run() -> None:
    Config.validate()
    configure_logging()
    logger.info(f"Starting {Config.SERVICE_NAME} on {Config.HOST}:{Config.port()} ({Config.ENVIRONMENT})")
    uvicorn.run(app, host=Config.HOST, port=Config.port())


if __name__ == "__main__":
    run()
