import logging
import sys

from plancore.config.settings import get_settings


def setup_logging():
    """Configure logging for applications embedding PlanCore."""
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    # Package logger configuration; replace our own handler on repeat calls
    logger = logging.getLogger("plancore")
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        if getattr(handler, "_plancore", False):
            logger.removeHandler(handler)
    console_handler._plancore = True
    logger.addHandler(console_handler)

    return logger
