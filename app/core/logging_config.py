import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once with a console handler."""
    logger = logging.getLogger()
    if logger.handlers:
        # already configured (tests, repeated create_app calls, uvicorn)
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
