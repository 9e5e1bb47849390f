import logging


def create_logger(level: int) -> logging.Logger:
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(name)s - %(module)s - %(message)s"
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    _logger = logging.getLogger("matchlog")
    _logger.setLevel(level)
    _logger.addHandler(handler)
    return _logger


logger = create_logger(logging.INFO)
