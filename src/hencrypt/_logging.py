"""Logger factory for hencrypt modules."""

import logging

_ROOT_LOGGER_NAME = "hencrypt"

logging.getLogger(_ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger in the hencrypt namespace.

    Args:
        name: Module name, normally ``__name__``

    Returns:
        Logger that propagates to the ``hencrypt`` logger
    """
    if name != _ROOT_LOGGER_NAME and not name.startswith(_ROOT_LOGGER_NAME + "."):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
