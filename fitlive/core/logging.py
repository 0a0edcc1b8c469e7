import logging

from fitlive.core.config import LOG_LEVEL


def get_logger(name: str, tag: str) -> logging.Logger:
    """
    Return a console logger whose lines carry a [TAG] prefix.

    Handlers are attached once per logger name, so importing a module twice
    (uvicorn reload, tests) does not duplicate output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(LOG_LEVEL)
        formatter = logging.Formatter(f'%(levelname)s: [{tag}] %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    return logger
