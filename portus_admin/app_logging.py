import logging
from typing import Optional, Union

from pythonjsonlogger import jsonlogger


def setup_logger(level: Union[int, str] = logging.DEBUG,
                 logfile: Optional[str] = None) -> None:
    logger = logging.getLogger('portus_admin')
    if not logger.handlers:     # The factory may run more than once.
        if logfile:
            logHandler: logging.Handler = logging.FileHandler(logfile)
        else:
            logHandler = logging.StreamHandler()
        formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s',
                                             rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
        logHandler.setFormatter(formatter)
        logger.addHandler(logHandler)
    if isinstance(level, str) and level.isdigit():
        level = int(level)
    logger.setLevel(level)
