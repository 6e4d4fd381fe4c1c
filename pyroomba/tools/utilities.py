#!/usr/bin/env python3

from typing import Callable
import functools
import logging

from ..exceptions import RoombaError


def log_exceptions(func: Callable) -> Callable:
    """
    Decorator that logs exceptions and re-raises them.

    Device errors (a silent robot, a garbled frame) are routine on a
    serial link and are logged as warnings without a traceback. Anything
    else is logged as an error with the full traceback.

    Example:
    >>> from pyroomba.tools import log_exceptions
    >>>
    >>> @log_exceptions
    ... def battery():
    ...     return roomba.get_battery()
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        try:
            return func(*args, **kwargs)
        except RoombaError as e:
            logger.warning(f"{func.__name__} failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Exception in {func.__name__}: {e}", exc_info=True)
            raise

    return wrapper
