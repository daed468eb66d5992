# Configuration settings can be set in app.config (when running inside a flask app),
# as CRUD class variables or as environment variables, in that order of precedence
import os
import logging
from typing import Any, Optional
from flask import current_app
import sacrud


def get_config(option: str) -> Optional[Any]:
    """Retrieve a configuration parameter
    :param option: configuration parameter
    :return: configuration value
    """
    try:
        result = current_app.config[option]
    except (KeyError, RuntimeError):
        # RuntimeError: no app context
        result = getattr(sacrud.CRUD, option, os.environ.get(option, None))
    return result


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether the app is in debug mode
    :rtype: Boolean
    """
    return sacrud.log.getEffectiveLevel() < logging.INFO
