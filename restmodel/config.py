# Configuration settings are class attributes of restmodel.RESTMODEL
# Environment variables with the same name take precedence when they are set
import os
import logging
from functools import lru_cache
import restmodel
from typing import Optional, Union


@lru_cache(maxsize=128)
def get_config(option: str) -> Optional[Union[bool, int, str]]:
    """Retrieve a configuration parameter
    :param option: configuration parameter
    :return: configuration value
    """
    result = os.environ.get(option, None)
    if result is None:
        result = getattr(restmodel.RESTMODEL, option, None)
    return result


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether the app is in debug mode
    :rtype: Boolean
    """
    return restmodel.log.getEffectiveLevel() < logging.INFO
