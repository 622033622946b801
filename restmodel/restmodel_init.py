import logging
import os
import sys


class RESTMODEL:
    """Class-level configuration of the restmodel framework
    Values can be overridden by setting the class attribute or the environment variable with the same name.
    :param BASE_URL: URL prefix of the generated routes, eg. '/api'
    :param LOGLEVEL: loglevel configuration variable, values from logging module (0: trace, .. 50: critical)
    """

    # Configuration settings are stored as class variables
    BASE_URL = ""
    LOGLEVEL = logging.WARNING
    JSONAPI_VERSION = "1.0"
    JSONAPI_MEDIA_TYPE = "application/vnd.api+json"

    @staticmethod
    def init_logging(loglevel: int = logging.WARNING) -> logging.Logger:
        """
        Specify the log format used in the webserver logs
        The webserver will catch stderr so we redirect everything to sys.stderr
        """
        log = logging.getLogger(__name__)
        if log.level == logging.NOTSET:
            handler = logging.StreamHandler(sys.stderr)
            formatter = logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            log.setLevel(loglevel)
            log.addHandler(handler)
        return log


#
# logging initialization
#
try:
    DEBUG = os.getenv("DEBUG", RESTMODEL.LOGLEVEL)
    LOGLEVEL = int(DEBUG)
except ValueError:  # pragma: no cover
    print(f'Invalid LogLevel in DEBUG Environment Variable! "{DEBUG}"')
    LOGLEVEL = logging.INFO

log = RESTMODEL.init_logging(LOGLEVEL)
