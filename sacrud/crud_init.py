import logging
import os
import sys
from typing import Any


class CRUD:
    """Global sacrud configuration
    Settings are stored as class variables, they can be overridden with `CRUD.configure`
    or (when the flask integration is used) with the app.config

    :param LOGLEVEL: loglevel configuration variable, values from logging module (0: trace, .. 50: critical)
    """

    LOGLEVEL = logging.WARNING
    # commit the store handle after every insert/update/delete
    AUTO_COMMIT = True
    # textual encoding of boolean attribute values
    TRUE_VALUE = "1"
    FALSE_VALUE = "0"
    # collection responses don't count the table (yet), this is returned as metadata.total_count
    TOTAL_COUNT = 0
    DEFAULT_STATUS_CODE = 200
    LOG_QUERIES = True
    # when set, every action that reads the contextual store needs an explicit `as_` name
    REQUIRE_EXPLICIT_NAMES = False

    @classmethod
    def configure(cls, **settings: Any) -> None:
        """
        Override the configuration class variables, unknown settings are ignored
        """
        for conf_name, conf_val in settings.items():
            if not conf_name.isupper() or not hasattr(cls, conf_name):
                continue
            setattr(cls, conf_name, conf_val)

    @staticmethod
    def init_logging(loglevel: int = logging.WARNING) -> logging.Logger:
        """
        Specify the log format used in the webserver logs
        The webserver will catch stdout so we redirect eveything to sys.stderr
        """
        log = logging.getLogger("sacrud")
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
    DEBUG = os.getenv("DEBUG", logging.WARNING)
    LOGLEVEL = int(DEBUG)
except ValueError:  # pragma: no cover
    print(f'Invalid LogLevel in DEBUG Environment Variable! "{DEBUG}"')
    LOGLEVEL = logging.INFO

log = CRUD.init_logging(LOGLEVEL)
