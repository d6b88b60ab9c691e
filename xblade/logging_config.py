import logging
import logging.config

# Loggers under the xblade package propagate to root
APP_LOGGER = "xblade"


def setup_logging(level: str = "INFO", access_log: bool = True):
    level = level.upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                        "datefmt": "%H:%M:%S"},
            "access_simple": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
            "access": {"class": "logging.StreamHandler", "formatter": "access_simple"},
        },
        "loggers": {
            APP_LOGGER: {"level": level, "propagate": True},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": ("INFO" if access_log else "WARNING"),
                               "handlers": ["access"], "propagate": False},
            # Socket.IO logs every ping/pong at INFO
            "socketio": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "engineio": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            # SQL statements are logged only with SQL_ECHO=true
            "sqlalchemy.engine": {"level": "WARNING", "propagate": True},
        },
        "root": {"level": level, "handlers": ["console"]},
    })
