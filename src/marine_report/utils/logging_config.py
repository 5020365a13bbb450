"""Logging configuration for Marine Report."""
import logging
import logging.config
import os
from datetime import datetime
from typing import Any, Dict, Optional

LOGGER_NAMES = ["collector", "agents", "data", "utils", "models", "server", "run"]


def get_logging_config(log_dir: str = "logs") -> Dict[str, Any]:
    """
    Get logging configuration dictionary.

    Args:
        log_dir: Directory to store log files

    Returns:
        Logging configuration dictionary
    """
    os.makedirs(log_dir, exist_ok=True)

    date_str = datetime.now().strftime("%Y%m%d")

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "simple": {
                "format": "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "simple",
                "stream": "ext://sys.stderr",
            },
            "app_file": {
                "class": "logging.FileHandler",
                "level": "DEBUG",
                "formatter": "detailed",
                "filename": os.path.join(log_dir, f"marine_report_{date_str}.log"),
                "encoding": "utf8",
            },
        },
        "loggers": {
            name: {
                "level": "DEBUG",
                "handlers": ["console", "app_file"],
                "propagate": False,
            }
            for name in LOGGER_NAMES
        },
        "root": {
            "level": "INFO",
            "handlers": ["console", "app_file"],
        },
    }

    return config


def setup_logging(
    config_dict: Optional[Dict[str, Any]] = None,
    log_dir: str = "logs",
    log_level: str = "INFO"
) -> None:
    """
    Configure the logging system using a dictionary config.

    Args:
        config_dict: Optional configuration dictionary
        log_dir: Directory to store log files
        log_level: Logging level (default: INFO)
    """
    if config_dict is None:
        config_dict = get_logging_config(log_dir)

    if log_level:
        if "handlers" in config_dict and "console" in config_dict["handlers"]:
            config_dict["handlers"]["console"]["level"] = log_level

        if "root" in config_dict:
            config_dict["root"]["level"] = log_level

        for logger_name in LOGGER_NAMES:
            if logger_name in config_dict.get("loggers", {}):
                config_dict["loggers"][logger_name]["level"] = log_level

    logging.config.dictConfig(config_dict)

    logger = logging.getLogger("utils.logging")
    logger.info(f"Logging system initialized with level {log_level}")
    logger.debug(f"Log files will be stored in: {os.path.abspath(log_dir)}")
