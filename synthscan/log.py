# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

import copy
import logging
import logging.config

from synthscan import settings


def init_logging(level=None):
    """Apply the LOGGING configuration from settings.
    @param level: optional level name overriding every configured logger
    """
    config = copy.deepcopy(settings.LOGGING)
    if level:
        for logger_conf in config.get("loggers", {}).values():
            logger_conf["level"] = level.upper()
    logging.config.dictConfig(config)
