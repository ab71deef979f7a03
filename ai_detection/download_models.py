"""Fetch the classifier artifact into settings.MODEL_PATH.

The first analysis otherwise fails with ModelLoadError until the file is
in place. Downloading is idempotent: an existing file is kept.

Usage:
    synthscan model             # download if missing
    synthscan model --verify    # check only
    synthscan model --clean     # remove the cached file
"""

import logging
import os
import urllib.request

from synthscan import settings


logger = logging.getLogger(__name__)


def sizeof_fmt(num):
    for unit in ("B", "KB", "MB", "GB"):
        if abs(num) < 1024:
            return f"{num:.1f} {unit}"
        num /= 1024
    return f"{num:.1f} TB"


def download_model(path=None, url=None):
    """Download the model unless it is already present.

    Args:
        path: destination, defaults to settings.MODEL_PATH
        url: source, defaults to settings.MODEL_URL

    Returns:
        (path, downloaded) where downloaded is False for a cache hit
    """
    path = path or settings.MODEL_PATH
    url = url or settings.MODEL_URL
    if os.path.isfile(path):
        logger.debug("Model already present at %s", path)
        return path, False

    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    partial = path + ".part"
    logger.info("Downloading %s to %s", url, path)
    try:
        urllib.request.urlretrieve(url, partial)
        os.replace(partial, path)
    finally:
        if os.path.exists(partial):
            os.remove(partial)
    return path, True


def verify_model(path=None):
    """True if the model file exists and is not empty."""
    path = path or settings.MODEL_PATH
    return os.path.isfile(path) and os.path.getsize(path) > 0


def clean_model(path=None):
    """Remove the cached model. Returns True if a file was removed."""
    path = path or settings.MODEL_PATH
    if os.path.isfile(path):
        os.remove(path)
        logger.info("Removed %s", path)
        return True
    return False
