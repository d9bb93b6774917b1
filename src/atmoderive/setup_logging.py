"""Logging setup for applications embedding atmoderive.

The library itself only creates module loggers; handlers are the
application's business. ``configure_logging`` installs the console (and
optionally file) handlers on the root logger at the configured level.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from atmoderive.schemas import InternalConfig


def configure_logging(config: InternalConfig,
                      log_path: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Configure the root logger from ``config.logging.level``.

    Existing root handlers are removed, so calling this twice does not
    duplicate output.

    Parameters
    ----------
    config : InternalConfig
        Resolved configuration.
    log_path : str or Path, optional
        Also log to this file. Parent directories are created.

    Returns
    -------
    logging.Logger
        The root logger.
    """
    log_level = getattr(logging, config.logging.level, logging.INFO)

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Clear existing handlers and add new ones
    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    root.addHandler(ch)

    root.info("Logging: level=%s, file=%s", config.logging.level, log_path)
    return root
