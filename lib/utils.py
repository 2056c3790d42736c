"""
Common utilities for the weather tracker.
"""

import json
import logging
import os
import time
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def nowMs() -> int:
    """
    Get current wall-clock time in milliseconds.
    """
    return int(time.time() * 1000)


def nextMonotonicMs(previous: Optional[int] = None) -> int:
    """
    Get current time in milliseconds, but never less than or equal to ``previous``.

    Args:
        previous: Last issued value (creation id or refresh timestamp), if any

    Returns:
        Current time in ms, or ``previous + 1`` if the clock did not advance
    """
    current = nowMs()
    if previous is not None and current <= previous:
        return previous + 1
    return current


def jsonDumps(data: Any, compact: Optional[bool] = None, **kwargs) -> str:
    dumpKwargs = {
        "ensure_ascii": False,
        "default": str,
        "sort_keys": True,
    }

    if compact is None:
        # If indent is passed, then user want pretty-printed JSON,
        #  no need to use compact separators
        compact = "indent" not in kwargs

    if compact:
        dumpKwargs["separators"] = (",", ":")
    dumpKwargs.update(kwargs)
    return json.dumps(data, **dumpKwargs)


def roundCoordinate(value: float, digits: int = 4) -> float:
    """Round coordinate for use in cache keys (4 digits is ~11m)"""
    return round(float(value), digits)


def load_dotenv(path: str = ".env", populateEnv: bool = True) -> Dict[str, str]:
    """
    Simple dotenv file loader.
    Just read file line by line and put key-value pairs into dictionary.
    Missing file is not an error, empty dict is returned.

    Args:
        path: Path to .env file (default ".env")
        populateEnv: Whether to populate environment variables (default True)

    Returns:
        Dictionary of key-value pairs from .env file
    """
    ret: Dict[str, str] = {}
    if not os.path.exists(path):
        logger.debug(f"No dotenv file at {path}")
        return ret

    with open(path, "rt") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            splitted_line = line.split("=", 1)
            if len(splitted_line) == 2:
                key, value = splitted_line
                ret[key.strip()] = value.strip().strip('"')

    if populateEnv:
        for k, v in ret.items():
            os.environ.setdefault(k, v)
    return ret
