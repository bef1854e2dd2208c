import logging
import sys
from typing import Union

_CONFIGURED = False


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure logging idempotently.
    Leaves existing root handlers alone (e.g. when embedded in a host app).
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger()
    if root.handlers:
        _CONFIGURED = True
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )
    _CONFIGURED = True
