"""Utility for configuring project wide logging behaviour."""

import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s:%(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> logging.Handler:
    """Initialise logging and return the handler acting as the process log sink."""
    sink = logging.StreamHandler(sys.stdout)
    sink.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[sink])
    logging.getLogger("discord").setLevel(logging.INFO)
    return sink


def attach_log_sink(sink: logging.Handler, *sources: str) -> None:
    """Forward every record from the ``sources`` logger hierarchies to ``sink`` only."""
    for name in sources:
        source = logging.getLogger(name)
        if sink not in source.handlers:
            source.addHandler(sink)
        source.propagate = False
