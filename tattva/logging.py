"""Console logging for the dashboard server."""

import logging


# Per-request access lines drown out the realtime/sequencer messages.
_NOISY_LOGGERS = ("werkzeug",)


def parse_level(level):
    numeric = getattr(logging, str(level).upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO


def setup_logging(level="INFO"):
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s | %(name)s | %(message)s"))
    root.addHandler(handler)
    root.setLevel(parse_level(level))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
