"""Decode report rows delivered by the change feed.

Postgres json columns reach the dashboard as text, plain columns as scalars,
and some rows arrive already structured. Every top-level string that parses
as JSON is replaced by its parsed value; anything else is kept as is.
"""

import json


def decode_field(value):
    # Double-encoded text is unwrapped until it stops parsing, so a decoded
    # value never decodes any further.
    while isinstance(value, str):
        try:
            value = json.loads(value)
        except (ValueError, RecursionError):
            return value
    return value


def normalize(raw):
    if not raw:
        return {}
    return {field: decode_field(value) for field, value in raw.items()}
