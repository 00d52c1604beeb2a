from datetime import datetime, timezone
from types import MappingProxyType
from collections.abc import Mapping


DEFAULT_PROGRESS = {"status": "info", "message": "Analysis in progress..."}
COMPLETED        = "completed"


def utcnow():
    return datetime.now(timezone.utc).isoformat()


def progress_of(fields):
    """Status/message pair for the loading indicator.

    The worker writes it to ``logs``; older rows put the same pair in
    ``status``, and finished rows carry a plain ``status`` string.
    """
    for name in ("logs", "status"):
        value = fields.get(name)
        if isinstance(value, Mapping):
            return {
                "status":  str(value.get("status") or DEFAULT_PROGRESS["status"]),
                "message": str(value.get("message") or DEFAULT_PROGRESS["message"]),
            }
    status = fields.get("status")
    if isinstance(status, str) and status:
        message = "Analysis complete." if status == COMPLETED else DEFAULT_PROGRESS["message"]
        return {"status": status, "message": message}
    return dict(DEFAULT_PROGRESS)


class ResultViewState:
    """The report as merged so far for the current subscription key.

    Fields are overwritten one top-level key at a time and never validated;
    renderers must cope with anything missing or malformed.
    """

    def __init__(self, clock=utcnow):
        self._clock     = clock
        self._fields    = {}
        self.updated_at = None
        self.merges     = 0

    def merge(self, fragment):
        self._fields.update(fragment)
        self.updated_at = self._clock()
        self.merges += 1
        return self.get()

    def reset(self):
        self._fields    = {}
        self.updated_at = None
        self.merges     = 0

    def get(self):
        return MappingProxyType(dict(self._fields))

    def progress(self):
        return progress_of(self._fields)

    @property
    def is_empty(self):
        return not self._fields

    @property
    def is_complete(self):
        return (self._fields.get("status") == COMPLETED
                or self.progress()["status"] == COMPLETED)
