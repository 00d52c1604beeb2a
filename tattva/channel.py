"""Live subscription to one report row, keyed by (user, media URL)."""

import logging
import threading
from dataclasses import dataclass

from tattva.feed import filter_expression
from tattva.normalize import normalize


log = logging.getLogger(__name__)

REPORTS_TABLE = "reports"


@dataclass(frozen=True)
class SubscriptionKey:
    user_id:   str
    media_url: str

    @property
    def complete(self):
        return bool(self.user_id) and bool(self.media_url)

    def filters(self):
        return {"clerk_user_id": self.user_id, "media_url": self.media_url}


class ChannelHandle:
    def __init__(self, key, token, subscription):
        self.key          = key
        self.token        = token
        self.subscription = subscription
        self.closed       = False

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"<ChannelHandle {self.token} {state} {filter_expression(self.key.filters())}>"


class ChannelManager:
    """Owns at most one open subscription and is the only writer of ``state``.

    Every open/close bumps a generation counter. Feed callbacks carry the
    generation they were opened under and are dropped once it is stale, so
    nothing reaches ``state`` after ``close`` returns.
    """

    def __init__(self, feed, state, on_update=None, table=REPORTS_TABLE, lock=None):
        self.feed        = feed
        self.state       = state
        self.on_update   = on_update
        self.table       = table
        self._lock       = lock or threading.RLock()
        self._generation = 0
        self._handle     = None

    @property
    def handle(self):
        return self._handle

    @property
    def key(self):
        return self._handle.key if self._handle else None

    def open(self, key):
        if key is None or not key.complete:
            log.debug("[Realtime] Key incomplete, not subscribing: %r", key)
            return None
        with self._lock:
            if self._handle is not None and self._handle.key == key:
                return self._handle
            if self._handle is not None:
                self.close(self._handle)
            self.state.reset()
            self._generation += 1
            token = self._generation

            def deliver(payload):
                self.on_event(payload.get("new") or {}, token)

            sub = self.feed.subscribe(self.table, key.filters(), deliver)
            self._handle = ChannelHandle(key, token, sub)
            log.info("[Realtime] Subscribed to %s for user %s, media %s",
                     self.table, key.user_id, key.media_url)
            return self._handle

    def on_event(self, raw, token):
        fragment = normalize(raw)
        with self._lock:
            if self._handle is None or token != self._generation:
                return False
            self.state.merge(fragment)
            log.debug("[Realtime] Merged fields: %s", ", ".join(sorted(fragment)))
            if self.on_update is not None:
                self.on_update(self.state)
            return True

    def close(self, handle=None):
        with self._lock:
            handle = handle or self._handle
            if handle is None or handle.closed:
                return
            handle.closed = True
            handle.subscription.unsubscribe()
            if handle is self._handle:
                self._handle = None
                self._generation += 1
            log.info("[Realtime] Cleaning up subscription %r", handle)
