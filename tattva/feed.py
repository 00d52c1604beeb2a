"""In-process change feed for backend tables.

The analysis backend pushes every row it writes to ``publish``; each
subscription receives the rows matching its column equality filters as
``{"eventType", "table", "new"}`` payloads, the shape Supabase realtime uses
for ``postgres_changes``.
"""

import logging
import threading


log = logging.getLogger(__name__)


def filter_expression(filters):
    clauses = ",".join(f"{column}.eq.{value}" for column, value in filters.items())
    return f"and({clauses})" if len(filters) > 1 else clauses


class Subscription:
    def __init__(self, feed, table, filters, callback):
        self.feed     = feed
        self.table    = table
        self.filters  = dict(filters)
        self.callback = callback
        self.active   = True

    def matches(self, row):
        return all(column in row and row[column] == value
                   for column, value in self.filters.items())

    def unsubscribe(self):
        self.feed.remove(self)

    def __repr__(self):
        return f"<Subscription {self.table} {filter_expression(self.filters)}>"


class ChangeFeed:
    def __init__(self):
        self._subs = {}
        self._lock = threading.Lock()

    def subscribe(self, table, filters, callback):
        sub = Subscription(self, table, filters, callback)
        with self._lock:
            self._subs.setdefault(table, []).append(sub)
        log.debug("[Feed] Subscribed %r", sub)
        return sub

    def remove(self, sub):
        with self._lock:
            subs = self._subs.get(sub.table, [])
            if sub in subs:
                subs.remove(sub)
            if not subs:
                self._subs.pop(sub.table, None)
            sub.active = False

    def subscribers(self, table):
        with self._lock:
            return len(self._subs.get(table, []))

    def publish(self, table, row, event="UPDATE"):
        with self._lock:
            targets = [s for s in self._subs.get(table, []) if s.matches(row)]
        payload = {"eventType": event, "table": table, "new": dict(row)}
        for sub in targets:
            # A subscriber may have gone away while the list was being walked.
            if sub.active:
                sub.callback(payload)
        log.debug("[Feed] %s %s -> %d subscriber(s)", event, table, len(targets))
        return len(targets)
