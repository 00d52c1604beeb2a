"""Per-browser dashboard state: subscription, merged report and reveal run.

Flask serves requests on worker threads and the change feed calls back from
whichever thread published the row, so every entry point takes the session's
lock. Timers only fire inside ``view``/``watch``, under that lock.
"""

import logging
import threading
import time

from tattva.channel import ChannelManager
from tattva.sequencer import DEFAULT_TYPING_DELAY, Sequencer
from tattva.stages import default_stages
from tattva.state import ResultViewState
from tattva.timers import TimerQueue


log = logging.getLogger(__name__)


class DashboardSession:
    def __init__(self, feed, stages=None, typing_delay=DEFAULT_TYPING_DELAY, clock=time.monotonic):
        self.lock      = threading.RLock()
        self.clock     = clock
        self.state     = ResultViewState()
        self.timers    = TimerQueue(start=clock())
        self.channel   = ChannelManager(feed, self.state, lock=self.lock)
        self.sequencer = Sequencer(stages or default_stages(), self.timers,
                                   self.state.get, typing_delay=typing_delay)
        self.error     = None
        self.resumable = True
        self.last_seen = clock()

    @property
    def key(self):
        return self.channel.key

    def watch(self, key):
        """Follow ``key``; switching keys drops everything merged so far."""
        with self.lock:
            self._tick()
            if self.channel.key == key:
                return self.channel.handle
            handle = self.channel.open(key)
            if handle is None:
                return None
            self.error = None
            self.sequencer.start()
            return handle

    def clear(self, error=None, resumable=False):
        """Stop watching. A cleared dashboard only resumes a saved key when
        ``resumable`` is set, so a poll carrying an outdated cookie cannot
        bring back a key that was reset or rolled back."""
        with self.lock:
            self.channel.close()
            self.state.reset()
            self.sequencer.reset()
            self.error     = error
            self.resumable = resumable

    def close(self):
        self.clear()

    def view(self):
        with self.lock:
            self._tick()
            seq    = self.sequencer.snapshot()
            key    = self.channel.key
            stages = [
                {"id": s.id, "title": s.title, "content": content}
                for s, content in self.sequencer.render_revealed()
            ]
            return {
                "media_url":  key.media_url if key else None,
                "watching":   key is not None,
                "loading":    key is not None and self.state.is_empty,
                "complete":   self.state.is_complete,
                "progress":   self.state.progress(),
                "updated_at": self.state.updated_at,
                "error":      self.error,
                "sequencer": {
                    "current_index": seq.current_index,
                    "current_stage": self.sequencer.stages[seq.current_index].id,
                    "typing":        seq.typing,
                    "halted":        seq.halted,
                },
                "stages": stages,
            }

    def _tick(self):
        now = self.clock()
        self.last_seen = now
        self.timers.run_due(now)


class SessionRegistry:
    """Dashboard sessions by browser session id, dropped after going idle."""

    def __init__(self, factory, idle_ttl=3600, clock=time.monotonic):
        self.factory   = factory
        self.idle_ttl  = idle_ttl
        self.clock     = clock
        self._sessions = {}
        self._lock     = threading.Lock()

    def get(self, sid):
        with self._lock:
            self._evict_idle()
            session = self._sessions.get(sid)
            created = session is None
            if created:
                session = self._sessions[sid] = self.factory()
            return session, created

    def discard(self, sid):
        with self._lock:
            session = self._sessions.pop(sid, None)
        if session is not None:
            session.close()

    def _evict_idle(self):
        cutoff = self.clock() - self.idle_ttl
        stale  = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
        for sid in stale:
            log.info("[Sessions] Dropping idle session %s", sid)
            self._sessions.pop(sid).close()
