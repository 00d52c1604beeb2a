"""Timer-paced progressive disclosure of report stages.

Each stage goes through a typing phase (the "thinking" indicator) and is then
revealed by rendering it against whatever the report holds at that moment.
After the stage's dwell time the next stage starts; the last stage halts the
run. Pacing never waits on data: a stage whose fields have not arrived yet is
rendered empty and filled in by later re-renders.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Tuple


log = logging.getLogger(__name__)

DEFAULT_TYPING_DELAY = 1.2


@dataclass(frozen=True)
class Stage:
    id:     str
    title:  str
    render: Callable[[Any], Any]
    dwell:  float


@dataclass(frozen=True)
class SequencerState:
    current_index: int
    typing:        bool
    revealed:      Tuple[str, ...]
    halted:        bool


class Sequencer:
    def __init__(self, stages, timers, source, typing_delay=DEFAULT_TYPING_DELAY):
        stages = list(stages)
        if not stages:
            raise ValueError("Sequencer needs at least one stage")
        ids = [s.id for s in stages]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate stage ids: {ids}")
        self.stages       = stages
        self.timers       = timers
        self.source       = source
        self.typing_delay = typing_delay
        self._token       = 0
        self._pending     = None
        self._clear()

    def _clear(self):
        self.current_index = 0
        self.typing        = False
        self.halted        = False
        self.revealed      = []
        self.rendered      = {}

    @property
    def last_index(self):
        return len(self.stages) - 1

    def start(self):
        self.reset()
        log.debug("[Sequencer] Run %d started", self._token)
        self._begin_stage()

    def cancel(self):
        """Stop the current run; timers that still fire for it do nothing."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._token += 1
        self.typing  = False

    def reset(self):
        self.cancel()
        self._clear()

    def snapshot(self):
        return SequencerState(
            current_index = self.current_index,
            typing        = self.typing,
            revealed      = tuple(self.revealed),
            halted        = self.halted,
        )

    def render_revealed(self):
        """Re-render every revealed stage against the latest report."""
        report = self.source()
        for stage in self.stages[:len(self.revealed)]:
            self.rendered[stage.id] = stage.render(report)
        return [(stage, self.rendered[stage.id]) for stage in self.stages[:len(self.revealed)]]

    def _schedule(self, delay, step):
        token = self._token

        def fire():
            if token != self._token:
                return
            self._pending = None
            step()

        self._pending = self.timers.call_later(delay, fire)

    def _begin_stage(self):
        self.typing = True
        self._schedule(self.typing_delay, self._reveal)

    def _reveal(self):
        stage = self.stages[self.current_index]
        self.typing = False
        self.revealed.append(stage.id)
        content = stage.render(self.source())
        self.rendered[stage.id] = content
        log.debug("[Sequencer] Revealed %s", stage.id)
        self._schedule(stage.dwell, self._advance)

    def _advance(self):
        if self.current_index < self.last_index:
            self.current_index += 1
            self._begin_stage()
            return
        self.halted = True
        log.debug("[Sequencer] Halted at %s", self.stages[self.current_index].id)
