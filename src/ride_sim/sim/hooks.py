# sim/hooks.py
from typing import Protocol

from ride_sim.sim.event import BaseEvent


class KernelHooks(Protocol):
    """
    Observer interface the kernel calls around every run and dispatch.
    Hooks must not schedule events or mutate handler state.
    """

    def run_start(self, *, until, max_events, qsize): ...
    def run_end(self, *, processed, last_t, qsize, wall_ms): ...
    def schedule(self, ev: BaseEvent, *, now, qsize): ...
    def dispatch_start(self, ev: BaseEvent, *, seq, qsize, handlers): ...
    def dispatch_end(self, ev: BaseEvent, *, out_events, ms): ...
    def error(self, ev: BaseEvent, *, reason: str, **kw): ...


class NoopHooks:
    """Base class: subclasses override only what they watch."""

    def run_start(self, *, until=None, max_events=None, qsize=0):
        pass

    def run_end(self, *, processed=0, **_):
        pass

    def schedule(self, ev, *, now=0.0, qsize=0):
        pass

    def dispatch_start(self, ev, *, seq=0, qsize=0, handlers=0):
        pass

    def dispatch_end(self, ev, *, out_events=0, ms=0.0):
        pass

    def error(self, ev, *, reason: str = "", **_):
        pass


class FanoutHooks(NoopHooks):
    """Forwards every call to each hook in order (e.g. logging plus a test trace)."""

    def __init__(self, *hooks: KernelHooks):
        self.hooks = [h for h in hooks if h is not None]

    def run_start(self, **kw):
        for h in self.hooks:
            h.run_start(**kw)

    def run_end(self, **kw):
        for h in self.hooks:
            h.run_end(**kw)

    def schedule(self, ev, **kw):
        for h in self.hooks:
            h.schedule(ev, **kw)

    def dispatch_start(self, ev, **kw):
        for h in self.hooks:
            h.dispatch_start(ev, **kw)

    def dispatch_end(self, ev, **kw):
        for h in self.hooks:
            h.dispatch_end(ev, **kw)

    def error(self, ev, **kw):
        for h in self.hooks:
            h.error(ev, **kw)
