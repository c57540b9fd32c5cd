# tests/app/conftest.py
import pytest

from ride_sim.app.build import build
from ride_sim.sim.hooks import NoopHooks


# Observe event order/times without touching kernel internals
class TraceHooks(NoopHooks):
    def __init__(self):
        self.events = []

    def dispatch_start(self, ev, *, seq, qsize, handlers):
        self.events.append((ev.t, type(ev).__name__, getattr(ev, "state", None)))

    def names(self, since: float = float("-inf")) -> list[str]:
        return [name for t, name, _ in self.events if t >= since]

    def states(self) -> list[str]:
        return [state for _, name, state in self.events if name == "RideStateChanged"]


@pytest.fixture
def make_app():
    def _make(cfg=None, **collaborators):
        trace = TraceHooks()
        app = build(cfg, use_logging=False, hooks=trace, **collaborators)
        return app, trace

    return _make
