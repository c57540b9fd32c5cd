# io/kernel_logging.py
import json
import logging
import sys
from dataclasses import asdict, is_dataclass

from ride_sim.sim.clock import SimClock
from ride_sim.sim.hooks import NoopHooks


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, default=str)


def configure_logging(name: str = "ride_sim", level: str = "INFO") -> logging.Logger:
    """One stdout JSON handler on the package logger; idempotent."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(JsonFormatter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


class KernelLogging(NoopHooks):
    """
    Structured logs for the kernel: lifecycle events at INFO, timer ticks and
    scheduling at DEBUG (sampled) when debug is on.
    """

    LIFECYCLE = {
        "DestinationChosen",
        "LocationPermission",
        "RouteResolved",
        "RideConfirmed",
        "RideStateChanged",
        "TripStartRequested",
        "TripRated",
        "TripDismissed",
        "TripReceiptSaved",
        "UnitsToggled",
        "SessionTeardown",
    }

    def __init__(
        self,
        run_id: str = "local",
        clock: SimClock | None = None,
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
    ):
        self.run_id = run_id
        self.clock = clock
        self.debug = debug
        self.sample_every = max(1, sample_every)
        self.log = logger or configure_logging(level=level)
        self._processed = 0

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        if self.clock is not None and extra.get("t") is not None:
            payload["wall"] = self.clock.to_wall(extra["t"]).isoformat()
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    def _shape_event(self, ev) -> dict:
        base = {"t": getattr(ev, "t", None)}
        for f in ("state", "prev", "task_id", "generation", "option_id", "stars"):
            if hasattr(ev, f):
                base[f] = getattr(ev, f)
        route = getattr(ev, "route", None)
        if route is not None:
            base["source"] = route.estimate.source
            base["distance_km"] = route.estimate.distance_km
            base["duration_min"] = route.estimate.duration_minutes
        dest = getattr(ev, "destination", None)
        if dest is not None and is_dataclass(dest) and hasattr(dest, "name"):
            base["destination"] = asdict(dest)
        return base

    # engine lifecycle

    def run_start(self, *, until, max_events, qsize):
        self._emit("INFO", "run_start", until=until, max_events=max_events, qsize=qsize)

    def run_end(self, *, processed: int, **extra):
        self._emit("INFO", "run_end", processed=processed, **extra)

    def schedule(self, ev, *, now: float, qsize: int):
        if self.debug and (qsize % self.sample_every) == 0:
            self._emit("DEBUG", "schedule", event=type(ev).__name__, now=now, qsize=qsize)

    def dispatch_start(self, ev, *, seq: int, qsize: int, handlers: int):
        self._processed += 1
        name = type(ev).__name__
        level = "INFO" if name in self.LIFECYCLE else ("DEBUG" if self.debug else None)
        if level:
            self._emit(level, name, **self._shape_event(ev), seq=seq, qsize=qsize, handlers=handlers)

    def dispatch_end(self, ev, *, out_events: int, ms: float):
        if self.debug and (self._processed % self.sample_every) == 0:
            self._emit("DEBUG", "dispatch_done", event=type(ev).__name__, out_events=out_events, ms=ms)

    def error(self, ev, *, reason: str, **extra):
        self._emit("ERROR", "kernel_error", event=type(ev).__name__, reason=reason, **extra)
