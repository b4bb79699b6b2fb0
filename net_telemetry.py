"""Telemetry schema and sinks for solver instrumentation."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from queue import Queue
from typing import Any, Callable, Dict, Mapping, Optional, Protocol
import time


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class TelemetryEnvelope:
    event: str
    ts_ms: int
    data: Dict[str, Any]


@dataclass(frozen=True)
class SolveStartEvent:
    rows: int
    cols: int
    wrapping: bool
    pieces: int
    free_cells: int
    search_space_log2: float


@dataclass(frozen=True)
class NodeBatchEvent:
    nodes_total: int
    backtracks: int
    propagations: int
    max_stack: int
    solutions: int
    elapsed_ms: int


@dataclass(frozen=True)
class SolveEndEvent:
    solved: bool
    solutions: int
    nodes: int
    backtracks: int
    elapsed_ms: int
    reason: str


class TelemetrySink(Protocol):
    def emit(self, envelope: TelemetryEnvelope) -> None:
        ...

    def close(self) -> None:
        ...


class NullTelemetrySink:
    def emit(self, envelope: TelemetryEnvelope) -> None:
        _ = envelope

    def close(self) -> None:
        return


class CallbackTelemetrySink:
    def __init__(self, callback: Callable[[TelemetryEnvelope], None]) -> None:
        self._callback = callback

    def emit(self, envelope: TelemetryEnvelope) -> None:
        self._callback(envelope)

    def close(self) -> None:
        return


class QueueTelemetrySink:
    """Hands envelopes to another thread, e.g. a UI polling a solve running in a worker."""

    def __init__(self, queue: "Queue[TelemetryEnvelope]") -> None:
        self._queue = queue

    def emit(self, envelope: TelemetryEnvelope) -> None:
        self._queue.put(envelope)

    def close(self) -> None:
        return


class ListTelemetrySink:
    """Keeps every envelope in memory; handy for the CLI ``--stats`` report."""

    def __init__(self) -> None:
        self.events: list[TelemetryEnvelope] = []

    def emit(self, envelope: TelemetryEnvelope) -> None:
        self.events.append(envelope)

    def close(self) -> None:
        return

    def last(self, event: str) -> Optional[TelemetryEnvelope]:
        for envelope in reversed(self.events):
            if envelope.event == event:
                return envelope
        return None


def emit_event(sink: Optional[TelemetrySink], event: str, payload: Mapping[str, Any]) -> None:
    if sink is None:
        return
    envelope = TelemetryEnvelope(event=event, ts_ms=now_ms(), data=dict(payload))
    try:
        sink.emit(envelope)
    except Exception:
        # A broken sink must never abort a solve.
        return


def emit_dataclass_event(sink: Optional[TelemetrySink], event: str, payload_obj: object) -> None:
    emit_event(sink, event, asdict(payload_obj))
