"""Execution context: gas metering, a branchable key-value store and events."""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable

_MAX_GAS = (1 << 64) - 1
_DELETED = object()


class OutOfGasError(Exception):
    """Raised when a gas meter runs past its limit."""

    def __init__(self, descriptor: str) -> None:
        self.descriptor = descriptor
        super().__init__(f"out of gas in location: {descriptor}")


class GasOverflowError(Exception):
    """Raised when consumed gas would overflow a 64-bit counter."""

    def __init__(self, descriptor: str) -> None:
        self.descriptor = descriptor
        super().__init__(f"gas overflow in location: {descriptor}")


@dataclass
class GasMeter:
    limit: int | None = None
    consumed: int = 0

    def consume_gas(self, amount, descriptor) -> None:
        total = self.consumed + amount
        if total > _MAX_GAS:
            raise GasOverflowError(descriptor)
        self.consumed = total
        if self.limit is not None and total > self.limit:
            raise OutOfGasError(descriptor)


class KVStore:
    """In-memory byte store; a store with a parent is a branch of it."""

    def __init__(self, parent: "KVStore | None" = None) -> None:
        self._parent = parent
        self._data: dict[bytes, Any] = {}

    def get(self, key) -> bytes | None:
        key = bytes(key)
        if key in self._data:
            value = self._data[key]
            return None if value is _DELETED else value
        return self._parent.get(key) if self._parent is not None else None

    def set(self, key, value) -> None:
        if value is None:
            raise ValueError("value is nil")
        self._data[bytes(key)] = bytes(value)

    def delete(self, key) -> None:
        key = bytes(key)
        if self._parent is None:
            self._data.pop(key, None)
        else:
            self._data[key] = _DELETED

    def _flush(self) -> None:
        if self._parent is None:
            return
        for key, value in self._data.items():
            if value is _DELETED:
                self._parent.delete(key)
            else:
                self._parent.set(key, value)
        self._data.clear()


@dataclass(frozen=True)
class Event:
    type: str
    attributes: tuple[tuple[str, str], ...] = ()


class EventManager:
    def __init__(self) -> None:
        self._events: list[Event] = []

    def emit_event(self, event) -> None:
        self._events.append(event)

    def emit_events(self, events) -> None:
        self._events.extend(events)

    def events(self) -> list[Event]:
        return list(self._events)


@dataclass
class Context:
    store: KVStore = field(default_factory=KVStore)
    block_height: int = 0
    gas_meter: GasMeter = field(default_factory=GasMeter)
    event_manager: EventManager = field(default_factory=EventManager)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("asyncicq"))

    def cache_context(self) -> tuple["Context", Callable[[], None]]:
        """Return a branched context and a function that writes the branch back."""
        branch = KVStore(parent=self.store)
        ctx = Context(
            store=branch,
            block_height=self.block_height,
            gas_meter=self.gas_meter,
            event_manager=EventManager(),
            logger=self.logger,
        )
        return ctx, branch._flush


def apply_func_if_no_error(ctx, func):
    """Run func on a branch of ctx and keep its changes only if it succeeds.

    Errors derived from ICQError are logged and re-raised; gas errors propagate;
    any other exception is logged and reported as a generic RuntimeError.
    """
    from .errors import ICQError

    cache_ctx, write = ctx.cache_context()
    try:
        result = func(cache_ctx)
    except (OutOfGasError, GasOverflowError):
        raise
    except ICQError as exc:
        ctx.logger.error(str(exc))
        raise
    except Exception as exc:
        ctx.logger.error("recovered (%s) panic: %s", type(exc).__name__, exc)
        ctx.logger.error("stack trace: %s", traceback.format_exc())
        raise RuntimeError("panic occurred during execution") from exc
    write()
    ctx.event_manager.emit_events(cache_ctx.event_manager.events())
    return result