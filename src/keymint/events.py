"""Key lifecycle events and the hooks that observe them.

Hooks are registered by name with KeyMint.on("key_created") and receive the
typed event once the surrounding transaction has committed. A failing hook is
logged; key creation and token issuance carry on regardless.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Callable

logger = logging.getLogger("keymint.events")


# ---------------------------------------------------------------------------
# Event dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Event:
    """Base event: all events carry a timestamp."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class KeyCreated(Event):
    """Fired when a key is generated and stored (seeding or backfill)."""
    kid: int = 0
    expires_at: int = 0
    expired: bool = False
    reason: str = ""


@dataclass(frozen=True, slots=True)
class TokenIssued(Event):
    """Fired when a JWT is signed."""
    kid: int = 0
    kid_label: str = ""
    expired: bool = False
    expires_at: int = 0


# ---------------------------------------------------------------------------
# Event name mapping
# ---------------------------------------------------------------------------

EVENT_MAP: dict[str, type[Event]] = {
    "key_created": KeyCreated,
    "token_issued": TokenIssued,
}

EVENT_NAMES: dict[type[Event], str] = {cls: name for name, cls in EVENT_MAP.items()}


def event_name(event: Event) -> str:
    """Hook name an event is dispatched under (e.g. KeyCreated -> "key_created")."""
    return EVENT_NAMES[type(event)]


# ---------------------------------------------------------------------------
# Hook registry
# ---------------------------------------------------------------------------

HookCallback = Callable[[Event], Any]


class HookRegistry:
    """Hooks per event name, called in registration order."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[HookCallback]] = {name: [] for name in EVENT_MAP}

    def register(self, name: str, callback: HookCallback) -> None:
        if name not in self._hooks:
            raise ValueError(
                f"Unknown event '{name}'. Valid events: {', '.join(sorted(EVENT_MAP))}"
            )
        self._hooks[name].append(callback)

    def hooks_for(self, name: str) -> tuple[HookCallback, ...]:
        return tuple(self._hooks.get(name, ()))

    async def dispatch(self, event: Event) -> None:
        """Run every hook registered for the event's type.

        Sync hooks run in a worker thread. A failing hook is logged and the
        remaining hooks still run.
        """
        name = event_name(event)
        for callback in self.hooks_for(name):
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(event)
                else:
                    await asyncio.to_thread(callback, event)
            except Exception:
                logger.exception(
                    "Hook %s.%s failed on %s (kid=%s)",
                    callback.__module__,
                    callback.__qualname__,
                    name,
                    getattr(event, "kid", None),
                )


# ---------------------------------------------------------------------------
# Event collector
# ---------------------------------------------------------------------------

class EventCollector:
    """Buffers events raised inside a session and dispatches them after commit."""

    def __init__(self, registry: HookRegistry) -> None:
        self._registry = registry
        self._pending: list[Event] = []

    def add(self, event: Event) -> None:
        self._pending.append(event)

    def __len__(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        pending, self._pending = self._pending, []
        for event in pending:
            await self._registry.dispatch(event)


# ---------------------------------------------------------------------------
# Request-scoped collector for the FastAPI integration
# ---------------------------------------------------------------------------

_current_collector: ContextVar[EventCollector | None] = ContextVar(
    "_current_collector", default=None,
)


def get_collector() -> EventCollector | None:
    """Collector of the request being served, or None outside a request."""
    return _current_collector.get()
