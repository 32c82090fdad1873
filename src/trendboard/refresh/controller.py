"""Refresh controller - per-widget countdown driving background reloads.

A widget owns one controller. The controller owns one or more named slots
(e.g. "games" and "standings", or one per bookmaker); every load fetches all
slots concurrently and each slot applies its own result independently, so a
failure in one branch never blocks the others from updating.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import structlog

from trendboard.feeds.result import FeedResult, FeedStatus

log = structlog.get_logger(__name__)

Loader = Callable[[], Awaitable[FeedResult[Any]]]
Sleeper = Callable[[float], Awaitable[Any]]

DEFAULT_SLOT = "items"


@dataclass
class Slot:
    """What one sub-resource currently displays, plus the most recent raw outcome."""

    items: list[Any] = field(default_factory=list)
    status: FeedStatus | None = None
    message: str | None = None
    last_result: FeedResult[Any] | None = None
    updated_at_millis: int | None = None


class RefreshController:
    """Countdown-driven reloads that never flash an empty view on a background hiccup."""

    def __init__(
        self,
        loaders: dict[str, Loader] | Loader,
        period_sec: int,
        *,
        clear_cache: Callable[[], Any] | None = None,
        on_update: Callable[[RefreshController], Any] | None = None,
        sleep: Sleeper = asyncio.sleep,
        name: str = "widget",
    ) -> None:
        if callable(loaders):
            loaders = {DEFAULT_SLOT: loaders}
        self.loaders = dict(loaders)
        self.period_sec = period_sec
        self.clear_cache = clear_cache
        self.on_update = on_update
        self.sleep = sleep
        self.name = name
        self.slots: dict[str, Slot] = {k: Slot() for k in self.loaders}
        self.countdown = period_sec
        self.loading = False
        self.refreshing = False
        self.mounted = False
        self.load_count = 0
        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def items(self) -> list[Any]:
        return self.slot(DEFAULT_SLOT if DEFAULT_SLOT in self.slots else next(iter(self.slots))).items

    def slot(self, name: str) -> Slot:
        return self.slots[name]

    @property
    def needs_configuration(self) -> bool:
        return any(s.status is FeedStatus.NEEDS_CONFIGURATION for s in self.slots.values())

    @property
    def rate_limited(self) -> bool:
        return any(s.status is FeedStatus.RATE_LIMITED for s in self.slots.values())

    async def mount(self) -> None:
        """Foreground first load; callers show a placeholder while loading is True."""
        self.mounted = True
        await self.load(show_loader=True)

    async def load(self, show_loader: bool = True) -> None:
        self._generation += 1
        generation = self._generation
        if show_loader:
            self.loading = True
        else:
            self.refreshing = True
        try:
            names = list(self.loaders)
            results = await asyncio.gather(
                *(self.loaders[n]() for n in names), return_exceptions=True
            )
        finally:
            if generation == self._generation:
                self.loading = False
                self.refreshing = False
        self.load_count += 1
        if generation != self._generation:
            log.debug("refresh_superseded", widget=self.name)
            return
        for slot_name, result in zip(names, results):
            if isinstance(result, BaseException):
                # Loaders wrap adapters, which never raise; treat anything else as empty.
                log.warning("refresh_loader_failed", widget=self.name, slot=slot_name, error=str(result))
                result = FeedResult(status=FeedStatus.EMPTY, message=str(result))
            self._apply(slot_name, result, background=not show_loader)
        self.countdown = self.period_sec
        if self.on_update is not None:
            self.on_update(self)

    def _apply(self, slot_name: str, result: FeedResult[Any], background: bool) -> None:
        slot = self.slots[slot_name]
        slot.last_result = result
        if background and not result.items and slot.items:
            log.info("refresh_empty_kept_previous", widget=self.name, slot=slot_name, kept=len(slot.items))
            # Old rows stay; conditions the user must act on still reach the header
            if result.status in (FeedStatus.NEEDS_CONFIGURATION, FeedStatus.RATE_LIMITED):
                slot.status = result.status
                slot.message = result.message
            return
        slot.items = list(result.items)
        slot.status = result.status
        slot.message = result.message
        slot.updated_at_millis = result.fetched_at_millis

    async def tick(self) -> bool:
        """One second elapsed. Returns True when this tick triggered a background reload."""
        if not self.mounted or self.period_sec <= 0:
            return False
        if self.countdown <= 1:
            await self.load(show_loader=False)
            return True
        self.countdown -= 1
        return False

    async def refresh_now(self) -> None:
        """Manual refresh: drop cached entries, then behave like the initial mount."""
        if self.clear_cache is not None:
            self.clear_cache()
        await self.load(show_loader=True)

    async def run(self) -> None:
        """Tick once per second until unmounted."""
        while self.mounted:
            await self.sleep(1)
            if not self.mounted:
                break
            await self.tick()

    async def start(self) -> None:
        """mount() then keep ticking in a background task."""
        await self.mount()
        self._task = asyncio.create_task(self.run())

    async def unmount(self) -> None:
        """Stop the timer; later ticks are no-ops and no further loads are issued."""
        self.mounted = False
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
