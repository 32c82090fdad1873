"""Refresh controller: countdown, no-flash background refresh, teardown."""

import asyncio

import pytest

from trendboard.feeds.result import FeedResult, FeedStatus
from trendboard.refresh.controller import RefreshController


def ok(n: int) -> FeedResult:
    return FeedResult(items=list(range(n)), status=FeedStatus.OK)


class ScriptedLoader:
    """Returns the scripted results in order, repeating the last one."""

    def __init__(self, *results: FeedResult) -> None:
        self.results = list(results)
        self.calls = 0

    async def __call__(self) -> FeedResult:
        self.calls += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


@pytest.mark.asyncio()
async def test_mount_is_foreground_load():
    loader = ScriptedLoader(ok(3))
    controller = RefreshController(loader, 300)
    assert controller.countdown == 300
    await controller.mount()
    assert controller.items == [0, 1, 2]
    assert loader.calls == 1
    assert not controller.loading


@pytest.mark.asyncio()
async def test_background_empty_keeps_previous_items():
    loader = ScriptedLoader(ok(10), FeedResult(items=[], status=FeedStatus.EMPTY))
    controller = RefreshController(loader, 300)
    await controller.mount()
    assert len(controller.items) == 10
    for _ in range(300):
        await controller.tick()
    assert loader.calls == 2
    assert len(controller.items) == 10
    assert controller.slot("items").last_result.status is FeedStatus.EMPTY


@pytest.mark.asyncio()
async def test_background_non_empty_replaces_items():
    loader = ScriptedLoader(ok(10), ok(4))
    controller = RefreshController(loader, 60)
    await controller.mount()
    await controller.load(show_loader=False)
    assert controller.items == [0, 1, 2, 3]


@pytest.mark.asyncio()
async def test_manual_refresh_clears_cache_and_shows_real_result():
    cleared = []
    loader = ScriptedLoader(ok(10), FeedResult(items=[], status=FeedStatus.EMPTY))
    controller = RefreshController(loader, 300, clear_cache=lambda: cleared.append(True))
    await controller.mount()
    await controller.refresh_now()
    assert cleared == [True]
    assert controller.items == []
    assert controller.countdown == 300


@pytest.mark.asyncio()
async def test_countdown_triggers_on_three_hundredth_tick():
    loader = ScriptedLoader(ok(1))
    controller = RefreshController(loader, 300)
    await controller.mount()
    for _ in range(299):
        assert not await controller.tick()
    assert controller.countdown == 1
    assert loader.calls == 1
    assert await controller.tick()
    assert loader.calls == 2
    assert controller.countdown == 300


@pytest.mark.asyncio()
async def test_manual_only_widget_never_ticks():
    loader = ScriptedLoader(ok(1))
    controller = RefreshController(loader, 0)
    await controller.mount()
    for _ in range(1000):
        await controller.tick()
    assert loader.calls == 1


@pytest.mark.asyncio()
async def test_unmount_stops_ticks():
    loader = ScriptedLoader(ok(1))
    controller = RefreshController(loader, 300)
    await controller.mount()
    await controller.unmount()
    for _ in range(300):
        await controller.tick()
    assert loader.calls == 1


@pytest.mark.asyncio()
async def test_unmount_cancels_running_loop():
    loader = ScriptedLoader(ok(1))

    async def instant_sleep(_seconds: float) -> None:
        await asyncio.sleep(0)

    controller = RefreshController(loader, 3, sleep=instant_sleep)
    await controller.start()
    for _ in range(50):
        await asyncio.sleep(0)
    assert loader.calls > 1
    await controller.unmount()
    calls = loader.calls
    for _ in range(50):
        await asyncio.sleep(0)
    assert loader.calls == calls
    assert controller._task is None


@pytest.mark.asyncio()
async def test_slots_update_independently():
    async def games() -> FeedResult:
        return ok(5)

    async def standings() -> FeedResult:
        raise RuntimeError("standings upstream exploded")

    controller = RefreshController({"games": games, "standings": standings}, 60)
    await controller.mount()
    assert len(controller.slot("games").items) == 5
    assert controller.slot("standings").items == []
    assert controller.slot("standings").status is FeedStatus.EMPTY
    assert controller.items == [0, 1, 2, 3, 4]


@pytest.mark.asyncio()
async def test_slots_fetch_concurrently():
    started = []
    release = asyncio.Event()

    def make(name: str):
        async def load() -> FeedResult:
            started.append(name)
            await release.wait()
            return ok(1)

        return load

    controller = RefreshController({b: make(b) for b in ("fanduel", "draftkings", "betmgm")}, 0)
    task = asyncio.create_task(controller.mount())
    for _ in range(5):
        await asyncio.sleep(0)
    assert sorted(started) == ["betmgm", "draftkings", "fanduel"]
    assert controller.loading
    release.set()
    await task
    assert not controller.loading


@pytest.mark.asyncio()
async def test_superseded_load_is_discarded():
    gate = asyncio.Event()
    calls = 0

    async def loader() -> FeedResult:
        nonlocal calls
        calls += 1
        if calls == 1:
            await gate.wait()
            return ok(7)
        return ok(2)

    controller = RefreshController(loader, 60)
    slow = asyncio.create_task(controller.load(show_loader=True))
    await asyncio.sleep(0)
    await controller.load(show_loader=True)
    assert controller.items == [0, 1]
    gate.set()
    await slow
    assert controller.items == [0, 1]


@pytest.mark.asyncio()
async def test_configuration_and_rate_limit_flags():
    async def keyed() -> FeedResult:
        return FeedResult(status=FeedStatus.NEEDS_CONFIGURATION)

    async def limited() -> FeedResult:
        return FeedResult(status=FeedStatus.RATE_LIMITED)

    controller = RefreshController({"a": keyed, "b": limited}, 60)
    await controller.mount()
    assert controller.needs_configuration
    assert controller.rate_limited


@pytest.mark.asyncio()
async def test_background_flags_surface_while_items_kept():
    loader = ScriptedLoader(
        ok(3),
        FeedResult(status=FeedStatus.NEEDS_CONFIGURATION, message="credential rejected (401)"),
        FeedResult(status=FeedStatus.RATE_LIMITED),
        FeedResult(status=FeedStatus.EMPTY),
        ok(2),
    )
    controller = RefreshController(loader, 60)
    await controller.mount()
    await controller.load(show_loader=False)
    assert controller.items == [0, 1, 2]
    assert controller.needs_configuration
    assert controller.slot("items").message == "credential rejected (401)"
    await controller.load(show_loader=False)
    assert controller.rate_limited
    assert not controller.needs_configuration
    # A plain empty refresh keeps both the rows and the last reported status
    await controller.load(show_loader=False)
    assert controller.rate_limited
    await controller.load(show_loader=False)
    assert controller.items == [0, 1]
    assert not controller.rate_limited


@pytest.mark.asyncio()
async def test_on_update_called_after_each_load():
    seen = []
    controller = RefreshController(ScriptedLoader(ok(2)), 60, on_update=lambda c: seen.append(len(c.items)))
    await controller.mount()
    await controller.refresh_now()
    assert seen == [2, 2]
