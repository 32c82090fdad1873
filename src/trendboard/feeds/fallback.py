"""Fallback datasets served when a source has no credential or the upstream is down."""

from __future__ import annotations

from typing import Any, Callable, Protocol


class FallbackProvider(Protocol):
    """Supplies display-ready items for a parameter set without touching the network."""

    def items(self, params: dict[str, Any]) -> list[Any]: ...


class StaticFallback:
    """Fixed list, identical for every parameter set."""

    def __init__(self, items: list[Any]) -> None:
        self._items = list(items)

    def items(self, params: dict[str, Any]) -> list[Any]:
        return list(self._items)


class GeneratedFallback:
    """Builds items from params on each call (e.g. mock odds per bookmaker)."""

    def __init__(self, factory: Callable[[dict[str, Any]], list[Any]]) -> None:
        self._factory = factory

    def items(self, params: dict[str, Any]) -> list[Any]:
        return self._factory(params)
