"""Deferred string construction."""

from __future__ import annotations

from typing import Callable


class LazyMessage:
    """String whose value is computed only when it is rendered.

    Used for diagnostics that are expensive to build and usually never read.
    The factory is invoked on every render; callers that render often should
    keep the result.
    """

    __slots__ = ("_factory",)

    def __init__(self, factory: Callable[[], object]) -> None:
        self._factory = factory

    def __str__(self) -> str:
        return str(self._factory())

    def __repr__(self) -> str:
        return f"LazyMessage({self._factory!r})"
