"""A registry of lazily created, shared service dependencies."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar, Union

log = logging.getLogger(__name__)

T = TypeVar("T")

Kind = Union[type, str]


def _key(kind: Kind) -> str:
    if isinstance(kind, str):
        return kind
    return f"{kind.__module__}.{kind.__qualname__}"


def _named_key(kind: Kind, name: str) -> str:
    return f"{_key(kind)}:{name}"


class Container:
    """Holds one instance per dependency key, created on first request.

    Keys are derived from the kind of the dependency (a class or a string),
    optionally suffixed with a name so several instances of a kind can coexist.
    """

    def __init__(self) -> None:
        self._items: dict[str, Any] = {}
        self._lock = threading.RLock()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    def get(self, key: str) -> Any:
        """The dependency stored under the key; KeyError if there is none."""
        with self._lock:
            return self._items[key]

    def set(self, key: str, value: Any) -> bool:
        """Store a dependency; an existing one is kept and False returned."""
        with self._lock:
            if key in self._items:
                log.error("container with key %s already exists", key)
                return False
            self._items[key] = value
        log.info("container with key %s set successfully", key)
        return True

    def _get_or_create(self, key: str, factory: Callable[[], T]) -> T:
        with self._lock:
            if key in self._items:
                return self._items[key]
            thing = factory()
            self.set(key, thing)
            return thing

    def create(self, kind: Kind, factory: Callable[[], T]) -> T:
        """The dependency of this kind, built by the factory on first use."""
        return self._get_or_create(_key(kind), factory)

    def create_named(self, kind: Kind, name: str, factory: Callable[[], T]) -> T:
        """Like create, for a named instance of the kind."""
        return self._get_or_create(_named_key(kind, name), factory)

    def inject(self, kind: Kind, thing: T) -> T:
        """Provide the dependency of this kind up front, e.g. a test double.

        Has no effect if one was already created; returns the one in effect.
        """
        return self._get_or_create(_key(kind), lambda: thing)

    def inject_named(self, kind: Kind, name: str, thing: T) -> T:
        """Like inject, for a named instance of the kind."""
        return self._get_or_create(_named_key(kind, name), lambda: thing)