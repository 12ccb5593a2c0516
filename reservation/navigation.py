"""
Navigation capability.

Views never touch a global router: they receive a Navigator and call
`current_path()`, `push(path)`, `replace(path)` and `on_change(listener)`.
"""

import logging
from typing import Callable, List, Protocol

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class Navigator(Protocol):
    def current_path(self) -> str: ...

    def push(self, path: str) -> None: ...

    def replace(self, path: str) -> None: ...

    def on_change(self, listener: Listener) -> Callable[[], None]: ...


class ListenerMixin:
    """Listener bookkeeping shared by navigator implementations."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def on_change(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, path: str) -> None:
        for listener in list(self._listeners):
            listener(path)


class MemoryNavigator(ListenerMixin):
    """
    In-memory history stack.

    `push` appends an entry, `replace` overwrites the top one, `back` pops.
    """

    def __init__(self, initial_path: str = "/") -> None:
        super().__init__()
        self.history: List[str] = [initial_path]

    def current_path(self) -> str:
        return self.history[-1]

    def push(self, path: str) -> None:
        logger.debug("[nav] push %s", path)
        self.history.append(path)
        self._notify(path)

    def replace(self, path: str) -> None:
        logger.debug("[nav] replace %s -> %s", self.history[-1], path)
        self.history[-1] = path
        self._notify(path)

    def back(self) -> None:
        if len(self.history) > 1:
            self.history.pop()
            self._notify(self.history[-1])


def with_base(base_url: str, path: str) -> str:
    """Prefix an application path with the deployment base."""
    return f"{base_url.rstrip('/')}{path}"
