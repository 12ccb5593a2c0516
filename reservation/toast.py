"""
Toast Channel
Ephemeral user feedback, auto-dismissed after a fixed duration.
"""

import time
from dataclasses import dataclass
from typing import Callable, Literal, Optional

ToastVariant = Literal["success", "danger"]


@dataclass(frozen=True)
class Toast:
    message: str
    variant: ToastVariant = "success"
    description: Optional[str] = None


class ToastChannel:
    """
    Holds at most one toast. A newer toast replaces the shown one.

    Args:
        duration_ms: Lifetime of a toast before it is dismissed
        clock: Monotonic seconds source
    """

    def __init__(self, duration_ms: int = 3000, clock: Callable[[], float] = time.monotonic):
        self.duration_ms = duration_ms
        self._clock = clock
        self._toast: Optional[Toast] = None
        self._shown_at = 0.0
        # Incremented on every show, repeated identical toasts included
        self.sequence = 0

    def show(self, toast: Toast) -> None:
        self._toast = toast
        self._shown_at = self._clock()
        self.sequence += 1

    def hide(self) -> None:
        self._toast = None

    @property
    def current(self) -> Optional[Toast]:
        if self._toast is not None:
            elapsed_ms = (self._clock() - self._shown_at) * 1000
            if elapsed_ms >= self.duration_ms:
                self._toast = None
        return self._toast
