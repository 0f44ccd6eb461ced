"""Cancellation and deadline propagation for blocking API calls.

A Context is passed through every execution method. Cancelling a context
cancels every context derived from it, and a derived context never outlives
the deadline of any of its parents.
"""

import threading
import time
import weakref

from .errors import Cancelled, DeadlineExceeded


class Context:
    """Cancellable token with an optional monotonic deadline."""

    def __init__(self, *parents: "Context", deadline: float | None = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: "weakref.WeakSet[Context]" = weakref.WeakSet()
        self._reason: type[Exception] | None = None

        deadlines = [p.deadline for p in parents if p.deadline is not None]
        if deadline is not None:
            deadlines.append(deadline)
        self.deadline = min(deadlines) if deadlines else None

        for parent in parents:
            parent._adopt(self)

    @classmethod
    def background(cls) -> "Context":
        """A context that is never cancelled and has no deadline."""
        return cls()

    def with_cancel(self) -> "Context":
        return Context(self)

    def with_timeout(self, seconds: float) -> "Context":
        return Context(self, deadline=time.monotonic() + seconds)

    def merge(self, other: "Context") -> "Context":
        """A context that ends when either this one or `other` ends."""
        return Context(self, other)

    def _adopt(self, child: "Context") -> None:
        with self._lock:
            reason = self._reason
            if reason is None:
                self._children.add(child)
        if reason is not None:
            child._cancel(reason)

    def _cancel(self, reason: type[Exception]) -> None:
        with self._lock:
            if self._reason is not None:
                return
            self._reason = reason
            children = list(self._children)
            self._children = weakref.WeakSet()
        self._event.set()
        for child in children:
            child._cancel(reason)

    def cancel(self) -> None:
        self._cancel(Cancelled)

    def remaining(self) -> float | None:
        """Seconds left before the deadline, None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def done(self) -> bool:
        return self.err() is not None

    def err(self) -> Exception | None:
        """The error describing why the context ended, None while alive."""
        if self._reason is not None:
            return self._reason("context cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DeadlineExceeded("context deadline exceeded")
        return None

    def raise_if_done(self) -> None:
        err = self.err()
        if err is not None:
            raise err

    def sleep(self, seconds: float) -> None:
        """Wait `seconds`, raising as soon as the context ends."""
        self.raise_if_done()
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._event.wait(remaining)
            self.raise_if_done()
            # Event.wait can return a hair early
            raise DeadlineExceeded("context deadline exceeded")
        if self._event.wait(seconds):
            self.raise_if_done()


def ensure(ctx: Context | None) -> Context:
    return ctx if ctx is not None else Context.background()
