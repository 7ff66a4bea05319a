"""
The WaitContext is the cancellation handle shared between a running wait and
whoever may want to stop it (another thread, a signal handler, ...)
"""

# Standard
from typing import Optional
import threading
import weakref

# First Party
import alog

log = alog.use_channel("WTCTX")


class WaitContext:
    """Cooperative cancellation for one or more waits. Cancelling wakes any
    wait that is currently sleeping between probes.
    """

    def __init__(self, parent: Optional["WaitContext"] = None):
        """Construct with an optional parent context

        Args:
            parent:  Optional[WaitContext]
                If given, cancelling the parent also cancels this context
        """
        self._cancelled = threading.Event()
        self._cause = None
        self._children = weakref.WeakSet()
        self._lock = threading.Lock()
        if parent is not None:
            parent._add_child(self)

    ## Public ##################################################################

    def cancel(self, cause: str = "context cancelled"):
        """Cancel the context and every child context. Only the first cause is
        kept.
        """
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cause = cause
            self._cancelled.set()
            children = list(self._children)
        log.debug("Cancelled wait context: %s", cause)
        for child in children:
            child.cancel(cause)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def cause(self) -> Optional[str]:
        """The reason given to cancel(), None while still active"""
        return self._cause

    def sleep(self, seconds: float) -> bool:
        """Sleep for up to the given number of seconds, returning early if the
        context is cancelled

        Returns:
            cancelled:  bool
                True if the context was cancelled before or during the sleep
        """
        if seconds <= 0:
            return self.cancelled
        return self._cancelled.wait(timeout=seconds)

    ## Implementation ##########################################################

    def _add_child(self, child: "WaitContext"):
        with self._lock:
            self._children.add(child)
            cause = self._cause if self._cancelled.is_set() else None
        if cause is not None:
            child.cancel(cause)
