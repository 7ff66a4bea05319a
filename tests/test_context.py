"""
Test the cooperative cancellation context
"""

# Standard
import gc
import threading
import time

# Local
from condwait.context import WaitContext


def test_context_starts_active():
    """Make sure a fresh context is not cancelled and has no cause"""
    ctx = WaitContext()
    assert not ctx.cancelled
    assert ctx.cause is None


def test_cancel_keeps_first_cause():
    """Make sure only the first cancellation cause is kept"""
    ctx = WaitContext()
    ctx.cancel("first")
    ctx.cancel("second")
    assert ctx.cancelled
    assert ctx.cause == "first"


def test_sleep_runs_full_duration_when_active():
    """Make sure sleep returns False after the full duration if not cancelled"""
    ctx = WaitContext()
    start = time.monotonic()
    assert not ctx.sleep(0.05)
    assert time.monotonic() - start >= 0.04


def test_sleep_returns_immediately_when_cancelled():
    """Make sure sleeping on a cancelled context doesn't sleep at all"""
    ctx = WaitContext()
    ctx.cancel()
    start = time.monotonic()
    assert ctx.sleep(10)
    assert time.monotonic() - start < 1


def test_sleep_zero():
    """Make sure a non-positive sleep just reports the cancellation state"""
    ctx = WaitContext()
    assert not ctx.sleep(0)
    ctx.cancel()
    assert ctx.sleep(-1)


def test_cancel_from_other_thread_wakes_sleep():
    """Make sure a cancel from another thread wakes a sleeping waiter"""
    ctx = WaitContext()
    timer = threading.Timer(0.05, ctx.cancel, args=("shutdown",))
    timer.start()
    start = time.monotonic()
    try:
        assert ctx.sleep(10)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 5
    assert ctx.cause == "shutdown"


def test_parent_cancel_propagates_to_children():
    """Make sure cancelling a parent cancels its children but not the reverse"""
    parent = WaitContext()
    child = WaitContext(parent)
    other_child = WaitContext(parent)
    other_child.cancel("just me")
    assert not parent.cancelled
    assert not child.cancelled

    parent.cancel("stop all")
    assert child.cancelled
    assert child.cause == "stop all"
    assert other_child.cause == "just me"


def test_child_of_cancelled_parent_is_cancelled():
    """Make sure a child created under a cancelled parent starts cancelled"""
    parent = WaitContext()
    parent.cancel("already gone")
    child = WaitContext(parent)
    assert child.cancelled
    assert child.cause == "already gone"


def test_parent_does_not_keep_children_alive():
    """Make sure finished child contexts are released by a long-lived parent
    while live children still get cancelled
    """
    parent = WaitContext()
    for _ in range(1000):
        WaitContext(parent)
    live_child = WaitContext(parent)
    gc.collect()
    assert len(parent._children) == 1

    parent.cancel("done")
    assert live_child.cancelled
    assert live_child.cause == "done"
