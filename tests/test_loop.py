"""Event loop and periodic sync scheduling."""

import threading
import time

from client.loop import EventLoop, SyncScheduler
from vaultsync import NetworkError, SyncResult


class FakeClient:
    def __init__(self, error=None):
        self.calls = 0
        self.error = error
        self.thread = None

    def sync(self):
        self.calls += 1
        self.thread = threading.current_thread()
        if self.error is not None:
            raise self.error
        return SyncResult()


def test_post_runs_in_order():
    loop = EventLoop()
    seen = []
    loop.post(lambda: seen.append(1))
    loop.post(lambda: seen.append(2))
    assert loop.run_pending() == 2
    assert seen == [1, 2]
    assert loop.run_pending() == 0


def test_failing_callback_does_not_stop_loop():
    loop = EventLoop()
    seen = []

    def boom():
        raise RuntimeError("boom")

    loop.post(boom)
    loop.post(lambda: seen.append("after"))
    assert loop.run_pending() == 2
    assert seen == ["after"]


def test_call_every_posts_to_loop():
    loop = EventLoop()
    fired = threading.Event()
    seen = []

    def tick():
        seen.append(threading.current_thread())
        fired.set()

    loop.call_every(0.01, tick)
    deadline = time.monotonic() + 2
    while not fired.is_set() and time.monotonic() < deadline:
        loop.run_pending()
        time.sleep(0.01)
    loop.stop()
    assert seen
    assert all(t is threading.current_thread() for t in seen)


def test_stop_ends_run_forever():
    loop = EventLoop()
    loop.post(loop.stop)
    runner = threading.Thread(target=loop.run_forever, kwargs={"poll_interval": 0.01})
    runner.start()
    runner.join(timeout=2)
    assert not runner.is_alive()
    assert loop.stopped


def test_no_timers_after_stop():
    loop = EventLoop()
    loop.stop()
    loop.call_every(0.01, lambda: None)
    time.sleep(0.05)
    assert loop.run_pending() == 0


def test_scheduler_run_once_records_result():
    results = []
    client = FakeClient()
    sched = SyncScheduler(client, EventLoop(), interval=60, on_result=results.append)
    sched.run_once()
    assert isinstance(sched.last_result, SyncResult)
    assert sched.last_error is None
    assert results == [sched.last_result]


def test_scheduler_swallows_transport_errors_until_next_tick():
    client = FakeClient(error=NetworkError("offline"))
    sched = SyncScheduler(client, EventLoop(), interval=60)
    sched.run_once()
    assert isinstance(sched.last_error, NetworkError)
    assert sched.last_result is None

    client.error = None
    sched.run_once()
    assert sched.last_error is None
    assert isinstance(sched.last_result, SyncResult)
    assert client.calls == 2


def test_trigger_runs_on_loop_thread():
    loop = EventLoop()
    client = FakeClient()
    sched = SyncScheduler(client, loop, interval=60)
    sched.trigger()
    assert client.calls == 0
    loop.run_pending()
    assert client.calls == 1
    assert client.thread is threading.current_thread()
