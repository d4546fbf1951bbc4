"""Admission gating on slots and load average."""

import threading
import time

import pytest

from gtb.admission import AdmissionController, LoadSampleError


def _controller(loads=None, **kw):
    """Controller on a fake 2-CPU machine (threshold 4.0) fed from `loads`."""
    loads = list(loads or [0.0])

    def sample():
        return loads.pop(0) if len(loads) > 1 else loads[0]

    kw.setdefault("poll_interval", 0.001)
    return AdmissionController(load_sampler=sample, cpu_count=2, **kw)


def test_try_admit_respects_ceiling():
    ac = _controller(max_running=4)
    assert all(ac.try_admit() for _ in range(4))
    assert not ac.try_admit()
    assert ac.running == 4

    ac.release()
    assert ac.try_admit()
    assert ac.peak == 4


def test_try_admit_blocked_by_load():
    ac = _controller(loads=[4.5])
    assert not ac.try_admit()
    assert ac.running == 0


def test_load_at_threshold_is_admitted():
    ac = _controller(loads=[4.0])
    assert ac.try_admit()


def test_admit_waits_for_load_to_drop():
    sleeps = []
    ac = _controller(loads=[9.0, 8.0, 5.0, 3.9], sleep=sleeps.append)
    ac.admit()
    assert len(sleeps) == 3
    assert ac.running == 1


def test_admit_blocks_until_slot_released():
    ac = _controller(max_running=1)
    ac.admit()

    admitted = threading.Event()

    def second():
        ac.admit()
        admitted.set()

    t = threading.Thread(target=second)
    t.start()
    assert not admitted.wait(0.1)

    ac.release()
    assert admitted.wait(2)
    t.join()
    assert ac.peak == 1


def test_load_sample_error_is_fatal_and_frees_slot():
    def broken():
        raise OSError("no /proc/loadavg")

    ac = AdmissionController(max_running=1, load_sampler=broken, cpu_count=2)
    with pytest.raises(LoadSampleError, match="reading load average"):
        ac.admit()
    assert ac.running == 0

    ok = AdmissionController(max_running=1, load_sampler=lambda: 0.0, cpu_count=2)
    ok.admit()
    assert ok.running == 1


def test_slot_returned_when_load_sampler_fails():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise LoadSampleError("reading load average: gone")
        return 0.0

    ac = AdmissionController(max_running=1, load_sampler=flaky, cpu_count=1)
    with pytest.raises(LoadSampleError):
        ac.admit()
    start = time.monotonic()
    ac.admit()
    assert time.monotonic() - start < 1


def test_threshold_uses_load_factor():
    ac = AdmissionController(load_factor=1.5, load_sampler=lambda: 0.0, cpu_count=8)
    assert ac.threshold == 12.0


def test_invalid_ceiling():
    with pytest.raises(ValueError):
        AdmissionController(max_running=0)
