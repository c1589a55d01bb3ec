import threading
import time

import pytest

from godis.syncutil import AtomicBool, Wait


def test_atomic_bool_defaults_to_false():
    flag = AtomicBool()
    assert flag.get() is False
    assert not flag


def test_atomic_bool_set_and_get():
    flag = AtomicBool()
    flag.set(True)
    assert flag.get() is True
    flag.set(False)
    assert flag.get() is False


def test_atomic_bool_concurrent_writers_leave_a_written_value():
    flag = AtomicBool()
    threads = [threading.Thread(target=flag.set, args=(i % 2 == 0,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert flag.get() in (True, False)
    flag.set(True)
    assert bool(flag) is True


def test_wait_with_zero_counter_does_not_time_out():
    wait = Wait()
    assert wait.wait_with_timeout(0.05) is False


def test_wait_with_pending_work_times_out():
    wait = Wait()
    wait.add(1)
    assert wait.wait_with_timeout(0.05) is True
    wait.done()
    assert wait.wait_with_timeout(0.05) is False


def test_wait_released_by_other_thread():
    wait = Wait()
    wait.add(2)
    assert wait.wait_with_timeout(0.01) is True
    finished = []

    def worker():
        time.sleep(0.05)
        finished.append(True)
        wait.done()

    workers = [threading.Thread(target=worker) for _ in range(2)]
    for thread in workers:
        thread.start()
    wait.wait()
    assert finished == [True, True]
    assert wait.wait_with_timeout(0.01) is False
    for thread in workers:
        thread.join()


def test_wait_negative_counter_raises():
    wait = Wait()
    with pytest.raises(ValueError):
        wait.done()
    wait.add(1)
    with pytest.raises(ValueError):
        wait.add(-2)
    assert wait.wait_with_timeout(0.01) is True