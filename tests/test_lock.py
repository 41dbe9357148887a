import os

import pytest

from core.errors import LockContention
from core.lock import SingleInstanceLock


def test_second_holder_is_refused(tmp_path):
    path = tmp_path / "agent.lock"
    with SingleInstanceLock(path):
        with pytest.raises(LockContention):
            SingleInstanceLock(path).acquire()


def test_released_lock_can_be_retaken(tmp_path):
    path = tmp_path / "agent.lock"
    first = SingleInstanceLock(path)
    first.acquire()
    first.release()
    second = SingleInstanceLock(path)
    second.acquire()
    assert second.held
    second.release()
    assert not second.held


def test_records_pid(tmp_path):
    path = tmp_path / "run" / "agent.lock"
    with SingleInstanceLock(path):
        assert path.read_text().strip() == str(os.getpid())


def test_release_without_acquire_is_noop(tmp_path):
    SingleInstanceLock(tmp_path / "agent.lock").release()
