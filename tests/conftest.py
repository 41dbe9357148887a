import pytest

from tests.helpers import NOON


@pytest.fixture
def now():
    return NOON


@pytest.fixture
def latest_path(tmp_path):
    return str(tmp_path / "latest.json")


@pytest.fixture
def history_dir(tmp_path):
    return str(tmp_path / "history")
