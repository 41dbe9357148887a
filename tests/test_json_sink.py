import json
import os

import pytest

from core.errors import HistoryDirError, StoreWriteError
from output.json_sink import HistoryLog, JsonSink
from tests.helpers import NOON


def test_sink_appends_one_line_per_record(tmp_path):
    path = tmp_path / "out" / "events.ndjson"
    sink = JsonSink(path)
    sink.write({"b": 2, "a": 1})
    sink.write({"c": 3})
    lines = path.read_text().splitlines()
    assert lines == ['{"a":1,"b":2}', '{"c":3}']


class TestHistoryLog:
    def test_file_named_by_day(self, history_dir):
        log = HistoryLog(history_dir)
        assert log.path_for(NOON) == os.path.join(history_dir, "2024-05-14")

    def test_append_goes_to_the_records_day(self, history_dir):
        log = HistoryLog(history_dir)
        log.ensure_directory()
        path = log.append({"timestamp": NOON, "sub": 1})
        path2 = log.append({"timestamp": NOON + 86400, "sub": 2})
        assert path != path2
        with open(path) as f:
            assert [json.loads(l)["sub"] for l in f] == [1]

    def test_append_never_rewrites(self, history_dir):
        log = HistoryLog(history_dir)
        log.ensure_directory()
        for i in range(3):
            log.append({"timestamp": NOON + i, "sub": i})
        with open(log.path_for(NOON)) as f:
            assert [json.loads(l)["sub"] for l in f] == [0, 1, 2]

    def test_directory_creation_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(HistoryDirError):
            HistoryLog(str(blocker / "history")).ensure_directory()

    def test_append_failure(self, tmp_path):
        log = HistoryLog(str(tmp_path))
        os.mkdir(log.path_for(NOON))  # a directory where the file should be
        with pytest.raises(StoreWriteError):
            log.append({"timestamp": NOON})
