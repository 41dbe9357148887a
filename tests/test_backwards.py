import pytest

from core.backwards import ReadBackwards


def lines_of(tmp_path, content, **kwargs):
    path = tmp_path / "log"
    path.write_bytes(content)
    return list(ReadBackwards(path, **kwargs))


@pytest.mark.parametrize("block_size", [1, 2, 3, 7, 8192])
def test_reverses_lines(tmp_path, block_size):
    content = b"first\nsecond line\n\nthird\n"
    assert lines_of(tmp_path, content, block_size=block_size) == ["third", "", "second line", "first"]


def test_empty_file(tmp_path):
    assert lines_of(tmp_path, b"") == []


def test_single_line(tmp_path):
    assert lines_of(tmp_path, b'{"a":1}\n', block_size=2) == ['{"a":1}']


@pytest.mark.parametrize("block_size", [1, 4, 8192])
def test_skips_unterminated_tail(tmp_path, block_size):
    content = b"one\ntwo\n{\"sub\":"
    assert lines_of(tmp_path, content, block_size=block_size) == ["two", "one"]


def test_unterminated_only_line_is_skipped(tmp_path):
    assert lines_of(tmp_path, b"partial", block_size=3) == []


def test_keeps_tail_when_asked(tmp_path):
    content = b"one\ntwo"
    assert lines_of(tmp_path, content, skip_partial=False) == ["two", "one"]


def test_strips_carriage_returns(tmp_path):
    assert lines_of(tmp_path, b"a\r\nb\r\n") == ["b", "a"]


def test_is_lazy(tmp_path):
    path = tmp_path / "log"
    path.write_bytes(b"".join(b"line %d\n" % i for i in range(10000)))
    it = iter(ReadBackwards(path, block_size=64))
    assert next(it) == "line 9999"
    assert next(it) == "line 9998"


def test_rejects_bad_block_size(tmp_path):
    with pytest.raises(ValueError):
        ReadBackwards(tmp_path / "log", block_size=0)
