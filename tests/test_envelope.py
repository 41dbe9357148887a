import base64
import gzip
import json

from core.metrics import default_snapshot, zero_deltas
from output.envelope import build_envelope, compress, encode, to_json


def decode(line):
    if line.startswith("{"):
        return json.loads(line)
    return json.loads(gzip.decompress(base64.b64decode(line)))


def test_envelope_shape():
    env = build_envelope({"sub": 1})
    assert env == {"version": 1, "error": 0, "errorString": "", "data": {"sub": 1}}


def test_raw_output_has_sorted_keys():
    raw = encode(build_envelope({"b": 1, "a": 2}), compressed=False)
    assert raw == '{"data": {"a": 2, "b": 1}, "error": 0, "errorString": "", "version": 1}'


def test_compressed_when_smaller():
    env = build_envelope(zero_deltas(default_snapshot()))
    out = encode(env)
    assert len(out) < len(to_json(env))
    assert decode(out) == env


def test_raw_when_compression_does_not_help():
    env = build_envelope(None, error=1, error_string="x")
    out = encode(env)
    assert out == to_json(env)


def test_never_longer_than_raw():
    for data in (None, {}, {"a": 1}, zero_deltas(default_snapshot())):
        env = build_envelope(data)
        assert len(encode(env)) <= len(to_json(env))


def test_compressed_form_is_single_line_and_reproducible():
    text = to_json(build_envelope(zero_deltas(default_snapshot())))
    packed = compress(text)
    assert "\n" not in packed
    assert packed == compress(text)
