from hypothesis import assume, given
from hypothesis import strategies as st

from core.aggregator import ROLLOVER_LIMIT, Aggregator, delta
from core.metrics import CANONICAL_METRICS, default_snapshot

counts = st.integers(min_value=0, max_value=10 ** 12)


@given(counts, counts)
def test_growth_is_difference(a, b):
    previous, current = min(a, b), max(a, b)
    assert delta(previous, current) == current - previous


@given(counts)
def test_unchanged_is_zero(value):
    assert delta(value, value) == 0


@given(counts, counts)
def test_decrease_counts_whole_current_value(a, b):
    assume(a != b)
    previous, current = max(a, b), min(a, b)
    assert delta(previous, current) == current


@given(counts)
def test_no_previous_counts_whole_current_value(value):
    assert delta(None, value) == value


class TestAggregator:
    def test_fills_every_delta_field(self):
        previous = default_snapshot()
        previous["sub"] = 3
        current = default_snapshot()
        current["sub"] = 10
        deltas = Aggregator(previous).update(current)
        assert current["sub_delta"] == 7
        assert deltas["sub"] == 7
        for name in CANONICAL_METRICS:
            assert name + "_delta" in current

    def test_no_baseline_uses_current_values(self):
        current = default_snapshot()
        current["sub_fail"] = 4
        Aggregator(None).update(current)
        assert current["sub_fail_delta"] == 4
        assert current["sub_delta"] == 0

    def test_metric_missing_from_baseline(self):
        previous = {"sub": 1}
        current = default_snapshot()
        current["truncated"] = 2
        Aggregator(previous).update(current)
        assert current["truncated_delta"] == 2

    def test_rollover_rewrites_stored_value_only(self):
        previous = default_snapshot()
        previous["sub"] = 10
        current = default_snapshot()
        current["sub"] = 2_000_000_050
        agg = Aggregator(previous)
        deltas = agg.update(current)
        rolled = agg.rollover(current, deltas)
        assert rolled == ["sub"]
        assert current["sub"] == 2_000_000_040
        assert current["sub_delta"] == 2_000_000_040

    def test_rollover_threshold_is_exclusive(self):
        current = default_snapshot()
        current["sub_size"] = ROLLOVER_LIMIT
        deltas = Aggregator(None).update(current)
        assert Aggregator.rollover(current, deltas) == []
        assert current["sub_size"] == ROLLOVER_LIMIT
