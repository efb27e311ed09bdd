from __future__ import annotations

import pytest

from mapred_verify.bench import verifiers
from mapred_verify.bench.types import ScenarioKind

MISS = {"not_found": {"bucket": "mrv_missing", "key": "mrv_missing"}}


def test_map_count_ignores_not_found_markers():
    assert verifiers.map_count(ScenarioKind.MISSING, [MISS, MISS], 0).passed
    assert verifiers.map_count(ScenarioKind.ENTRIES, ["1", "1", MISS], 2).passed


def test_map_count_failure_has_reason():
    v = verifiers.map_count(ScenarioKind.BUCKET, ["1"], 3)
    assert not v.passed
    assert "expected 3" in v.reason


@pytest.mark.parametrize("result", [[], [0], [MISS], [["not_found", "x"]]])
def test_reduce_count_zero(result):
    assert verifiers.reduce_count(ScenarioKind.MISSING, result, 0).passed


def test_reduce_count():
    assert verifiers.reduce_count(ScenarioKind.BUCKET, [1000], 1000).passed
    assert not verifiers.reduce_count(ScenarioKind.BUCKET, [999], 1000).passed
    assert not verifiers.reduce_count(ScenarioKind.BUCKET, {"error": "boom"}, 1000).passed


def test_link_count_is_two_per_input():
    assert verifiers.link_count(ScenarioKind.ENTRIES, [["b", "k", "prev"]] * 6, 3).passed
    assert not verifiers.link_count(ScenarioKind.ENTRIES, [["b", "k", "prev"]] * 5, 3).passed


def test_resolve_unknown():
    assert verifiers.resolve("map_count") is verifiers.map_count
    with pytest.raises(KeyError, match="unknown verifier"):
        verifiers.resolve("nope")
