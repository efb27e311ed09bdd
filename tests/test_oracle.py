from __future__ import annotations

import random

import pytest

from mapred_verify.bench.data_gen import BUCKET, MISSING_KEY
from mapred_verify.bench.oracle import BUCKET_TIMEOUT_MS, GroundTruthOracle, key_range_end
from mapred_verify.bench.types import ScenarioKind


def oracle(k: int, seed: int = 7) -> GroundTruthOracle:
    return GroundTruthOracle(BUCKET, k, random.Random(seed))


def test_entries_expected_is_length_of_the_sample():
    case = oracle(1000).entries()
    assert case.kind is ScenarioKind.ENTRIES
    assert case.expected == len(case.inputs)
    assert 0 < case.expected < 1000
    assert all(b == BUCKET for b, _ in case.inputs)


def test_entries_sample_is_reproducible_with_a_seed():
    assert oracle(200, seed=3).entries().inputs == oracle(200, seed=3).entries().inputs


def test_bucket_expects_every_key_and_long_timeout():
    case = oracle(1000).bucket_job()
    assert case.inputs == BUCKET
    assert case.expected == 1000
    assert case.timeout_ms == BUCKET_TIMEOUT_MS


def test_bucket_with_no_keys_expects_zero():
    assert oracle(0).bucket_job().expected == 0


def test_filter_for_twenty_keys():
    o = oracle(20)
    assert o.expected_filter_keys([["or", [["ends_with", "1"]], [["ends_with", "5"]]]]) == \
        ["mrv1", "mrv5", "mrv11", "mrv15"]
    case = o.filter_job()
    assert case.expected == 4
    assert case.inputs["bucket"] == BUCKET


@pytest.mark.parametrize("refs,name", [(1, "missing object"), (2, "missing object twice")])
def test_missing_expects_nothing(refs, name):
    case = oracle(1000).missing(refs)
    assert case.name == name
    assert case.expected == 0
    assert case.inputs == [[MISSING_KEY, MISSING_KEY]] * refs


def test_key_range_end_uses_lexical_order():
    # sorted: mrv1 mrv10 mrv2 mrv3 mrv4 ...
    assert key_range_end(10) == "mrv4"
    assert key_range_end(1000) == sorted(f"mrv{n}" for n in range(1, 1001))[499]


def test_key_range_end_for_tiny_populations_is_empty_range():
    assert key_range_end(1) == "mrv0" < "mrv1"


@pytest.mark.parametrize("k", [1, 2, 7, 1000])
def test_index_expectations(k):
    cases = {c.name: c for c in oracle(k).index_cases()}
    assert cases["full bucket index"].expected == k
    assert cases["key range index"].expected == k // 2
    assert cases["binary index equality"].expected == k // 2
    assert cases["integer index equality"].expected == 1
    assert cases["integer index range"].expected == k // 2
    assert cases["integer index range"].inputs["end"] == k // 2
    assert all(c.needs_indexes for c in cases.values())
