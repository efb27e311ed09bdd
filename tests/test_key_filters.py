from __future__ import annotations

import pytest

from mapred_verify.bench.data_gen import all_keys
from mapred_verify.bench.key_filters import build_filter, filter_keys
from mapred_verify.bench.oracle import DEFAULT_FILTER


def test_ends_with_one_or_five_over_twenty_keys():
    assert set(filter_keys(all_keys(20), DEFAULT_FILTER)) == {"mrv1", "mrv5", "mrv11", "mrv15"}


def test_filter_keeps_input_order():
    assert filter_keys(["mrv15", "mrv2", "mrv1"], DEFAULT_FILTER) == ["mrv15", "mrv1"]


def test_transform_chain():
    spec = [["tokenize", "v", 2], ["string_to_int"], ["between", 3, 5]]
    assert filter_keys(all_keys(8), spec) == ["mrv3", "mrv4", "mrv5"]


def test_between_exclusive():
    spec = [["tokenize", "v", 2], ["string_to_int"], ["between", 3, 5, False]]
    assert filter_keys(all_keys(8), spec) == ["mrv4"]


def test_untransformable_key_does_not_match():
    assert build_filter([["string_to_int"], ["greater_than", 0]])("mrv1") is False


def test_and_not_combinators():
    spec = [["and", [["starts_with", "mrv1"]], [["not", [["ends_with", "0"]]]]]]
    assert filter_keys(all_keys(12), spec) == ["mrv1", "mrv11", "mrv12"]


@pytest.mark.parametrize("spec,key,expected", [
    ([["to_upper"], ["eq", "MRV3"]], "mrv3", True),
    ([["set_member", "mrv1", "mrv2"]], "mrv2", True),
    ([["matches", "^mrv[0-9]$"]], "mrv10", False),
    ([["similar_to", "mrv12", 1]], "mrv13", True),
    ([["similar_to", "mrv12", 1]], "mrv134", False),
    ([["urldecode"], ["eq", "a b"]], "a%20b", True),
    ([["neq", "mrv1"]], "mrv1", False),
])
def test_predicates(spec, key, expected):
    assert build_filter(spec)(key) is expected


@pytest.mark.parametrize("spec", [
    [],
    [["no_such_filter"]],
    [["or", [["ends_with", "1"]]]],
    [["not", [["eq", 1]], [["eq", 2]]]],
    [["ends_with"]],
])
def test_malformed_specs_rejected(spec):
    with pytest.raises(ValueError):
        build_filter(spec)
