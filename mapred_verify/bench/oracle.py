from __future__ import annotations

import random
from typing import Any, List, Optional

from mapred_verify.bench import data_gen
from mapred_verify.bench.data_gen import all_keys, key_for
from mapred_verify.bench.key_filters import filter_keys
from mapred_verify.bench.types import ScenarioKind, SubCase

# full-bucket jobs get a generous explicit timeout; everything else uses the transport default
BUCKET_TIMEOUT_MS = 600_000

# key filter used by the "filtered bucket mapred" sub-case
DEFAULT_FILTER = [["or", [["ends_with", "1"]], [["ends_with", "5"]]]]


def key_range_end(key_count: int) -> str:
    """
    Upper bound of a $key range holding exactly K/2 fixture keys.

    Sorts all K keys lexically ("mrv10" < "mrv2") and takes the (K/2)-th, so
    [mrv1, end] covers the K/2 lexically smallest keys. O(K log K) per call.
    For K < 2 there is no such key; "mrv0" sorts below "mrv1" and gives an
    empty range.
    """
    half = key_count // 2
    if half == 0:
        return key_for(0)
    return sorted(all_keys(key_count))[half - 1]


class GroundTruthOracle:
    """
    Builds each sub-case's inputs together with the answer the store
    should give, computed from the fixture layout alone.
    """

    def __init__(self, bucket: str, key_count: int, rng: Optional[random.Random] = None) -> None:
        self.bucket = bucket
        self.key_count = key_count
        self.rng = rng if rng is not None else random.Random()

    # -- map/reduce inputs -------------------------------------------------

    def entries(self) -> SubCase:
        # the sampled list itself is the input; its length is the answer
        inputs = [[self.bucket, key_for(n)]
                  for n in range(1, self.key_count + 1)
                  if self.rng.randint(1, 2) == 2]
        return SubCase("discrete entries", ScenarioKind.ENTRIES, inputs, len(inputs))

    def bucket_job(self) -> SubCase:
        return SubCase("full bucket mapred", ScenarioKind.BUCKET, self.bucket, self.key_count,
                       timeout_ms=BUCKET_TIMEOUT_MS)

    def filter_job(self, spec: Optional[List[Any]] = None) -> SubCase:
        spec = spec if spec is not None else DEFAULT_FILTER
        expected = self.expected_filter_keys(spec)
        inputs = {"bucket": self.bucket, "key_filters": spec}
        return SubCase("filtered bucket mapred", ScenarioKind.FILTER, inputs, len(expected))

    def expected_filter_keys(self, spec: List[Any]) -> List[str]:
        return filter_keys(all_keys(self.key_count), spec)

    def missing(self, references: int = 1) -> SubCase:
        inputs = [[data_gen.MISSING_KEY, data_gen.MISSING_KEY] for _ in range(references)]
        name = "missing object" if references == 1 else "missing object twice"
        return SubCase(name, ScenarioKind.MISSING, inputs, 0)

    # -- secondary index inputs --------------------------------------------

    def index_full_bucket(self) -> SubCase:
        inputs = {"bucket": self.bucket, "index": "$bucket", "key": self.bucket}
        return SubCase("full bucket index", ScenarioKind.INDEX, inputs, self.key_count,
                       timeout_ms=BUCKET_TIMEOUT_MS, needs_indexes=True)

    def index_key_range(self) -> SubCase:
        inputs = {"bucket": self.bucket, "index": "$key",
                  "start": key_for(1), "end": key_range_end(self.key_count)}
        return SubCase("key range index", ScenarioKind.INDEX, inputs, self.key_count // 2,
                       needs_indexes=True)

    def index_bin_equality(self) -> SubCase:
        inputs = {"bucket": self.bucket, "index": data_gen.BIN_INDEX, "key": data_gen.TOKEN_EVEN}
        return SubCase("binary index equality", ScenarioKind.INDEX, inputs, self.key_count // 2,
                       needs_indexes=True)

    def index_int_equality(self) -> SubCase:
        inputs = {"bucket": self.bucket, "index": data_gen.INT_INDEX, "key": 1}
        return SubCase("integer index equality", ScenarioKind.INDEX, inputs,
                       1 if self.key_count >= 1 else 0, needs_indexes=True)

    def index_int_range(self) -> SubCase:
        inputs = {"bucket": self.bucket, "index": data_gen.INT_INDEX,
                  "start": 1, "end": self.key_count // 2}
        return SubCase("integer index range", ScenarioKind.INDEX, inputs, self.key_count // 2,
                       needs_indexes=True)

    def index_cases(self) -> List[SubCase]:
        return [
            self.index_full_bucket(),
            self.index_key_range(),
            self.index_bin_equality(),
            self.index_int_equality(),
            self.index_int_range(),
        ]
