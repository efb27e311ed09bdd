from __future__ import annotations

from typing import List

from mapred_verify.bench.types import FixtureRecord, Indexes, Links

BUCKET = "mr_validate"
KEY_PREFIX = "mrv"
MISSING_KEY = "mrv_missing"

BIN_INDEX = "field1_bin"
INT_INDEX = "field2_int"
TOKEN_EVEN = "val1a"
TOKEN_ODD = "val1b"

FILLER = b"0"
SENTINEL = b"1"


def key_for(n: int) -> str:
    # plain decimal, so "mrv10" sorts before "mrv2"
    return f"{KEY_PREFIX}{n}"


def body_for(size: int) -> bytes:
    if size < 1:
        raise ValueError(f"body size must be >= 1, got {size}")
    return FILLER * (size - 1) + SENTINEL


def indexes_for(n: int) -> Indexes:
    return Indexes(bin_field=TOKEN_EVEN if n % 2 == 0 else TOKEN_ODD, int_field=n)


def links_for(n: int) -> Links:
    # ends point at mrv0 / mrv{K+1}, which never exist
    return Links(prev=key_for(n - 1), next=key_for(n + 1))


def all_keys(key_count: int) -> List[str]:
    return [key_for(n) for n in range(1, key_count + 1)]


class DataGenerator:
    """
    Builds the fixture records for one bucket.

    Records are numbered 1..K; each carries prev/next links forming a ring
    over the population and two secondary index values.
    """

    def __init__(self, bucket: str = BUCKET, body_size: int = 1) -> None:
        self.bucket = bucket
        self.body = body_for(body_size)

    def record(self, n: int) -> FixtureRecord:
        return FixtureRecord(
            bucket=self.bucket,
            n=n,
            key=key_for(n),
            body=self.body,
            links=links_for(n),
            indexes=indexes_for(n),
        )

    def records(self, key_count: int) -> List[FixtureRecord]:
        return [self.record(n) for n in range(key_count, 0, -1)]
