from __future__ import annotations

import logging

from mapred_verify.bench.data_gen import DataGenerator, key_for
from mapred_verify.bench.errors import FixtureError
from mapred_verify.store.client import DeleteOutcome, StoreClient, StoreError

logger = logging.getLogger(__name__)


def clear_bound(key_count: int) -> int:
    # K * 1.25 rounded half up, so a previous larger population is removed too
    return (5 * key_count + 2) // 4


def clear(client: StoreClient, bucket: str, upper_bound: int) -> int:
    """
    Delete keys mrv{upper_bound} .. mrv1, one at a time.

    A key that is already gone counts as deleted. Any other failure stops
    the clear and raises FixtureError; nothing is retried.
    Returns the number of keys that actually existed.
    """
    existed = 0
    for n in range(upper_bound, 0, -1):
        key = key_for(n)
        try:
            outcome = client.delete(bucket, key, 1)
        except StoreError as e:
            raise FixtureError("delete", key, e) from e
        if outcome is DeleteOutcome.OK:
            existed += 1
    logger.debug("cleared %s: %d of %d candidate keys existed", bucket, existed, upper_bound)
    return existed


def populate(client: StoreClient, bucket: str, body_size: int, count: int) -> None:
    gen = DataGenerator(bucket=bucket, body_size=body_size)
    for record in gen.records(count):
        try:
            client.put(record, 0)
        except StoreError as e:
            raise FixtureError("put", record.key, e) from e
    logger.debug("populated %s with %d records of %d bytes", bucket, count, body_size)
