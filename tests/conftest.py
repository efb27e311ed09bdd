from __future__ import annotations

import random

import pytest

from mapred_verify.bench.data_gen import BUCKET
from mapred_verify.bench.populator import populate
from tests.fakes import InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def populated(store: InMemoryStore) -> InMemoryStore:
    populate(store, BUCKET, 1, 20)
    return store


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
