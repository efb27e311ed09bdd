from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from mapred_verify.bench.types import FixtureRecord


class StoreError(Exception):
    """A put/delete the store refused or could not complete."""


class DeleteOutcome(enum.Enum):
    OK = "ok"
    NOT_FOUND = "notfound"


@dataclass
class BackendDescriptor:
    kind: str                              # e.g. "leveldb", "bitcask", "memory", "multi"
    bucket_backend: Optional[str] = None   # sub-backend named by the bucket props (multi only)
    backends: Dict[str, Any] = field(default_factory=dict)
    default: Optional[str] = None


class StoreClient(Protocol):
    def connect(self) -> "StoreClient": ...

    def put(self, record: FixtureRecord, w: int = 0) -> None: ...

    def delete(self, bucket: str, key: str, rw: int = 1) -> DeleteOutcome: ...

    def run_aggregation_job(self, inputs: Any, query: Any, timeout_ms: Optional[int] = None) -> Any: ...

    def backend_capability(self, bucket: str) -> BackendDescriptor: ...
