from __future__ import annotations

import dataclasses
import logging
from typing import Any, Mapping, Optional, Set

from mapred_verify.store.client import BackendDescriptor

logger = logging.getLogger(__name__)

# Backend kinds that answer secondary-index queries.
INDEX_CAPABLE = frozenset({"leveldb", "eleveldb", "memory"})
MULTI = "multi"

# One hop covers the store's own layout (multi -> named leaf); the second
# allows a single nested compound backend and nothing deeper.
MAX_DEPTH = 2

_ALIASES = {
    "riak_kv_eleveldb_backend": "leveldb",
    "riak_kv_memory_backend": "memory",
    "riak_kv_bitcask_backend": "bitcask",
    "riak_kv_multi_backend": "multi",
}


def normalize_kind(kind: Any) -> str:
    k = str(kind or "").strip().lower()
    return _ALIASES.get(k, k)


def _as_descriptor(entry: Any) -> BackendDescriptor:
    if isinstance(entry, BackendDescriptor):
        return entry
    if isinstance(entry, Mapping):
        return BackendDescriptor(
            kind=normalize_kind(entry.get("kind")),
            bucket_backend=entry.get("bucket_backend"),
            backends=dict(entry.get("backends") or {}),
            default=entry.get("default"),
        )
    return BackendDescriptor(kind=normalize_kind(entry))


def supports_secondary_indexes(descriptor: BackendDescriptor, max_depth: int = MAX_DEPTH) -> bool:
    """
    Decide whether the bucket's backend can serve index queries.

    A compound (multi) backend defers to one of its named sub-backends: the
    one the bucket names, else its default. Resolution is bounded by
    ``max_depth`` hops and fails closed: a cycle, an unknown name, an
    unrecognised kind or running out of depth all count as unsupported.
    """
    current = _as_descriptor(descriptor)
    seen: Set[str] = set()
    depth = 0
    while True:
        kind = normalize_kind(current.kind)
        if kind in INDEX_CAPABLE:
            return True
        if kind != MULTI:
            logger.info("backend kind %r has no secondary index support", kind)
            return False
        if depth >= max_depth:
            logger.warning("backend indirection deeper than %d hops; treating as unsupported", max_depth)
            return False
        name: Optional[str] = current.bucket_backend or current.default
        if not name or name not in current.backends:
            logger.warning("multi backend names unknown sub-backend %r; treating as unsupported", name)
            return False
        if name in seen:
            logger.warning("backend indirection loops at %r; treating as unsupported", name)
            return False
        seen.add(name)
        child = _as_descriptor(current.backends[name])
        # nested compound backends resolve names against the same table
        if not child.backends:
            child = dataclasses.replace(child, backends=current.backends)
        current = child
        depth += 1


class CapabilityProbe:
    """Asks the store once per call which backend serves a bucket."""

    def __init__(self, client, max_depth: int = MAX_DEPTH) -> None:
        self.client = client
        self.max_depth = max_depth

    def index_supported(self, bucket: str) -> bool:
        descriptor = self.client.backend_capability(bucket)
        ok = supports_secondary_indexes(descriptor, self.max_depth)
        logger.debug("bucket %s backend %s: secondary indexes %s",
                     bucket, descriptor.kind, "supported" if ok else "unsupported")
        return ok
