from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from mapred_verify.bench.data_gen import BIN_INDEX, INT_INDEX
from mapred_verify.bench.errors import ScenarioExecutionError, SetupError
from mapred_verify.bench.types import FixtureRecord
from mapred_verify.store.client import BackendDescriptor, DeleteOutcome, StoreError

logger = logging.getLogger(__name__)


def _key_path(bucket: str, key: str) -> str:
    return f"/buckets/{quote(bucket, safe='')}/keys/{quote(key, safe='')}"


def link_header(record: FixtureRecord) -> str:
    return ", ".join(
        f'<{_key_path(record.bucket, key)}>; riaktag="{tag}"'
        for key, tag in ((record.links.prev, "prev"), (record.links.next, "next"))
    )


def index_headers(record: FixtureRecord) -> Dict[str, str]:
    return {
        f"x-riak-index-{BIN_INDEX}": record.indexes.bin_field,
        f"x-riak-index-{INT_INDEX}": str(record.indexes.int_field),
    }


class HttpStoreClient:
    """
    Store client speaking the key/value store's HTTP interface.

    Aggregation jobs go to POST /mapred as {"inputs", "query"[, "timeout"]}.
    The store does not publish its multi-backend table over HTTP, so
    ``backends``/``default`` come from local settings.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        verify_tls: bool = True,
        backends: Optional[Dict[str, Any]] = None,
        default_backend: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.backends = dict(backends or {})
        self.default_backend = default_backend
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout,
                                  verify=verify_tls, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "HttpStoreClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def connect(self) -> "HttpStoreClient":
        try:
            r = self._http.get("/ping")
        except httpx.HTTPError as e:
            raise SetupError(f"cannot reach store at {self.base_url}: {e}") from e
        if r.status_code != 200:
            raise SetupError(f"store at {self.base_url} answered /ping with HTTP {r.status_code}")
        return self

    def put(self, record: FixtureRecord, w: int = 0) -> None:
        headers = {"Content-Type": "application/octet-stream", "Link": link_header(record)}
        headers.update(index_headers(record))
        params = {"w": w} if w > 0 else None
        try:
            r = self._http.put(_key_path(record.bucket, record.key), content=record.body,
                               headers=headers, params=params)
        except httpx.HTTPError as e:
            raise StoreError(str(e)) from e
        if r.status_code not in (200, 201, 204):
            raise StoreError(f"PUT {record.key}: HTTP {r.status_code} {r.text[:200]}")

    def delete(self, bucket: str, key: str, rw: int = 1) -> DeleteOutcome:
        try:
            r = self._http.delete(_key_path(bucket, key), params={"rw": rw})
        except httpx.HTTPError as e:
            raise StoreError(str(e)) from e
        if r.status_code == 404:
            return DeleteOutcome.NOT_FOUND
        if r.status_code in (200, 204):
            return DeleteOutcome.OK
        raise StoreError(f"DELETE {key}: HTTP {r.status_code} {r.text[:200]}")

    def run_aggregation_job(self, inputs: Any, query: Any, timeout_ms: Optional[int] = None) -> Any:
        body: Dict[str, Any] = {"inputs": inputs, "query": query}
        # explicit timeouts are passed to the store and cover the HTTP wait as well
        http_timeout = self.timeout
        if timeout_ms is not None:
            body["timeout"] = timeout_ms
            http_timeout = max(self.timeout, timeout_ms / 1000)
        logger.debug("POST /mapred inputs=%.120s", json.dumps(inputs))
        try:
            r = self._http.post("/mapred", json=body, timeout=http_timeout)
        except httpx.HTTPError as e:
            raise ScenarioExecutionError(f"mapred request failed: {e}") from e
        if r.status_code != 200:
            raise ScenarioExecutionError(f"mapred returned HTTP {r.status_code}: {r.text[:500]}")
        try:
            return r.json()
        except ValueError as e:
            raise ScenarioExecutionError(f"mapred returned non-JSON body: {r.text[:200]!r}") from e

    def _get_json(self, path: str) -> Dict[str, Any]:
        try:
            r = self._http.get(path)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ScenarioExecutionError(f"GET {path} failed: {e}") from e
        if not isinstance(data, dict):
            raise ScenarioExecutionError(f"GET {path}: expected an object, got {type(data).__name__}")
        return data

    def backend_capability(self, bucket: str) -> BackendDescriptor:
        stats = self._get_json("/stats")
        kind = stats.get("storage_backend") or ""
        props = self._get_json(f"/buckets/{quote(bucket, safe='')}/props").get("props") or {}
        return BackendDescriptor(
            kind=str(kind),
            bucket_backend=props.get("backend"),
            backends=dict(self.backends),
            default=self.default_backend,
        )
