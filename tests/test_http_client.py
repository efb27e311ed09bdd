from __future__ import annotations

import json

import httpx
import pytest

from mapred_verify.bench.data_gen import DataGenerator
from mapred_verify.bench.errors import ScenarioExecutionError, SetupError
from mapred_verify.store.client import DeleteOutcome, StoreError
from mapred_verify.store.http_client import HttpStoreClient


def client_for(handler, **kw) -> HttpStoreClient:
    return HttpStoreClient("http://store:8098", transport=httpx.MockTransport(handler), **kw)


def test_put_sends_links_and_indexes():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["headers"] = request.headers
        seen["body"] = request.content
        return httpx.Response(204)

    client_for(handler).put(DataGenerator(body_size=3).record(2))
    assert seen["method"] == "PUT"
    assert seen["path"] == "/buckets/mr_validate/keys/mrv2"
    assert seen["body"] == b"001"
    assert seen["headers"]["x-riak-index-field1_bin"] == "val1a"
    assert seen["headers"]["x-riak-index-field2_int"] == "2"
    assert '</buckets/mr_validate/keys/mrv1>; riaktag="prev"' in seen["headers"]["link"]
    assert '</buckets/mr_validate/keys/mrv3>; riaktag="next"' in seen["headers"]["link"]


def test_put_failure_raises_store_error():
    with pytest.raises(StoreError):
        client_for(lambda r: httpx.Response(503, text="overload")).put(DataGenerator().record(1))


@pytest.mark.parametrize("status,outcome", [(204, DeleteOutcome.OK), (404, DeleteOutcome.NOT_FOUND)])
def test_delete_outcomes(status, outcome):
    assert client_for(lambda r: httpx.Response(status)).delete("b", "k") is outcome


def test_delete_other_error():
    with pytest.raises(StoreError):
        client_for(lambda r: httpx.Response(500)).delete("b", "k")


def test_mapred_posts_inputs_query_and_timeout():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[1000])

    result = client_for(handler).run_aggregation_job("mr_validate", [{"reduce": {}}], 600_000)
    assert result == [1000]
    assert seen["path"] == "/mapred"
    assert seen["body"] == {"inputs": "mr_validate", "query": [{"reduce": {}}], "timeout": 600_000}


def test_mapred_without_timeout_omits_it():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[])

    client_for(handler).run_aggregation_job([["b", "k"]], [])
    assert "timeout" not in seen["body"]


@pytest.mark.parametrize("response", [
    httpx.Response(500, text="error"),
    httpx.Response(200, text="<html>"),
])
def test_mapred_errors_raise(response):
    with pytest.raises(ScenarioExecutionError):
        client_for(lambda r: response).run_aggregation_job("b", [])


def test_transport_errors_raise():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ScenarioExecutionError):
        client_for(handler).run_aggregation_job("b", [])
    with pytest.raises(SetupError):
        client_for(handler).connect()


def test_backend_capability_reads_stats_and_props():
    def handler(request):
        if request.url.path == "/stats":
            return httpx.Response(200, json={"storage_backend": "riak_kv_multi_backend"})
        return httpx.Response(200, json={"props": {"backend": "lvl"}})

    d = client_for(handler, backends={"lvl": "leveldb"}, default_backend="bc").backend_capability("b")
    assert d.kind == "riak_kv_multi_backend"
    assert d.bucket_backend == "lvl"
    assert d.backends == {"lvl": "leveldb"}
    assert d.default == "bc"
