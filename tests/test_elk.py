import datetime as dt

import pytest

from core.models import PortResult, PortStatus, ScanSummary
from elk import adapter
from pipeline.orchestrator import Orchestrator


class FakeClient:
    hits: list = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.searches = []

    def ping(self):
        return True

    def search(self, **kwargs):
        self.searches.append(kwargs)
        return {"hits": {"hits": [{"_source": doc} for doc in self.hits]}}


@pytest.fixture
def es(monkeypatch):
    monkeypatch.setattr(adapter.settings, "elasticsearch_url", "http://es.local:9200")
    monkeypatch.setattr(adapter.settings, "elasticsearch_api_key", "secret")
    monkeypatch.setattr(adapter.settings, "bulk_batch_size", 2)
    monkeypatch.setattr(adapter, "Elasticsearch", FakeClient)
    monkeypatch.setattr(adapter.time, "sleep", lambda s: None)
    return adapter.ElasticsearchAdapter()


def _summary(n):
    results = [PortResult(port=p, status=PortStatus.CLOSED, duration_ms=p) for p in range(1, n + 1)]
    return ScanSummary.from_results("10.0.0.1", results, total_time_ms=n)


def test_requires_url(monkeypatch):
    monkeypatch.setattr(adapter.settings, "elasticsearch_url", None)
    with pytest.raises(ValueError):
        adapter.ElasticsearchAdapter()


def test_client_args(es):
    assert es.client.kwargs["hosts"] == ["http://es.local:9200"]
    assert es.client.kwargs["api_key"] == "secret"
    assert es.ping() is True


def test_index_summary_chunks(es, monkeypatch):
    batches = []
    monkeypatch.setattr(adapter.helpers, "bulk", lambda client, actions, **kw: batches.append(actions))
    es.index_summary(_summary(5))

    assert [len(b) for b in batches] == [2, 2, 1, 1]
    first = batches[0][0]
    assert first["_index"] == "portprobe-results"
    assert first["_source"]["target"] == "10.0.0.1"
    assert first["_source"]["status"] == "Closed"
    scan = batches[-1][0]
    assert scan["_index"] == "portprobe-scans"
    assert scan["_source"]["scanned_ports"] == 5
    assert len(scan["_source"]["results"]) == 5
    assert scan["_source"]["scan_id"] == first["_source"]["scan_id"]


def test_bulk_retries_then_raises(es, monkeypatch):
    attempts = []

    def failing_bulk(client, actions, **kw):
        attempts.append(1)
        raise ConnectionError("down")

    monkeypatch.setattr(adapter.helpers, "bulk", failing_bulk)
    with pytest.raises(ConnectionError):
        es.index_summary(_summary(1))
    assert len(attempts) == 3


def test_search_by_target_returns_summaries(es, monkeypatch):
    summary = _summary(2)
    doc = es.summary_to_scan_doc(summary, "abc123", "2026-01-01T00:00:00+00:00")
    monkeypatch.setattr(FakeClient, "hits", [doc])

    scans = es.search_by_target("10.0.0.1")

    assert scans == [summary.model_dump(mode="json")]
    assert es.client.searches[0]["index"] == "portprobe-scans"


def test_report_has_same_layout_with_and_without_es(es, monkeypatch, fake_network):
    fake_network({22: b"SSH-2.0-Test\r\n"}, default="refused")
    local = Orchestrator()
    local.elk = None
    summary = local.scan("127.0.0.1", "22,23", 10, 100)
    monkeypatch.setattr(FakeClient, "hits", [es.summary_to_scan_doc(summary, "abc123", es._now())])

    remote = Orchestrator()
    remote.elk = es

    assert remote.report("127.0.0.1") == local.report("127.0.0.1")


def test_verify_health_doc_matches_result_layout(es, monkeypatch):
    written = []
    monkeypatch.setattr(es, "bulk_index", lambda index, docs: written.append((index, docs)))
    orch = Orchestrator()
    orch.elk = es

    assert orch.verify(write_test_doc=True)["test_doc_written"] is True

    index, docs = written[0]
    assert index == "portprobe-results"
    expected_keys = set(es.summary_to_docs(_summary(1), "x", "t")[0])
    assert set(docs[0]) == expected_keys
    stamp = dt.datetime.fromisoformat(docs[0]["timestamp"])
    assert stamp.tzinfo is not None
