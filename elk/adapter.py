"""
Elasticsearch adapter: per-port result documents plus one summary document
per scan, bulk written; per-target queries read the summaries back.
"""

from __future__ import annotations

import datetime as dt
import random
import time
import uuid
from typing import Dict, Iterable, List

from elasticsearch import Elasticsearch, helpers

from core.config import settings
from core.models import ScanSummary


class ElasticsearchAdapter:
    def __init__(self):
        if not settings.elasticsearch_url:
            raise ValueError("PORTPROBE_ELASTICSEARCH_URL is required for ElasticsearchAdapter")

        client_args: Dict = {
            "hosts": [settings.elasticsearch_url],
            "verify_certs": settings.elasticsearch_verify_certs,
        }

        if settings.elasticsearch_api_key:
            client_args["api_key"] = settings.elasticsearch_api_key
        elif settings.elasticsearch_user and settings.elasticsearch_pass:
            client_args["basic_auth"] = (settings.elasticsearch_user, settings.elasticsearch_pass)

        if settings.elasticsearch_ca_cert:
            client_args["ca_certs"] = settings.elasticsearch_ca_cert

        self.client = Elasticsearch(**client_args)
        self.batch_size = settings.bulk_batch_size
        self.index = settings.results_index
        self.scans_index = settings.scans_index

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except Exception:  # noqa: BLE001
            return False

    @staticmethod
    def _now() -> str:
        return dt.datetime.now(dt.timezone.utc).isoformat()

    @staticmethod
    def summary_to_docs(summary: ScanSummary, scan_id: str, timestamp: str) -> List[Dict]:
        return [
            {
                "timestamp": timestamp,
                "scan_id": scan_id,
                "target": summary.target,
                "port": r.port,
                "status": r.status.value,
                "service": r.service,
                "banner": r.banner,
                "duration_ms": r.duration_ms,
            }
            for r in summary.results
        ]

    @staticmethod
    def summary_to_scan_doc(summary: ScanSummary, scan_id: str, timestamp: str) -> Dict:
        doc = summary.model_dump(mode="json")
        doc.update(timestamp=timestamp, scan_id=scan_id)
        return doc

    def health_doc(self) -> Dict:
        """Connectivity marker with the per-port document layout and no port data."""
        return {
            "timestamp": self._now(),
            "scan_id": None,
            "target": "verify-test",
            "port": None,
            "status": None,
            "service": None,
            "banner": None,
            "duration_ms": None,
        }

    def index_summary(self, summary: ScanSummary):
        scan_id = uuid.uuid4().hex
        timestamp = self._now()
        self.bulk_index(self.index, self.summary_to_docs(summary, scan_id, timestamp))
        self.bulk_index(self.scans_index, [self.summary_to_scan_doc(summary, scan_id, timestamp)])

    def bulk_index(self, index: str, docs: Iterable[Dict]):
        doc_list = list(docs)
        if not doc_list:
            return
        max_attempts = 3
        backoff_base = 1.0

        def _chunks(seq: List[Dict], size: int):
            for i in range(0, len(seq), size):
                yield seq[i : i + size]

        for chunk in _chunks(doc_list, self.batch_size):
            actions = [{"_index": index, "_source": doc} for doc in chunk]
            for attempt in range(1, max_attempts + 1):
                try:
                    helpers.bulk(
                        self.client,
                        actions,
                        stats_only=True,
                        request_timeout=30,
                        raise_on_error=True,
                        max_retries=0,
                    )
                    break
                except Exception:  # noqa: BLE001
                    if attempt >= max_attempts:
                        raise
                    sleep_for = backoff_base * (2 ** (attempt - 1)) + random.random()
                    time.sleep(sleep_for)

    def search_by_target(self, target: str, size: int = 100) -> List[Dict]:
        """
        Recorded scans of `target`, oldest first, in the same layout the
        local history uses (one summary dict per scan).
        """
        try:
            res = self.client.search(
                index=self.scans_index,
                size=size,
                query={"term": {"target.keyword": target}},
                sort=[{"timestamp": {"order": "asc"}}],
            )
            hits = res.get("hits", {}).get("hits", [])
            return [ScanSummary.model_validate(h.get("_source", {})).model_dump(mode="json") for h in hits]
        except Exception:  # noqa: BLE001
            return []
