"""
Single-node orchestrator: bounded-concurrency probe dispatch, completion
order collection and summary hand-off to the in-memory state and the
optional Elasticsearch output.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from core.config import settings
from core.models import PortResult, ScanSummary
from core.ports import parse_ports
from core.state import StateManager
from core.target import parse_target
from elk.adapter import ElasticsearchAdapter
from policy.policy_engine import AdmissionGate, ScanPolicy
from probers import l4_tcp

log = logging.getLogger(__name__)

ResultCallback = Callable[[PortResult], None]


class Orchestrator:
    def __init__(self) -> None:
        self.state = StateManager()
        self.elk = ElasticsearchAdapter() if settings.elasticsearch_url else None
        self.degraded = False
        self.last_peak_in_flight = 0

    async def run(
        self,
        target: str,
        ports: Sequence[int],
        max_concurrency: int,
        timeout_ms: int,
        on_result: Optional[ResultCallback] = None,
    ) -> ScanSummary:
        """Probe `ports` on an already validated IP address."""
        policy = ScanPolicy.from_settings(concurrency=max_concurrency, timeout_ms=timeout_ms)
        return await self._execute(target, ports, policy, on_result)

    async def _execute(
        self,
        target: str,
        ports: Sequence[int],
        policy: ScanPolicy,
        on_result: Optional[ResultCallback],
    ) -> ScanSummary:
        gate = AdmissionGate(policy.concurrency)
        started = time.monotonic()
        results: List[PortResult] = []
        tasks: List[asyncio.Task] = []

        async def _probe(port: int) -> PortResult:
            try:
                return await l4_tcp.tcp_probe(
                    target,
                    port,
                    timeout=policy.timeout_s,
                    started=started,
                    banner_timeout=policy.banner_timeout_s,
                    banner_size=policy.banner_read_size,
                )
            finally:
                gate.release()

        def _collect(task: asyncio.Task) -> None:
            if task.cancelled():
                log.warning("Task %s cancelled; port skipped", task.get_name())
                return
            exc = task.exception()
            if exc is not None:
                log.warning("Task %s failed: %s", task.get_name(), exc)
                return
            result = task.result()
            results.append(result)
            if on_result is not None:
                on_result(result)

        for port in ports:
            # permit is taken before the task exists, so at most N are ever live
            await gate.acquire()
            task = asyncio.create_task(_probe(port), name=f"probe-{target}:{port}")
            task.add_done_callback(_collect)
            tasks.append(task)

        await asyncio.gather(*tasks, return_exceptions=True)
        self.last_peak_in_flight = gate.peak_in_flight

        total_time_ms = int((time.monotonic() - started) * 1000)
        return ScanSummary.from_results(target, results, total_time_ms)

    async def scan_async(
        self,
        target: str,
        port_spec: Optional[str] = None,
        concurrency: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> ScanSummary:
        # configuration errors surface here, before any probe is sent
        address = parse_target(target)
        ports = parse_ports(port_spec if port_spec is not None else settings.default_ports)
        policy = ScanPolicy.from_settings(concurrency=concurrency, timeout_ms=timeout_ms)

        log.info("Starting scan on %s", address)
        log.info("Scanning %d ports (concurrency=%d, timeout=%dms)", len(ports), policy.concurrency, policy.timeout_ms)
        summary = await self._execute(address, ports, policy, on_result)
        log.info(
            "Done. Open: %d, Closed: %d, Filtered: %d, Time: %d ms",
            summary.open_ports,
            summary.closed_ports,
            summary.filtered_ports,
            summary.total_time_ms,
        )
        await asyncio.to_thread(self._emit, summary)
        return summary

    def scan(
        self,
        target: str,
        port_spec: Optional[str] = None,
        concurrency: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> ScanSummary:
        return asyncio.run(self.scan_async(target, port_spec, concurrency, timeout_ms, on_result))

    def _emit(self, summary: ScanSummary) -> None:
        self.state.record_summary(summary)

        if not self.elk:
            return
        try:
            self.elk.index_summary(summary)
            self.degraded = False
        except Exception as e:
            log.exception("ELK bulk_index failed | index=%s | err=%s", self.elk.index, e)
            self.degraded = True

    def report(self, target: Optional[str] = None) -> List[Dict[str, Any]]:
        if self.elk and target:
            docs = self.elk.search_by_target(target)
            if docs:
                return docs
        return self.state.list_scans(target)

    def verify(self, write_test_doc: bool = False) -> Dict[str, bool]:
        elk_ok = False
        test_doc_written = False

        if self.elk:
            elk_ok = self.elk.ping()
            if write_test_doc:
                self.elk.bulk_index(self.elk.index, [self.elk.health_doc()])
                test_doc_written = True

        return {
            "cache": self.state.cache_path is not None,
            "elk": elk_ok,
            "test_doc_written": test_doc_written,
            "degraded": self.degraded,
        }
