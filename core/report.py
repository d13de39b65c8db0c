"""
File reports for a finished scan: pretty JSON and a plain text table.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core.models import ScanSummary

log = logging.getLogger(__name__)


def render_text(summary: ScanSummary) -> str:
    lines = [
        f"Scan of {summary.target} | Ports: {summary.scanned_ports} | Time: {summary.total_time_ms}ms",
        "",
    ]
    for r in summary.results:
        banner = (r.banner or "-").replace("\r", "").replace("\n", " ")
        lines.append(
            f"Port {r.port:>5} | {r.status.value.lower()} | Service: {r.service or '-':<12} | Banner: {banner}"
        )
    return "\n".join(lines) + "\n"


def write_json(summary: ScanSummary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(summary.model_dump_json(indent=2), encoding="utf-8")
    log.info("Saved JSON: %s", path)


def write_text(summary: ScanSummary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_text(summary), encoding="utf-8")
    log.info("Saved TXT: %s", path)
