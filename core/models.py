"""
Shared data models for scan results.
One PortResult per probed port, folded into a single ScanSummary per scan.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PortStatus(str, Enum):
    OPEN = "Open"
    CLOSED = "Closed"
    FILTERED = "Filtered"  # timeout, unreachable or any non-refusal error


class PortResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int = Field(ge=1, le=65535)
    status: PortStatus
    banner: Optional[str] = None
    service: Optional[str] = None
    duration_ms: int = Field(ge=0, description="elapsed since scan start")


class ScanSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    scanned_ports: int
    open_ports: int
    closed_ports: int
    filtered_ports: int
    total_time_ms: int
    results: List[PortResult] = Field(default_factory=list)

    @classmethod
    def from_results(cls, target: str, results: Iterable[PortResult], total_time_ms: int) -> "ScanSummary":
        """
        Build the summary from results in whatever order they completed.
        All counts are derived from `results`.
        """
        results = list(results)
        return cls(
            target=target,
            scanned_ports=len(results),
            open_ports=sum(1 for r in results if r.status is PortStatus.OPEN),
            closed_ports=sum(1 for r in results if r.status is PortStatus.CLOSED),
            filtered_ports=sum(1 for r in results if r.status is PortStatus.FILTERED),
            total_time_ms=total_time_ms,
            results=results,
        )

    def sorted_results(self) -> List[PortResult]:
        return sorted(self.results, key=lambda r: r.port)
