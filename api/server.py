"""
FastAPI front for the scanner. Runs scans on the server's event loop and
serves recorded summaries without exposing Elasticsearch directly.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from core.config import settings
from core.logging_config import configure_logging
from pipeline.orchestrator import Orchestrator

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    yield


app = FastAPI(title="portprobe API", version="0.1.0", lifespan=lifespan)
orch = Orchestrator()


class ScanPayload(BaseModel):
    target: str
    ports: Optional[str] = None
    concurrency: Optional[int] = Field(None, gt=0)
    timeout_ms: Optional[int] = Field(None, gt=0)


@app.post("/api/scan")
async def api_scan(payload: ScanPayload):
    try:
        summary = await orch.scan_async(
            payload.target,
            port_spec=payload.ports,
            concurrency=payload.concurrency,
            timeout_ms=payload.timeout_ms,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        log.exception("scan failed")
        raise HTTPException(status_code=500, detail="scan failed") from exc
    return summary.model_dump(mode="json")


@app.get("/api/report")
def api_report(target: Optional[str] = Query(None)):
    try:
        return {"scans": orch.report(target)}
    except Exception as exc:  # noqa: BLE001
        log.exception("report failed")
        raise HTTPException(status_code=500, detail="report failed") from exc


@app.get("/api/health")
def api_health():
    try:
        return orch.verify()
    except Exception as exc:  # noqa: BLE001
        log.exception("health check failed")
        raise HTTPException(status_code=500, detail="health check failed") from exc
