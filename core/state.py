"""
In-memory scan history with optional JSON cache.
Keeps finished summaries available for `portprobe report` and the API.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional

from core.config import settings
from core.models import ScanSummary

log = logging.getLogger(__name__)


class StateManager:
    def __init__(self, cache_path: Optional[str] = None):
        self.scans: List[Dict] = []
        self._lock = threading.Lock()
        path = cache_path or settings.json_cache_path
        self.cache_path = Path(path) if path else None
        self._load_cache()

    def _load_cache(self):
        if self.cache_path and self.cache_path.exists():
            try:
                data = json.loads(self.cache_path.read_text())
                self.scans = data.get("scans", [])
            except Exception:  # noqa: BLE001
                log.warning("failed to load cache from %s", self.cache_path)

    def _persist(self):
        # caller holds self._lock
        if not self.cache_path:
            return
        try:
            tmp = self.cache_path.with_name(self.cache_path.name + ".tmp")
            tmp.write_text(json.dumps({"scans": self.scans}, indent=2, default=str))
            os.replace(tmp, self.cache_path)
        except Exception:  # noqa: BLE001
            log.warning("failed to persist cache to %s", self.cache_path)

    def record_summary(self, summary: ScanSummary):
        with self._lock:
            self.scans.append(summary.model_dump(mode="json"))
            self._persist()

    def list_scans(self, target: Optional[str] = None) -> List[Dict]:
        with self._lock:
            scans = list(self.scans)
        if target:
            return [s for s in scans if s.get("target") == target]
        return scans
