"""
Passive banner grab: read whatever the service sends first, nothing is
written to the socket.
"""

import asyncio
import logging
from typing import Optional

log = logging.getLogger(__name__)

BANNER_READ_SIZE = 4096


async def read_banner(reader: asyncio.StreamReader, timeout: float, size: int = BANNER_READ_SIZE) -> Optional[str]:
    try:
        data = await asyncio.wait_for(reader.read(size), timeout=timeout)
    except (asyncio.TimeoutError, OSError) as exc:
        log.debug("banner read failed: %s", exc.__class__.__name__)
        return None
    if not data:
        return None
    return data.decode("utf-8", errors="replace").rstrip()
