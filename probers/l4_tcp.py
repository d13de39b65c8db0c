"""
TCP connect prober using plain connect() without crafting raw packets.
Every network outcome is folded into a PortResult; nothing escapes.
"""

import asyncio
import logging
import time
from typing import Optional

from core.models import PortResult, PortStatus
from probers.banner import BANNER_READ_SIZE, read_banner
from probers.service_fingerprint import guess_service

log = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass


async def tcp_probe(
    ip: str,
    port: int,
    timeout: float,
    started: float,
    banner_timeout: float = 1.2,
    banner_size: int = BANNER_READ_SIZE,
) -> PortResult:
    """
    Probe one port. `started` is the monotonic timestamp of the whole scan,
    so duration_ms reports scan progress when this outcome was known rather
    than the latency of this single connect.
    """
    try:
        reader, writer = await asyncio.wait_for(asyncio.open_connection(ip, port), timeout=timeout)
    except ConnectionRefusedError:
        log.debug("%s:%d refused", ip, port)
        return PortResult(port=port, status=PortStatus.CLOSED, duration_ms=_elapsed_ms(started))
    except (asyncio.TimeoutError, OSError) as exc:
        log.debug("%s:%d filtered (%s)", ip, port, exc.__class__.__name__)
        return PortResult(port=port, status=PortStatus.FILTERED, duration_ms=_elapsed_ms(started))

    duration_ms = _elapsed_ms(started)
    banner: Optional[str] = None
    try:
        banner = await read_banner(reader, banner_timeout, banner_size)
    finally:
        await _close(writer)

    service = guess_service(port, banner)
    log.debug("%s:%d open service=%s", ip, port, service)
    return PortResult(port=port, status=PortStatus.OPEN, banner=banner, service=service, duration_ms=duration_ms)
