"""
Port specification parsing: "22,80,1000-1024" -> [22, 80, 1000, ..., 1024].
"""

from typing import List

MAX_PORT = 65535


class PortSpecError(ValueError):
    pass


def _parse_port(token: str, spec: str) -> int:
    # one leading "+" is allowed; int() would also accept " 80" or "8_0"
    digits = token[1:] if token.startswith("+") else token
    if not digits.isascii() or not digits.isdigit():
        raise PortSpecError(f"invalid port {token!r} in {spec!r}")
    value = int(digits)
    if value > MAX_PORT:
        raise PortSpecError(f"port {value} out of range in {spec!r}")
    return value


def parse_ports(spec: str) -> List[int]:
    """
    Parse a comma separated list of ports and inclusive ranges.
    Returns a sorted list of distinct ports with 0 removed; raises
    PortSpecError without returning anything if any token is bad.
    """
    ports = set()
    for raw in spec.split(","):
        part = raw.strip()
        if not part:
            continue
        if "-" in part:
            bounds = part.split("-")
            if len(bounds) != 2:
                raise PortSpecError(f"invalid range format {part!r}")
            start = _parse_port(bounds[0], spec)
            end = _parse_port(bounds[1], spec)
            if start > end:
                raise PortSpecError(f"range start > end in {part!r}")
            ports.update(range(start, end + 1))
        else:
            ports.add(_parse_port(part, spec))

    ports.discard(0)
    if not ports:
        raise PortSpecError(f"no valid ports in {spec!r}")
    return sorted(ports)
