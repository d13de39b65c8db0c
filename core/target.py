"""
Target validation. The scanner only probes literal IP addresses; name
resolution is left to the caller.
"""

import ipaddress


class InvalidTargetError(ValueError):
    pass


def parse_target(target: str) -> str:
    try:
        ip_obj = ipaddress.ip_address(target.strip())
    except ValueError as exc:
        raise InvalidTargetError(f"invalid target address {target!r}") from exc
    return str(ip_obj)
