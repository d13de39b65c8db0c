"""
Heuristic service guess from the port number and the grabbed banner.
Banner evidence wins over the well-known port table.
"""

from typing import Dict, Optional

WELL_KNOWN_PORTS: Dict[int, str] = {
    21: "FTP",
    22: "SSH",
    25: "SMTP",
    80: "HTTP",
    443: "HTTPS",
    3306: "MySQL",
    3389: "RDP",
    5432: "PostgreSQL",
    5900: "VNC",
}


def guess_service(port: int, banner: Optional[str] = None) -> Optional[str]:
    if banner:
        if "SSH-" in banner:
            return "SSH"
        if "HTTP/" in banner or "Server:" in banner:
            return "HTTP"
        if banner.startswith("220 "):
            return "SMTP/FTP"
    return WELL_KNOWN_PORTS.get(port)
