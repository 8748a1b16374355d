"""TCP port probing and local address discovery."""
import logging
import socket
from typing import Dict, Iterable, List, Optional

import eventlet
import psutil

from hostdash.models import DetectedService

logger = logging.getLogger('hostdash')

COMMON_PORTS: Dict[int, str] = {
    80: 'HTTP',
    443: 'HTTPS',
    3000: 'React Dev Server',
    3001: 'Node.js App',
    3200: 'Dashboard',
    4000: 'Node.js App',
    5000: 'Flask Dev',
    5001: 'Flask Alt',
    5200: 'Dashboard API',
    6000: 'HTTP Alt',
    7000: 'HTTP Alt',
    8000: 'HTTP Alt',
    8001: 'HTTP Alt',
    8002: 'HTTP Alt',
    8080: 'HTTP Alt',
    8081: 'HTTP Alt',
    8888: 'Jupyter',
    8889: 'Jupyter Alt',
    9000: 'SonarQube',
    9001: 'HTTP Alt',
    9002: 'HTTP Alt',
    9443: 'HTTPS Alt',
    10000: 'Webmin',
    10001: 'HTTP Alt',
    11000: 'HTTP Alt',
    12000: 'HTTP Alt',
    13000: 'HTTP Alt',
    14000: 'HTTP Alt',
    15000: 'HTTP Alt',
}

HTTPS_PORTS = {443, 9443}

def generate_url(host: str, port: int) -> str:
    protocol = 'https' if port in HTTPS_PORTS else 'http'
    return f"{protocol}://{host}:{port}"

def check_port(host: str, port: int, timeout: float = 2.0) -> Optional[DetectedService]:
    """
    Attempt one TCP connect.

    The connection is closed immediately without any handshake. Refusals and
    timeouts both return None.
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            pass
    except (socket.timeout, OSError):
        return None
    return DetectedService(
        port=port,
        service=COMMON_PORTS.get(port, 'Unknown'),
        status='open',
        url=generate_url(host, port)
    )

def scan_ports(host: str = 'localhost', ports: Optional[Iterable[int]] = None,
               timeout: float = 2.0) -> List[DetectedService]:
    """Check every port in parallel and return only the open ones, sorted by port."""
    ports_to_scan = sorted(set(ports)) if ports is not None else sorted(COMMON_PORTS)
    if not ports_to_scan:
        return []

    pool = eventlet.GreenPool(size=len(ports_to_scan))
    results = [
        service for service in pool.imap(lambda p: check_port(host, p, timeout), ports_to_scan)
        if service is not None
    ]
    logger.debug(f"[PORTS] Scanned {len(ports_to_scan)} ports on {host}, {len(results)} open")
    return sorted(results, key=lambda s: s.port)

def get_local_ip() -> Optional[str]:
    """Return the first non-loopback IPv4 address, or None."""
    for name, addresses in psutil.net_if_addrs().items():
        for address in addresses:
            if address.family == socket.AF_INET and not address.address.startswith('127.'):
                return address.address
    return None
