"""
Data transfer types shared by the HTTP endpoints and the socket events.

Attribute names are Pythonic; ``to_dict`` produces the field names the
dashboard frontend consumes.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CpuStats:
    usage: float
    cores: int
    temperature: float
    load_average: Tuple[float, float, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'usage': self.usage,
            'cores': self.cores,
            'temperature': self.temperature,
            'loadAverage': list(self.load_average),
        }


@dataclass(frozen=True)
class SwapStats:
    total: int
    used: int
    free: int

    def to_dict(self) -> Dict[str, Any]:
        return {'total': self.total, 'used': self.used, 'free': self.free}


@dataclass(frozen=True)
class MemoryStats:
    total: int
    used: int
    free: int
    cached: int
    swap: SwapStats

    @property
    def percent(self) -> float:
        return round(self.used / self.total * 100, 1) if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'used': self.used,
            'free': self.free,
            'cached': self.cached,
            'percent': self.percent,
            'swap': self.swap.to_dict(),
        }


@dataclass(frozen=True)
class DiskStats:
    device: str
    mountpoint: str
    fstype: str
    total: int
    used: int
    free: int
    usage: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'device': self.device,
            'mountpoint': self.mountpoint,
            'fstype': self.fstype,
            'total': self.total,
            'used': self.used,
            'free': self.free,
            'usage': self.usage,
        }


@dataclass(frozen=True)
class NetworkInterfaceStats:
    interface: str
    rx_sec: float
    tx_sec: float
    rx_bytes: int
    tx_bytes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'interface': self.interface,
            'rx_sec': self.rx_sec,
            'tx_sec': self.tx_sec,
            'rx_bytes': self.rx_bytes,
            'tx_bytes': self.tx_bytes,
        }


@dataclass(frozen=True)
class OsInfo:
    platform: str
    distro: str
    release: str
    arch: str
    hostname: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'platform': self.platform,
            'distro': self.distro,
            'release': self.release,
            'arch': self.arch,
            'hostname': self.hostname,
        }


@dataclass(frozen=True)
class SystemSnapshot:
    """One point-in-time read of every system metric domain."""
    cpu: CpuStats
    memory: MemoryStats
    disk: Tuple[DiskStats, ...]
    network: Tuple[NetworkInterfaceStats, ...]
    uptime: float
    os: OsInfo
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cpu': self.cpu.to_dict(),
            'memory': self.memory.to_dict(),
            'disk': [d.to_dict() for d in self.disk],
            'network': [n.to_dict() for n in self.network],
            'uptime': self.uptime,
            'os': self.os.to_dict(),
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class ContainerInfo:
    id: str
    name: str
    image: str
    status: str
    state: str
    created: int
    ports: List[str] = field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.state == 'running'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'image': self.image,
            'status': self.status,
            'state': self.state,
            'created': self.created,
            'ports': list(self.ports),
        }


@dataclass(frozen=True)
class ContainerStats:
    id: str
    cpu_usage: float
    memory_usage: int
    memory_limit: int
    network_rx: int
    network_tx: int
    block_read: int
    block_write: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'cpuUsage': self.cpu_usage,
            'memoryUsage': self.memory_usage,
            'memoryLimit': self.memory_limit,
            'networkRx': self.network_rx,
            'networkTx': self.network_tx,
            'blockRead': self.block_read,
            'blockWrite': self.block_write,
        }


@dataclass(frozen=True)
class DetectedService:
    port: int
    service: str
    status: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'port': self.port,
            'service': self.service,
            'status': self.status,
            'url': self.url,
        }
