"""System statistics monitoring functionality."""
import logging
import os
import platform
import socket
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Tuple

import psutil

from hostdash.models import (
    CpuStats, DiskStats, MemoryStats, NetworkInterfaceStats, OsInfo,
    SwapStats, SystemSnapshot
)

logger = logging.getLogger('hostdash')

# Pseudo filesystems that never represent a real volume
PSEUDO_FILESYSTEMS = ('tmpfs', 'devtmpfs', 'devpts', 'proc', 'sysfs', 'securityfs',
                      'squashfs', 'overlay', 'cgroup', 'cgroup2')

# Sensor chips that report the package temperature, in order of preference
CPU_SENSORS = ('coretemp', 'k10temp', 'cpu_thermal', 'zenpower', 'acpitz')

class NetworkRateTracker:
    """
    Remember the previous byte counters per interface to derive rates.

    The state lives for as long as the tracker does; it is never reset
    between samples.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._previous: Dict[str, Tuple[int, int, float]] = {}

    def update(self, interface: str, rx_bytes: int, tx_bytes: int,
               now: Optional[float] = None) -> Tuple[float, float]:
        """
        Record a sample and return (rx_sec, tx_sec) in bytes per second.

        The first sample of an interface yields zero rates. A counter that went
        backwards (interface reset) clamps to zero instead of going negative.
        """
        if now is None:
            now = self._clock()

        previous = self._previous.get(interface)
        self._previous[interface] = (rx_bytes, tx_bytes, now)

        if previous is None:
            return 0.0, 0.0

        prev_rx, prev_tx, prev_time = previous
        elapsed = now - prev_time
        if elapsed <= 0:
            return 0.0, 0.0

        rx_sec = max(0.0, (rx_bytes - prev_rx) / elapsed)
        tx_sec = max(0.0, (tx_bytes - prev_tx) / elapsed)
        return rx_sec, tx_sec

class MetricHistory:
    """
    Rolling window of recent CPU and memory samples.

    Every subscriber and HTTP hit takes a snapshot; a sample closer than
    ``min_interval`` seconds to the previous one is not recorded.
    """

    def __init__(self, length: int = 60, min_interval: float = 0.0):
        self.min_interval = min_interval
        self.cpu: Deque[Dict] = deque(maxlen=length)
        self.memory: Deque[Dict] = deque(maxlen=length)

    def record(self, snapshot: SystemSnapshot) -> bool:
        if self.cpu and snapshot.timestamp - self.cpu[-1]['timestamp'] < self.min_interval:
            return False
        self.cpu.append({
            'timestamp': snapshot.timestamp,
            'usage': snapshot.cpu.usage,
            'temperature': snapshot.cpu.temperature
        })
        self.memory.append({
            'timestamp': snapshot.timestamp,
            'used': snapshot.memory.used,
            'percent': snapshot.memory.percent
        })
        return True

class SystemStatsMonitor:
    """Monitor system statistics including CPU, memory, disk and network."""

    def __init__(self, history_length: int = 60, history_interval: float = 0.0,
                 rate_tracker: Optional[NetworkRateTracker] = None):
        self.rate_tracker = rate_tracker or NetworkRateTracker()
        self.history = MetricHistory(history_length, min_interval=history_interval)
        self._os_info: Optional[OsInfo] = None

    def collect_stats(self) -> SystemSnapshot:
        """
        Collect one complete snapshot.

        A failure in any domain read propagates; partial snapshots are never
        returned.
        """
        snapshot = SystemSnapshot(
            cpu=self.read_cpu(),
            memory=self.read_memory(),
            disk=tuple(self.read_disks()),
            network=tuple(self.read_network()),
            uptime=self.read_uptime(),
            os=self.read_os_info(),
            timestamp=time.time()
        )
        self.history.record(snapshot)
        return snapshot

    def read_cpu(self) -> CpuStats:
        load = psutil.getloadavg()
        return CpuStats(
            usage=round(psutil.cpu_percent(interval=None)),
            cores=psutil.cpu_count() or 0,
            temperature=self._read_cpu_temperature(),
            load_average=(round(load[0], 2), round(load[1], 2), round(load[2], 2))
        )

    def _read_cpu_temperature(self) -> float:
        """Return the package temperature, or 0 when no sensor is exposed."""
        if not hasattr(psutil, 'sensors_temperatures'):
            return 0.0
        try:
            temps = psutil.sensors_temperatures()
        except (OSError, RuntimeError) as e:
            logger.debug(f"[STATS] Temperature sensors unavailable: {str(e)}")
            return 0.0
        if not temps:
            return 0.0
        for chip in CPU_SENSORS:
            if temps.get(chip):
                return temps[chip][0].current
        first = next(iter(temps.values()))
        return first[0].current if first else 0.0

    def read_memory(self) -> MemoryStats:
        mem = psutil.virtual_memory()
        swap = psutil.swap_memory()
        return MemoryStats(
            total=mem.total,
            used=mem.used,
            free=mem.free,
            cached=getattr(mem, 'cached', 0),
            swap=SwapStats(total=swap.total, used=swap.used, free=swap.free)
        )

    def read_disks(self) -> List[DiskStats]:
        disks = []
        seen = set()
        for partition in psutil.disk_partitions(all=False):
            if partition.fstype in PSEUDO_FILESYSTEMS:
                continue
            # Bind mounts show the same device several times
            if partition.device in seen:
                continue
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except (PermissionError, FileNotFoundError) as e:
                logger.warning(f"[STATS] Skipping unreadable mount {partition.mountpoint}: {str(e)}")
                continue
            seen.add(partition.device)
            disks.append(DiskStats(
                device=partition.device,
                mountpoint=partition.mountpoint,
                fstype=partition.fstype,
                total=usage.total,
                used=usage.used,
                free=usage.free,
                usage=round(usage.used / usage.total * 100) if usage.total else 0
            ))
        return disks

    def read_network(self) -> List[NetworkInterfaceStats]:
        counters = psutil.net_io_counters(pernic=True)
        now = time.monotonic()
        interfaces = []
        for name, counter in sorted(counters.items()):
            rx_sec, tx_sec = self.rate_tracker.update(name, counter.bytes_recv, counter.bytes_sent, now)
            interfaces.append(NetworkInterfaceStats(
                interface=name,
                rx_sec=round(rx_sec, 2),
                tx_sec=round(tx_sec, 2),
                rx_bytes=counter.bytes_recv,
                tx_bytes=counter.bytes_sent
            ))
        return interfaces

    def read_uptime(self) -> float:
        return time.time() - psutil.boot_time()

    def read_os_info(self) -> OsInfo:
        # Static for the lifetime of the process
        if self._os_info is None:
            self._os_info = OsInfo(
                platform=platform.system().lower(),
                distro=self._read_distro(),
                release=platform.release(),
                arch=platform.machine(),
                hostname=socket.gethostname()
            )
        return self._os_info

    @staticmethod
    def _read_distro() -> str:
        """Read PRETTY_NAME from os-release, falling back to the platform name."""
        for path in ('/etc/os-release', '/usr/lib/os-release'):
            if not os.path.exists(path):
                continue
            try:
                with open(path, 'r') as f:
                    for line in f:
                        if line.startswith('PRETTY_NAME='):
                            return line.split('=', 1)[1].strip().strip('"')
            except OSError as e:
                logger.debug(f"[STATS] Could not read {path}: {str(e)}")
        return platform.system()
