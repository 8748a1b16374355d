"""Shared pytest fixtures for hostdash tests."""

from typing import Any, Dict, List, Optional

import eventlet
import pytest
from eventlet.queue import Queue

from config import TestingConfig
from hostdash import create_app
from hostdash.exceptions import ContainerNotFoundError, DockerUnavailableError
from hostdash.models import (
    ContainerInfo, ContainerStats, CpuStats, DiskStats, MemoryStats,
    NetworkInterfaceStats, OsInfo, SwapStats, SystemSnapshot
)
from hostdash.monitors.system import MetricHistory


def make_snapshot(usage: float = 12.0) -> SystemSnapshot:
    """Build a small but complete snapshot."""
    return SystemSnapshot(
        cpu=CpuStats(usage=usage, cores=4, temperature=45.0, load_average=(0.5, 0.4, 0.3)),
        memory=MemoryStats(total=8000, used=2000, free=6000, cached=500,
                           swap=SwapStats(total=1000, used=0, free=1000)),
        disk=(DiskStats(device='/dev/sda1', mountpoint='/', fstype='ext4',
                        total=100, used=40, free=60, usage=40),),
        network=(NetworkInterfaceStats(interface='eth0', rx_sec=10.0, tx_sec=5.0,
                                       rx_bytes=1000, tx_bytes=500),),
        uptime=3600.0,
        os=OsInfo(platform='linux', distro='Debian GNU/Linux 12', release='6.1.0',
                  arch='x86_64', hostname='testhost'),
        timestamp=1700000000.0
    )


def make_container(container_id: str, state: str = 'running') -> ContainerInfo:
    return ContainerInfo(id=container_id, name=f"svc-{container_id}", image='nginx:alpine',
                         status='Up 2 hours' if state == 'running' else 'Exited (0)',
                         state=state, created=1700000000, ports=['80:8080/tcp'])


class RecordingEmitter:
    """Collects (sid, event, data) instead of talking to Socket.IO."""

    def __init__(self):
        self.calls: List[tuple] = []

    def __call__(self, sid: str, event: str, data: Any) -> None:
        self.calls.append((sid, event, data))

    def events(self, name: Optional[str] = None, sid: Optional[str] = None) -> List[Any]:
        return [data for s, event, data in self.calls
                if (name is None or event == name) and (sid is None or s == sid)]

    def names(self) -> List[str]:
        return [event for _, event, _ in self.calls]

    def clear(self) -> None:
        self.calls.clear()


class FakeSystemMonitor:
    """Stands in for SystemStatsMonitor."""

    def __init__(self):
        self.fail = False
        self.calls = 0
        self.history = MetricHistory(5)

    def collect_stats(self) -> SystemSnapshot:
        self.calls += 1
        if self.fail:
            raise RuntimeError('psutil exploded')
        snapshot = make_snapshot()
        self.history.record(snapshot)
        return snapshot

    def read_disks(self):
        return list(make_snapshot().disk)

    def read_network(self):
        return list(make_snapshot().network)


class FakeLogStream:
    """Follow-mode log iterator that blocks until fed or closed."""

    _END = object()

    def __init__(self, chunks: Optional[List[bytes]] = None, follow: bool = False):
        self.closed = False
        self._queue: Queue = Queue()
        for chunk in chunks or []:
            self._queue.put(chunk)
        if not follow:
            self._queue.put(self._END)

    def feed(self, chunk: bytes) -> None:
        self._queue.put(chunk)

    def close(self) -> None:
        self.closed = True
        self._queue.put(self._END)

    def __iter__(self):
        return self

    def __next__(self):
        item = self._queue.get()
        if item is self._END:
            raise StopIteration
        return item


class FakeContainerClient:
    """Stands in for ContainerClient."""

    def __init__(self):
        self.containers: List[ContainerInfo] = []
        self.stats_errors: Dict[str, Exception] = {}
        self.list_error: Optional[Exception] = None
        self.stream_error: Optional[Exception] = None
        self.streams: Dict[str, FakeLogStream] = {}
        self.stats_calls: List[str] = []
        self.actions: List[tuple] = []
        self.on_stats = None

    def list_containers(self) -> List[ContainerInfo]:
        if self.list_error:
            raise self.list_error
        return list(self.containers)

    def stats(self, container_id: str) -> ContainerStats:
        self.stats_calls.append(container_id)
        if self.on_stats:
            self.on_stats(container_id)
        self._known(container_id)
        if container_id in self.stats_errors:
            raise self.stats_errors[container_id]
        return ContainerStats(id=container_id, cpu_usage=5.0, memory_usage=100, memory_limit=1000,
                              network_rx=10, network_tx=20, block_read=0, block_write=0)

    def _known(self, container_id: str) -> None:
        if not any(c.id == container_id for c in self.containers):
            raise ContainerNotFoundError(f"Container {container_id} not found")

    def start(self, container_id: str) -> None:
        self._known(container_id)
        self.actions.append(('start', container_id))

    def stop(self, container_id: str) -> None:
        self._known(container_id)
        self.actions.append(('stop', container_id))

    def restart(self, container_id: str) -> None:
        self._known(container_id)
        self.actions.append(('restart', container_id))

    def logs(self, container_id: str, tail: int = 100) -> str:
        self._known(container_id)
        return f"last {tail} lines of {container_id}"

    def stream_logs(self, container_id: str, tail: int = 100) -> FakeLogStream:
        if self.stream_error:
            raise self.stream_error
        if container_id not in self.streams:
            self.streams[container_id] = FakeLogStream(follow=True)
        return self.streams[container_id]


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def system_monitor() -> FakeSystemMonitor:
    return FakeSystemMonitor()


@pytest.fixture
def container_client() -> FakeContainerClient:
    return FakeContainerClient()


@pytest.fixture
def app(tmp_path, emitter, system_monitor, container_client):
    """Application wired to fakes, with the audit log under tmp_path."""

    class Config(TestingConfig):
        HOSTDASH_LOG_DIR = str(tmp_path / 'logs')
        HOSTDASH_CONFIG = str(tmp_path / 'missing.json')
        AUTH_LOG_PATH = str(tmp_path / 'auth.log')
        OPENWEATHER_API_KEY = ''
        NEWS_API_KEY = ''

    app = create_app(Config, services={
        'system_monitor': system_monitor,
        'container_client': container_client,
        'emit': emitter
    })
    yield app
    with app.app_context():
        app.extensions['hostdash']['registry'].clear()
    eventlet.sleep(0)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def registry(app):
    """Connection registry inside an app context."""
    with app.app_context():
        yield app.extensions['hostdash']['registry']


@pytest.fixture
def unavailable_error() -> DockerUnavailableError:
    return DockerUnavailableError('Failed to connect to Docker daemon. Make sure Docker is running and accessible.')
