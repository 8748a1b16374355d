"""Container runtime client built on the Docker SDK."""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import docker
import requests
from docker.errors import APIError, DockerException, NotFound

from hostdash.exceptions import ContainerNotFoundError, DockerUnavailableError, HostDashError
from hostdash.models import ContainerInfo, ContainerStats

logger = logging.getLogger('hostdash')

DOCKER_UNAVAILABLE_MESSAGE = (
    'Failed to connect to Docker daemon. Make sure Docker is running and accessible.'
)

def calculate_cpu_percent(stats: Dict[str, Any]) -> float:
    """
    Compute CPU usage from the current and previous samples of one stats call.

    Returns 0 when the system delta is not positive.
    """
    cpu_stats = stats.get('cpu_stats') or {}
    precpu_stats = stats.get('precpu_stats') or {}

    cpu_delta = (cpu_stats.get('cpu_usage', {}).get('total_usage', 0)
                 - precpu_stats.get('cpu_usage', {}).get('total_usage', 0))
    system_delta = cpu_stats.get('system_cpu_usage', 0) - precpu_stats.get('system_cpu_usage', 0)

    if system_delta <= 0:
        return 0.0
    return round((cpu_delta / system_delta) * 100, 2)

def sum_block_io(stats: Dict[str, Any], op: str) -> int:
    """Sum block device bytes for one operation; cgroup v1 and v2 spell ops differently."""
    entries = (stats.get('blkio_stats') or {}).get('io_service_bytes_recursive') or []
    return sum(entry.get('value', 0) for entry in entries
               if str(entry.get('op', '')).lower() == op)

def parse_container_stats(container_id: str, stats: Dict[str, Any]) -> ContainerStats:
    """Reshape a raw stats document into ContainerStats."""
    memory_stats = stats.get('memory_stats') or {}
    networks = stats.get('networks') or {}
    return ContainerStats(
        id=container_id,
        cpu_usage=calculate_cpu_percent(stats),
        memory_usage=memory_stats.get('usage', 0),
        memory_limit=memory_stats.get('limit', 0),
        network_rx=sum(net.get('rx_bytes', 0) for net in networks.values()),
        network_tx=sum(net.get('tx_bytes', 0) for net in networks.values()),
        block_read=sum_block_io(stats, 'read'),
        block_write=sum_block_io(stats, 'write')
    )

def parse_container_info(raw: Dict[str, Any]) -> ContainerInfo:
    """Reshape one entry of the container list call."""
    names = raw.get('Names') or []
    name = names[0] if names else 'Unknown'
    if name.startswith('/'):
        name = name[1:]

    ports: List[str] = []
    for port in raw.get('Ports') or []:
        private = port.get('PrivatePort')
        public = port.get('PublicPort')
        proto = port.get('Type', 'tcp')
        mapping = f"{private}:{public}/{proto}" if public else f"{private}/{proto}"
        # IPv4 and IPv6 bindings are reported separately
        if mapping not in ports:
            ports.append(mapping)

    return ContainerInfo(
        id=raw.get('Id', ''),
        name=name,
        image=raw.get('Image', ''),
        status=raw.get('Status', ''),
        state=raw.get('State', ''),
        created=raw.get('Created', 0),
        ports=ports
    )

class ContainerClient:
    """List, inspect, control and read logs of containers on the local runtime."""

    def __init__(self, socket_path: str = '/var/run/docker.sock', timeout: int = 10,
                 client: Optional[docker.DockerClient] = None):
        self.base_url = f"unix://{socket_path}"
        self.timeout = timeout
        self._client = client

    @property
    def api(self) -> docker.APIClient:
        # Connect lazily so the dashboard starts even when the daemon is down
        if self._client is None:
            self._client = docker.DockerClient(base_url=self.base_url, timeout=self.timeout)
            logger.info(f"[DOCKER] Connected to {self.base_url}")
        return self._client.api

    @contextmanager
    def _translate_errors(self, container_id: Optional[str] = None):
        try:
            yield
        except NotFound:
            raise ContainerNotFoundError(f"Container {container_id} not found",
                                         details={'containerId': container_id})
        except APIError as e:
            raise HostDashError(e.explanation or str(e), details={'containerId': container_id})
        except (requests.exceptions.RequestException, DockerException) as e:
            # Drop the client so the next call reconnects
            self._client = None
            logger.error(f"[DOCKER] Runtime unreachable at {self.base_url}: {str(e)}")
            raise DockerUnavailableError(DOCKER_UNAVAILABLE_MESSAGE, details={'error': str(e)})

    def list_containers(self) -> List[ContainerInfo]:
        with self._translate_errors():
            raw_containers = self.api.containers(all=True)
        return [parse_container_info(raw) for raw in raw_containers]

    def stats(self, container_id: str) -> ContainerStats:
        with self._translate_errors(container_id):
            raw = self.api.stats(container_id, stream=False)
        return parse_container_stats(container_id, raw)

    def start(self, container_id: str) -> None:
        with self._translate_errors(container_id):
            self.api.start(container_id)

    def stop(self, container_id: str) -> None:
        with self._translate_errors(container_id):
            self.api.stop(container_id)

    def restart(self, container_id: str) -> None:
        with self._translate_errors(container_id):
            self.api.restart(container_id)

    def logs(self, container_id: str, tail: int = 100) -> str:
        with self._translate_errors(container_id):
            output = self.api.logs(container_id, stdout=True, stderr=True,
                                   tail=tail, timestamps=True)
        return output.decode('utf-8', errors='replace')

    def stream_logs(self, container_id: str, tail: int = 100) -> Iterator[bytes]:
        """
        Attach to the live log stream of a container.

        The returned iterator has a ``close()`` method that severs the
        underlying connection.
        """
        with self._translate_errors(container_id):
            return self.api.logs(container_id, stdout=True, stderr=True, stream=True,
                                 follow=True, timestamps=True, tail=tail)
