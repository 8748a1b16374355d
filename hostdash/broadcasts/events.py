"""
Periodic telemetry sampling and per-connection push.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

import eventlet
from flask import Flask

from hostdash import socketio
from hostdash.exceptions import HostDashError
from hostdash.monitors.docker import ContainerClient
from hostdash.monitors.system import SystemStatsMonitor
from .logs import LogStream

logger = logging.getLogger('hostdash')

Emitter = Callable[[str, str, Any], None]

class Topic(str, Enum):
    """Classes of periodic update a client can subscribe to."""
    SYSTEM = 'system'
    DOCKER = 'docker'

def socketio_emit(sid: str, event: str, data: Any) -> None:
    """Emit an event to a single Socket.IO session."""
    socketio.emit(event, data, to=sid)

class TopicTimer:
    """
    Drive one topic for one connection.

    The loop is fixed-delay: the next wait starts only after the previous tick
    has returned, so a slow tick delays the following one instead of
    overlapping it. ``stop()`` wakes the wait immediately; a tick that is
    already fetching finishes, but anything it tries to push is dropped.
    """

    def __init__(self, sid: str, topic: Topic, interval: float,
                 tick: Callable[['TopicTimer'], None], emit: Emitter):
        self.sid = sid
        self.topic = topic
        self.interval = interval
        self.ticks = 0
        self._tick = tick
        self._emit = emit
        self._stop_event = eventlet.Event()
        self._thread: Optional[eventlet.greenthread.GreenThread] = None

    @property
    def active(self) -> bool:
        return not self._stop_event.ready()

    def start(self) -> None:
        if self._thread is None and self.active:
            self._thread = eventlet.spawn(self._run)

    def stop(self) -> None:
        """Stop the timer. Safe to call more than once."""
        if self.active:
            self._stop_event.send(True)

    def push(self, event: str, data: Any) -> bool:
        """Emit to the bound connection unless the timer has been stopped."""
        if not self.active:
            logger.debug(f"[BROADCAST] Dropping {event} for stopped {self.topic.value} timer of {self.sid}")
            return False
        try:
            self._emit(self.sid, event, data)
            return True
        except Exception as e:
            # The client may already be gone
            logger.debug(f"[BROADCAST] Emit of {event} to {self.sid} failed: {str(e)}")
            return False

    def run_once(self) -> None:
        """Execute a single tick."""
        try:
            self._tick(self)
        except Exception as e:
            logger.error(f"[BROADCAST] Unhandled error in {self.topic.value} tick for {self.sid}: {str(e)}")
        self.ticks += 1

    def _run(self) -> None:
        logger.debug(f"[BROADCAST] Starting {self.topic.value} timer for {self.sid} every {self.interval}s")
        while self.active:
            # Returns True when stop() was called during the wait
            if self._stop_event.wait(self.interval):
                break
            self.run_once()
        logger.debug(f"[BROADCAST] Stopped {self.topic.value} timer for {self.sid}")

class TelemetryBroadcaster:
    """Sample system and container state for each subscribed connection."""

    def __init__(self, system_monitor: SystemStatsMonitor, container_client: ContainerClient,
                 emit: Emitter = socketio_emit, intervals: Optional[Dict[Topic, float]] = None,
                 log_tail: int = 100):
        self.system_monitor = system_monitor
        self.container_client = container_client
        self.emit = emit
        self.log_tail = log_tail
        self.intervals: Dict[Topic, float] = {Topic.SYSTEM: 2, Topic.DOCKER: 3}
        if intervals:
            self.intervals.update(intervals)
        self.ticks: Dict[Topic, Callable[[TopicTimer], None]] = {
            Topic.SYSTEM: self.system_tick,
            Topic.DOCKER: self.docker_tick
        }

    def create_timer(self, sid: str, topic: Topic) -> TopicTimer:
        """Build an unstarted timer bound to one connection."""
        return TopicTimer(sid, topic, self.intervals[topic], self.ticks[topic], self.emit)

    def create_log_stream(self, sid: str, container_id: str) -> LogStream:
        return LogStream(sid, container_id, self.container_client, self.emit, tail=self.log_tail)

    def system_tick(self, timer: TopicTimer) -> None:
        """Push one system snapshot, or a topic-scoped error."""
        try:
            snapshot = self.system_monitor.collect_stats()
        except Exception as e:
            logger.error(f"[BROADCAST] Error collecting system stats for {timer.sid}: {str(e)}")
            timer.push('system:error', {'message': 'Failed to get system stats'})
            return
        timer.push('system:stats', snapshot.to_dict())

    def docker_tick(self, timer: TopicTimer) -> None:
        """
        Push the container list, then per-container stats for running ones.

        One container failing its stats call is logged and skipped; the rest
        are still pushed.
        """
        try:
            containers = self.container_client.list_containers()
        except HostDashError as e:
            logger.error(f"[BROADCAST] Error listing containers for {timer.sid}: {e.message}")
            timer.push('docker:error', {'message': e.message})
            return
        except Exception as e:
            logger.error(f"[BROADCAST] Error listing containers for {timer.sid}: {str(e)}")
            timer.push('docker:error', {'message': 'Failed to get docker data'})
            return

        timer.push('docker:containers', [c.to_dict() for c in containers])

        for container in containers:
            if not container.is_running:
                continue
            if not timer.active:
                # Subscription ended mid-tick; nothing left to push into
                return
            try:
                stats = self.container_client.stats(container.id)
            except Exception as e:
                logger.warning(f"[BROADCAST] Skipping stats for container {container.id}: {str(e)}")
                continue
            timer.push('docker:stats', {'containerId': container.id, 'stats': stats.to_dict()})

def init_broadcasters(app: Flask, services: Dict[str, Any]) -> None:
    """Build the shared collaborators and the connection registry for an app."""
    from hostdash.sockets.events import ConnectionRegistry

    with app.app_context():
        app.logger.info("Initializing broadcasters")

        system_monitor = services.get('system_monitor') or SystemStatsMonitor(
            history_length=app.config['METRIC_HISTORY_LENGTH'],
            history_interval=app.config['SYSTEM_STATS_INTERVAL']
        )
        container_client = services.get('container_client') or ContainerClient(
            socket_path=app.config['DOCKER_SOCKET'],
            timeout=app.config['DOCKER_CLIENT_TIMEOUT']
        )
        broadcaster = TelemetryBroadcaster(
            system_monitor,
            container_client,
            emit=services.get('emit') or socketio_emit,
            intervals={
                Topic.SYSTEM: app.config['SYSTEM_STATS_INTERVAL'],
                Topic.DOCKER: app.config['DOCKER_STATS_INTERVAL']
            }
        )

        app.extensions['hostdash'] = {
            'system_monitor': system_monitor,
            'container_client': container_client,
            'broadcaster': broadcaster,
            'registry': ConnectionRegistry(broadcaster)
        }
        app.logger.info(
            f"Registered topics: system every {broadcaster.intervals[Topic.SYSTEM]}s, "
            f"docker every {broadcaster.intervals[Topic.DOCKER]}s"
        )
