"""
Socket.IO event handlers and connection management.
"""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import eventlet
from flask import current_app, request

from hostdash import socketio
from hostdash.broadcasts.events import TelemetryBroadcaster, Topic, TopicTimer
from hostdash.broadcasts.logs import LogStream

@dataclass
class Connection:
    """Bookkeeping for one live client."""
    sid: str
    ip: str = 'unknown'
    connected_at: float = field(default_factory=time.time)
    timers: Dict[Topic, TopicTimer] = field(default_factory=dict)
    log_streams: Dict[str, LogStream] = field(default_factory=dict)

    @property
    def topics(self):
        return set(self.timers)

class ConnectionRegistry:
    """
    Track each connection's subscriptions and the timers backing them.

    Everything here runs on the eventlet hub, so the maps are only ever
    touched by one greenthread at a time.
    """

    def __init__(self, broadcaster: TelemetryBroadcaster):
        self.broadcaster = broadcaster
        self.connections: Dict[str, Connection] = {}

    def on_connect(self, sid: str, ip: str = 'unknown') -> Connection:
        connection = self.connections.get(sid)
        if connection is None:
            connection = Connection(sid=sid, ip=ip)
            self.connections[sid] = connection
        return connection

    def on_subscribe(self, sid: str, topic: Topic) -> bool:
        """Start a timer for (sid, topic). Returns False when one already runs."""
        connection = self.connections.get(sid)
        if connection is None:
            current_app.logger.warning(f"[BROADCAST] Subscribe to {topic.value} from unknown connection {sid}")
            return False

        existing = connection.timers.get(topic)
        if existing is not None and existing.active:
            current_app.logger.debug(f"[BROADCAST] {sid} already subscribed to {topic.value}, ignoring duplicate")
            return False

        timer = self.broadcaster.create_timer(sid, topic)
        connection.timers[topic] = timer
        timer.start()
        current_app.logger.info(f"[BROADCAST] Subscribed {sid} to {topic.value}")
        return True

    def on_unsubscribe(self, sid: str, topic: Topic) -> bool:
        """Stop the timer for (sid, topic) if there is one."""
        connection = self.connections.get(sid)
        if connection is None:
            return False
        timer = connection.timers.pop(topic, None)
        if timer is None:
            return False
        timer.stop()
        current_app.logger.info(f"[BROADCAST] Unsubscribed {sid} from {topic.value}")
        return True

    def on_stream_logs(self, sid: str, container_id: str) -> bool:
        """Attach a log stream for (sid, container). Returns False when one is live."""
        connection = self.connections.get(sid)
        if connection is None:
            current_app.logger.warning(f"[LOGS] Log stream request from unknown connection {sid}")
            return False

        existing = connection.log_streams.get(container_id)
        if existing is not None and not existing.finished and not existing.closed:
            return False

        stream = self.broadcaster.create_log_stream(sid, container_id)
        connection.log_streams[container_id] = stream
        stream.start()
        return True

    def on_stop_logs(self, sid: str, container_id: str) -> bool:
        connection = self.connections.get(sid)
        if connection is None:
            return False
        stream = connection.log_streams.pop(container_id, None)
        if stream is None:
            return False
        stream.close()
        current_app.logger.info(f"[LOGS] Stopped log stream of {container_id} for {sid}")
        return True

    def on_disconnect(self, sid: str) -> None:
        """Stop every timer and stream of the connection, then forget it."""
        connection = self.connections.pop(sid, None)
        if connection is None:
            return

        for topic, timer in list(connection.timers.items()):
            try:
                timer.stop()
            except Exception as e:
                current_app.logger.error(f"[BROADCAST] Error stopping {topic.value} timer for {sid}: {str(e)}")
        connection.timers.clear()

        for container_id, stream in list(connection.log_streams.items()):
            try:
                stream.close()
            except Exception as e:
                current_app.logger.error(f"[LOGS] Error closing log stream of {container_id} for {sid}: {str(e)}")
        connection.log_streams.clear()

        duration = time.time() - connection.connected_at
        current_app.logger.info(f"Connection removed: {sid} from {connection.ip}, duration: {duration:.2f}s")

    def timer_count(self, sid: Optional[str] = None) -> int:
        """Number of live timers for one connection, or for all of them."""
        if sid is not None:
            connection = self.connections.get(sid)
            return len(connection.timers) if connection else 0
        return sum(len(c.timers) for c in self.connections.values())

    def connection_count(self) -> int:
        return len(self.connections)

    def clear(self) -> None:
        for sid in list(self.connections):
            self.on_disconnect(sid)

def get_registry() -> ConnectionRegistry:
    return current_app.extensions['hostdash']['registry']

def _client_ip() -> str:
    return request.headers.get('X-Forwarded-For', '').split(',')[0].strip() or request.remote_addr or 'unknown'

def _container_id(data: Any) -> Optional[str]:
    """Accept either a bare id or {'containerId': id}."""
    if isinstance(data, dict):
        data = data.get('containerId')
    if isinstance(data, str) and data.strip():
        return data.strip()
    return None

@socketio.on('connect')
def handle_connect(auth=None):
    """Handle new WebSocket connections."""
    sid = request.sid
    client_ip = _client_ip()
    current_app.logger.info(f"New WebSocket connection: {sid} from {client_ip}")
    get_registry().on_connect(sid, client_ip)

    socketio.emit('connection_status', {
        'status': 'connected',
        'sid': sid,
        'timestamp': time.time()
    }, to=sid)

@socketio.on('disconnect')
def handle_disconnect(reason=None):
    """Handle WebSocket disconnections with proper cleanup."""
    sid = request.sid
    current_app.logger.info(f"Client disconnecting: {sid} (reason: {reason})")
    get_registry().on_disconnect(sid)

def _subscribe(topic: Topic) -> None:
    sid = request.sid
    get_registry().on_subscribe(sid, topic)
    socketio.emit('subscription_update', {
        'type': topic.value,
        'status': 'subscribed',
        'timestamp': time.time(),
        'sid': sid
    }, to=sid)

def _unsubscribe(topic: Topic) -> None:
    sid = request.sid
    get_registry().on_unsubscribe(sid, topic)
    socketio.emit('subscription_update', {
        'type': topic.value,
        'status': 'unsubscribed',
        'timestamp': time.time(),
        'sid': sid
    }, to=sid)

@socketio.on('subscribe:system')
def handle_subscribe_system(data=None):
    _subscribe(Topic.SYSTEM)

@socketio.on('unsubscribe:system')
def handle_unsubscribe_system(data=None):
    _unsubscribe(Topic.SYSTEM)

@socketio.on('subscribe:docker')
def handle_subscribe_docker(data=None):
    _subscribe(Topic.DOCKER)

@socketio.on('unsubscribe:docker')
def handle_unsubscribe_docker(data=None):
    _unsubscribe(Topic.DOCKER)

@socketio.on('stream:logs')
def handle_stream_logs(data=None):
    """Start forwarding a container's live logs to this client."""
    sid = request.sid
    container_id = _container_id(data)
    if container_id is None:
        socketio.emit('docker:logs:error', {
            'containerId': None,
            'message': 'containerId is required'
        }, to=sid)
        return
    get_registry().on_stream_logs(sid, container_id)

@socketio.on('stop:logs')
def handle_stop_logs(data=None):
    """Detach a container log stream and acknowledge the stop."""
    sid = request.sid
    container_id = _container_id(data)
    if container_id is None:
        return
    get_registry().on_stop_logs(sid, container_id)
    socketio.emit('docker:logs:stopped', {'containerId': container_id}, to=sid)

@socketio.on_error_default
def error_handler(e):
    """Log handler errors without dropping the connection."""
    current_app.logger.error(f"WebSocket error: {str(e)}")

def cleanup_websocket_state():
    """Stop every timer and log stream, used on shutdown."""
    try:
        current_app.logger.info("Starting WebSocket state cleanup...")
        get_registry().clear()
    except Exception as e:
        current_app.logger.error(f"Error during cleanup: {e}")

def log_connection_status(app):
    """Periodically log connection status with app context."""
    while True:
        interval = app.config['CONNECTION_LOG_INTERVAL']
        with app.app_context():
            try:
                registry = get_registry()
                if registry.connection_count():
                    subscriptions = {
                        sid: sorted(topic.value for topic in connection.topics)
                        for sid, connection in registry.connections.items()
                    }
                    current_app.logger.info(
                        f"Connection Status Report: {registry.connection_count()} active connections, "
                        f"{registry.timer_count()} timers, subscriptions: {subscriptions}"
                    )
            except Exception as e:
                current_app.logger.error(f"Status logger error: {str(e)}")
        eventlet.sleep(interval)
