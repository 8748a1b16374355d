"""Tests for the Socket.IO event handlers."""

import pytest

from hostdash import socketio
from hostdash.broadcasts.events import Topic


@pytest.fixture
def sio(app, client):
    sio = socketio.test_client(app, flask_test_client=client)
    yield sio
    if sio.is_connected():
        sio.disconnect()


def received(sio, name):
    return [message['args'][0] for message in sio.get_received() if message['name'] == name]


class TestSocketHandlers:

    def test_connect_registers_and_reports_status(self, app, sio):
        registry = app.extensions['hostdash']['registry']

        [status] = received(sio, 'connection_status')
        assert status['status'] == 'connected'
        assert registry.connection_count() == 1

    def test_subscribe_twice_then_disconnect(self, app, sio):
        registry = app.extensions['hostdash']['registry']
        sio.emit('subscribe:system')
        sio.emit('subscribe:system')
        sio.emit('subscribe:docker')

        [connection] = registry.connections.values()
        assert connection.topics == {Topic.SYSTEM, Topic.DOCKER}
        timers = list(connection.timers.values())

        sio.disconnect()

        assert registry.connection_count() == 0
        assert all(not timer.active for timer in timers)

    def test_unsubscribe(self, app, sio):
        registry = app.extensions['hostdash']['registry']
        sio.get_received()
        sio.emit('subscribe:docker')
        sio.emit('unsubscribe:docker')

        assert registry.timer_count() == 0
        updates = received(sio, 'subscription_update')
        assert [(u['type'], u['status']) for u in updates] == [('docker', 'subscribed'), ('docker', 'unsubscribed')]

    def test_stream_logs_requires_container_id(self, sio):
        sio.get_received()
        sio.emit('stream:logs', {})

        assert received(sio, 'docker:logs:error') == [{'containerId': None, 'message': 'containerId is required'}]

    def test_stop_logs_acknowledges(self, app, sio, container_client):
        registry = app.extensions['hostdash']['registry']
        sio.get_received()
        sio.emit('stream:logs', {'containerId': 'c1'})
        [connection] = registry.connections.values()
        assert 'c1' in connection.log_streams

        sio.emit('stop:logs', 'c1')

        assert received(sio, 'docker:logs:stopped') == [{'containerId': 'c1'}]
        assert connection.log_streams == {}


class TestRepeatedAppFactory:

    def test_second_app_keeps_handlers(self, app, tmp_path, emitter):
        from config import TestingConfig
        from hostdash import create_app
        from tests.conftest import FakeContainerClient, FakeSystemMonitor

        class Config(TestingConfig):
            HOSTDASH_LOG_DIR = str(tmp_path / 'second-logs')
            HOSTDASH_CONFIG = str(tmp_path / 'missing.json')

        second = create_app(Config, services={
            'system_monitor': FakeSystemMonitor(),
            'container_client': FakeContainerClient(),
            'emit': emitter
        })
        registry = second.extensions['hostdash']['registry']
        sio = socketio.test_client(second, flask_test_client=second.test_client())
        try:
            sio.emit('subscribe:system')

            assert registry.connection_count() == 1
            assert registry.timer_count() == 1
        finally:
            sio.disconnect()
            with second.app_context():
                registry.clear()
        assert registry.connection_count() == 0
