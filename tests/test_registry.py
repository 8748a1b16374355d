"""Tests for per-connection subscription bookkeeping."""

import eventlet
import pytest

from hostdash.broadcasts.events import Topic

from tests.conftest import make_container


@pytest.fixture
def fast_registry(registry):
    """Registry whose timers tick every 10ms."""
    registry.broadcaster.intervals[Topic.SYSTEM] = 0.01
    registry.broadcaster.intervals[Topic.DOCKER] = 0.01
    return registry


class TestSubscriptions:
    """Subscribe / unsubscribe semantics."""

    def test_duplicate_subscribe_keeps_one_timer(self, registry):
        registry.on_connect('sid-1', '10.0.0.2')

        assert registry.on_subscribe('sid-1', Topic.SYSTEM) is True
        first = registry.connections['sid-1'].timers[Topic.SYSTEM]
        assert registry.on_subscribe('sid-1', Topic.SYSTEM) is False

        assert registry.timer_count('sid-1') == 1
        assert registry.connections['sid-1'].timers[Topic.SYSTEM] is first

    def test_topics_are_independent(self, registry):
        registry.on_connect('sid-1')
        registry.on_subscribe('sid-1', Topic.SYSTEM)
        registry.on_subscribe('sid-1', Topic.DOCKER)
        assert registry.timer_count('sid-1') == 2

        registry.on_unsubscribe('sid-1', Topic.SYSTEM)
        assert registry.connections['sid-1'].topics == {Topic.DOCKER}

    def test_subscribe_from_unknown_connection_is_ignored(self, registry):
        assert registry.on_subscribe('ghost', Topic.SYSTEM) is False
        assert registry.timer_count() == 0

    def test_unsubscribe_stops_timer_and_never_fails(self, registry):
        registry.on_connect('sid-1')
        registry.on_subscribe('sid-1', Topic.DOCKER)
        timer = registry.connections['sid-1'].timers[Topic.DOCKER]

        assert registry.on_unsubscribe('sid-1', Topic.DOCKER) is True
        assert timer.active is False
        assert registry.on_unsubscribe('sid-1', Topic.DOCKER) is False
        assert registry.on_unsubscribe('ghost', Topic.DOCKER) is False

    def test_connections_do_not_share_timers(self, registry):
        registry.on_connect('a')
        registry.on_connect('b')
        registry.on_subscribe('a', Topic.SYSTEM)
        registry.on_subscribe('b', Topic.SYSTEM)

        timer_a = registry.connections['a'].timers[Topic.SYSTEM]
        timer_b = registry.connections['b'].timers[Topic.SYSTEM]
        assert timer_a is not timer_b

        registry.on_disconnect('a')
        assert timer_a.active is False
        assert timer_b.active is True


class TestDisconnect:
    """Teardown leaves nothing behind."""

    def test_disconnect_stops_every_timer(self, registry):
        registry.on_connect('sid-1')
        registry.on_subscribe('sid-1', Topic.SYSTEM)
        registry.on_subscribe('sid-1', Topic.DOCKER)
        timers = list(registry.connections['sid-1'].timers.values())

        registry.on_disconnect('sid-1')

        assert 'sid-1' not in registry.connections
        assert registry.timer_count('sid-1') == 0
        assert all(not timer.active for timer in timers)

    def test_late_tick_after_disconnect_pushes_nothing(self, registry, emitter):
        registry.on_connect('sid-1')
        registry.on_subscribe('sid-1', Topic.SYSTEM)
        timer = registry.connections['sid-1'].timers[Topic.SYSTEM]

        registry.on_disconnect('sid-1')
        # A tick that was already in flight completes after teardown
        timer.run_once()

        assert emitter.calls == []

    def test_disconnect_twice_and_unknown_is_safe(self, registry):
        registry.on_connect('sid-1')
        registry.on_subscribe('sid-1', Topic.SYSTEM)

        registry.on_disconnect('sid-1')
        registry.on_disconnect('sid-1')
        registry.on_disconnect('never-connected')

        assert registry.connection_count() == 0

    def test_disconnect_after_timer_already_stopped(self, registry):
        registry.on_connect('sid-1')
        registry.on_subscribe('sid-1', Topic.DOCKER)
        registry.connections['sid-1'].timers[Topic.DOCKER].stop()

        registry.on_disconnect('sid-1')

        assert registry.timer_count() == 0


class TestLiveTimers:
    """Timers running on the eventlet hub."""

    def test_system_timer_pushes_until_unsubscribed(self, fast_registry, emitter):
        fast_registry.on_connect('sid-1')
        fast_registry.on_subscribe('sid-1', Topic.SYSTEM)

        eventlet.sleep(0.08)
        pushed = len(emitter.events('system:stats', sid='sid-1'))
        assert pushed >= 2

        fast_registry.on_unsubscribe('sid-1', Topic.SYSTEM)
        eventlet.sleep(0.05)
        assert len(emitter.events('system:stats', sid='sid-1')) == pushed

    def test_no_pushes_after_disconnect(self, fast_registry, emitter, container_client):
        container_client.containers = [make_container('c1')]
        fast_registry.on_connect('sid-1')
        fast_registry.on_subscribe('sid-1', Topic.SYSTEM)
        fast_registry.on_subscribe('sid-1', Topic.DOCKER)
        eventlet.sleep(0.05)

        fast_registry.on_disconnect('sid-1')
        count = len(emitter.calls)
        eventlet.sleep(0.05)

        assert len(emitter.calls) == count
        assert 'docker:containers' in emitter.names()

    def test_failing_tick_keeps_timer_alive(self, fast_registry, emitter, system_monitor):
        system_monitor.fail = True
        fast_registry.on_connect('sid-1')
        fast_registry.on_subscribe('sid-1', Topic.SYSTEM)

        eventlet.sleep(0.05)

        errors = emitter.events('system:error', sid='sid-1')
        assert len(errors) >= 2
        assert errors[0] == {'message': 'Failed to get system stats'}
        assert fast_registry.connections['sid-1'].timers[Topic.SYSTEM].active


class TestLogStreams:
    """Container log stream attach / detach."""

    def test_stream_logs_is_idempotent_per_container(self, registry, container_client):
        registry.on_connect('sid-1')

        assert registry.on_stream_logs('sid-1', 'c1') is True
        assert registry.on_stream_logs('sid-1', 'c1') is False
        assert registry.on_stream_logs('sid-1', 'c2') is True

        assert set(registry.connections['sid-1'].log_streams) == {'c1', 'c2'}

    def test_stop_logs_closes_the_runtime_stream(self, registry, container_client, emitter):
        registry.on_connect('sid-1')
        registry.on_stream_logs('sid-1', 'c1')
        eventlet.sleep(0.01)
        handle = container_client.streams['c1']

        handle.feed(b'hello\n')
        eventlet.sleep(0.01)
        assert emitter.events('docker:logs', sid='sid-1') == [{'containerId': 'c1', 'data': 'hello\n'}]

        assert registry.on_stop_logs('sid-1', 'c1') is True
        eventlet.sleep(0.01)

        assert handle.closed is True
        handle.feed(b'late\n')
        eventlet.sleep(0.01)
        assert len(emitter.events('docker:logs', sid='sid-1')) == 1

    def test_disconnect_closes_log_streams(self, registry, container_client):
        registry.on_connect('sid-1')
        registry.on_stream_logs('sid-1', 'c1')
        eventlet.sleep(0.01)

        registry.on_disconnect('sid-1')

        assert container_client.streams['c1'].closed is True

    def test_stream_can_restart_after_it_finished(self, registry, container_client):
        registry.on_connect('sid-1')
        registry.on_stream_logs('sid-1', 'c1')
        eventlet.sleep(0.01)
        # Container exited: the runtime ends the follow stream
        container_client.streams.pop('c1').close()
        eventlet.sleep(0.01)

        assert registry.on_stream_logs('sid-1', 'c1') is True
