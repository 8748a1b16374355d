"""
Container listing, stats, logs and lifecycle routes.
"""
import logging

from flask import current_app, jsonify

from hostdash.exceptions import ContainerNotFoundError, HostDashError
from hostdash.utils.utils import error_response, get_component, get_int_arg, write_to_log
from . import bp

logger = logging.getLogger('hostdash')

# Past-tense wording for the lifecycle responses
ACTIONS = {
    'start': 'started',
    'stop': 'stopped',
    'restart': 'restarted'
}

def _client():
    return get_component('container_client')

@bp.route('/api/docker/containers', methods=['GET'])
def list_containers():
    """List every container, running or not."""
    try:
        containers = _client().list_containers()
        return jsonify([container.to_dict() for container in containers]), 200
    except HostDashError as e:
        logger.error(f"[DOCKER] Error getting containers: {e.message}")
        return error_response(e.message, 500)

@bp.route('/api/docker/containers/<container_id>/stats', methods=['GET'])
def get_container_stats(container_id):
    try:
        stats = _client().stats(container_id)
        return jsonify(stats.to_dict()), 200
    except ContainerNotFoundError as e:
        return error_response(e.message, 404)
    except HostDashError as e:
        logger.error(f"[DOCKER] Error getting stats for {container_id}: {e.message}")
        return error_response(e.message, 500)

@bp.route('/api/docker/containers/<container_id>/logs', methods=['GET'])
def get_container_logs(container_id):
    """Return the last ``tail`` lines of a container's output."""
    try:
        tail = get_int_arg('tail', 100, maximum=current_app.config['MAX_LOG_LINES'])
    except ValueError as e:
        return error_response(str(e), 400)

    try:
        logs = _client().logs(container_id, tail=tail)
        return jsonify({'containerId': container_id, 'logs': logs}), 200
    except ContainerNotFoundError as e:
        return error_response(e.message, 404)
    except HostDashError as e:
        logger.error(f"[DOCKER] Error getting logs for {container_id}: {e.message}")
        return error_response(e.message, 500)

@bp.route('/api/docker/containers/<container_id>/<action>', methods=['POST'])
def control_container(container_id, action):
    """Start, stop or restart a container."""
    if action not in ACTIONS:
        return error_response(f"Invalid action: {action}", 400)

    client = _client()
    try:
        logger.info(f"[DOCKER] Attempting to {action} container {container_id}")
        getattr(client, action)(container_id)
    except ContainerNotFoundError as e:
        return error_response(e.message, 404)
    except HostDashError as e:
        logger.error(f"[DOCKER] Failed to {action} container {container_id}: {e.message}")
        write_to_log('docker', f'Failed to {action} container {container_id}: {e.message}', 'error')
        return error_response(f"Failed to {action} container", 500, {'error': e.message})

    write_to_log('docker', f'Container {container_id} {ACTIONS[action]}', 'info')
    return jsonify({
        'success': True,
        'message': f'Container {ACTIONS[action]} successfully'
    }), 200
