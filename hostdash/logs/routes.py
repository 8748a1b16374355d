"""
Log viewer routes.
"""
import logging
import shutil

from flask import current_app, jsonify, request

from hostdash.exceptions import CommandTimeoutError, ContainerNotFoundError, HostDashError
from hostdash.utils.utils import error_response, execute_command, get_component, get_int_arg
from . import bp

logger = logging.getLogger('hostdash')

def _lines_arg() -> int:
    return get_int_arg('lines', current_app.config['DEFAULT_LOG_LINES'],
                       maximum=current_app.config['MAX_LOG_LINES'])

def system_log_command(lines: int):
    """journalctl where systemd is present, otherwise the tail of the syslog file."""
    if shutil.which('journalctl'):
        return ['journalctl', '-n', str(lines), '--no-pager']
    return ['tail', '-n', str(lines), current_app.config['SYSLOG_PATH']]

@bp.route('/api/logs/system', methods=['GET'])
def get_system_logs():
    """Get recent system log lines."""
    try:
        lines = _lines_arg()
    except ValueError as e:
        return error_response(str(e), 400)

    command = system_log_command(lines)
    try:
        success, stdout, stderr = execute_command(command, timeout=current_app.config['SERVICE_COMMAND_TIMEOUT'])
    except CommandTimeoutError as e:
        return error_response(e.message, 500)

    if not success:
        logger.error(f"[LOGS] Error fetching system logs: {stderr}")
        return error_response('Failed to fetch system logs', 500, {'stderr': stderr})

    return jsonify({
        'source': 'system',
        'command': command[0],
        'lines': lines,
        'log': stdout
    }), 200

@bp.route('/api/logs/docker', methods=['GET'])
def get_docker_logs():
    """Get recent output of one container."""
    container = request.args.get('container', '').strip()
    if not container:
        return error_response('container query param is required', 400)
    try:
        lines = _lines_arg()
    except ValueError as e:
        return error_response(str(e), 400)

    try:
        log = get_component('container_client').logs(container, tail=lines)
    except ContainerNotFoundError as e:
        return error_response(e.message, 404)
    except HostDashError as e:
        logger.error(f"[LOGS] Error fetching logs of {container}: {e.message}")
        return error_response('Failed to fetch docker logs', 500, {'error': e.message})

    return jsonify({
        'source': 'docker',
        'container': container,
        'lines': lines,
        'log': log
    }), 200
