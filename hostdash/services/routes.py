"""
Systemd service listing and control routes.
"""
import logging
import re

from flask import current_app, jsonify, request

from hostdash.exceptions import CommandTimeoutError
from hostdash.utils.utils import error_response, execute_command, write_to_log
from . import bp
from . import utils

logger = logging.getLogger('hostdash')

@bp.route('/api/services', methods=['GET'])
def list_services():
    """List service units whose line matches the ``q`` pattern."""
    pattern = request.args.get('q') or utils.DEFAULT_SERVICE_PATTERN
    try:
        matcher = re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        return error_response(f"Invalid pattern: {str(e)}", 400)

    try:
        success, stdout, stderr = execute_command(
            ['systemctl', 'list-units', '--type=service', '--all', '--no-pager'],
            timeout=current_app.config['SERVICE_COMMAND_TIMEOUT']
        )
    except CommandTimeoutError as e:
        return error_response(e.message, 500)

    if not success:
        logger.error(f"[SERVICES] Error listing services: {stderr}")
        return error_response('Failed to list services', 500, {'stderr': stderr})

    lines = utils.filter_lines(stdout, matcher)
    return jsonify({
        'output': '\n'.join(lines),
        'services': [utils.parse_unit_line(line) for line in lines]
    }), 200

@bp.route('/api/services/<name>/<action>', methods=['POST'])
def control_service(name, action):
    """Run one systemctl action against a unit."""
    if action not in utils.ALLOWED_ACTIONS:
        logger.warning(f"[SERVICES] Rejected action '{action}' for {name}")
        return error_response('Invalid action', 400)
    if not utils.is_valid_unit_name(name):
        logger.warning(f"[SERVICES] Rejected unit name '{name}'")
        return error_response('Invalid service name', 400)

    logger.info(f"[SERVICES] Running systemctl {action} {name}")
    try:
        success, stdout, stderr = execute_command(
            ['systemctl', action, name],
            timeout=current_app.config['SERVICE_COMMAND_TIMEOUT']
        )
    except CommandTimeoutError as e:
        write_to_log('services', f'systemctl {action} {name} timed out', 'error')
        return error_response(e.message, 500)

    # status exits non-zero for stopped units; that is still an answer
    if not success and action != 'status':
        logger.error(f"[SERVICES] systemctl {action} {name} failed: {stderr}")
        write_to_log('services', f'systemctl {action} {name} failed: {stderr}', 'error')
        return error_response('Failed to control service', 500, {'output': stdout, 'stderr': stderr})

    if action != 'status':
        write_to_log('services', f'systemctl {action} {name} succeeded', 'info')
    return jsonify({
        'success': True,
        'output': stdout,
        'error': stderr
    }), 200
