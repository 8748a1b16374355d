"""
Login session and SSH history routes.
"""
import logging
import os
from collections import deque

from flask import current_app, jsonify

from hostdash.exceptions import CommandTimeoutError
from hostdash.utils.utils import error_response, execute_command, get_int_arg
from . import bp

logger = logging.getLogger('hostdash')

def parse_who(output: str):
    """
    Parse ``who`` output.

    Lines look like ``user pts/0 2025-10-14 12:34 (192.168.1.10)``; the
    host column is missing for local sessions.
    """
    sessions = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        host = None
        if parts[-1].startswith('(') and parts[-1].endswith(')'):
            host = parts.pop()[1:-1] or None
        sessions.append({
            'user': parts[0],
            'tty': parts[1],
            'date': ' '.join(parts[2:]),
            'host': host
        })
    return sessions

@bp.route('/api/users/sessions', methods=['GET'])
def get_sessions():
    """List logged-in sessions."""
    try:
        success, stdout, stderr = execute_command(['who'], timeout=current_app.config['SERVICE_COMMAND_TIMEOUT'])
    except CommandTimeoutError as e:
        return error_response(e.message, 500)
    if not success:
        logger.error(f"[USERS] Error fetching sessions: {stderr}")
        return error_response('Failed to fetch sessions', 500)
    return jsonify({'sessions': parse_who(stdout)}), 200

@bp.route('/api/users/ssh-history', methods=['GET'])
def get_ssh_history():
    """Return the most recent sshd lines from the auth log."""
    try:
        lines = get_int_arg('lines', current_app.config['DEFAULT_LOG_LINES'],
                            maximum=current_app.config['MAX_LOG_LINES'])
    except ValueError as e:
        return error_response(str(e), 400)

    auth_log = current_app.config['AUTH_LOG_PATH']
    if not os.path.exists(auth_log):
        return jsonify({'lines': lines, 'log': ''}), 200

    try:
        success, stdout, stderr = execute_command(['grep', '-i', 'sshd', auth_log],
                                                  timeout=current_app.config['SERVICE_COMMAND_TIMEOUT'])
    except CommandTimeoutError as e:
        return error_response(e.message, 500)

    # grep exits 1 with no output when nothing matched
    if not success and stderr:
        logger.error(f"[USERS] Error reading {auth_log}: {stderr}")
        return error_response('Failed to fetch ssh history', 500, {'stderr': stderr})

    recent = deque(stdout.splitlines(), maxlen=lines)
    return jsonify({'lines': lines, 'log': '\n'.join(recent)}), 200
