"""
Self-update and version routes.

Every state-changing call requires ``{"confirm": true}`` in the body.
"""
import logging
import time
from datetime import datetime, timezone

from flask import current_app, jsonify, request

from hostdash.exceptions import CommandError
from hostdash.utils.utils import error_response, success_response, write_to_log
from . import bp
from . import utils

logger = logging.getLogger('hostdash')

def _confirmation_error():
    data = request.get_json(silent=True) or {}
    if data.get('confirm') is not True:
        return error_response('Confirmation required: send {"confirm": true}', 400)
    return None

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

@bp.route('/api/update/check', methods=['GET'])
def check_update():
    """Compare the running version with the newest published tag."""
    current_version = current_app.config['APP_VERSION']
    try:
        success, stdout, stderr = utils.run_git('ls-remote', '--tags', current_app.config['UPDATE_TAGS_URL'])
        if not success:
            raise CommandError('git ls-remote failed', details={'stderr': stderr})
        latest_version = utils.parse_latest_tag(stdout) or current_version
    except CommandError as e:
        logger.error(f"[UPDATE] Error checking for updates: {e.message}")
        return jsonify({
            'error': 'Failed to check for updates',
            'currentVersion': current_version,
            'isUpToDate': True,
            'updateAvailable': False,
            'lastChecked': _now_iso()
        }), 500

    update_available = utils.version_key(latest_version) > utils.version_key(current_version)
    return jsonify({
        'currentVersion': current_version,
        'latestVersion': latest_version,
        'isUpToDate': not update_available,
        'updateAvailable': update_available,
        'lastChecked': _now_iso()
    }), 200

@bp.route('/api/update/perform', methods=['POST'])
def perform_update():
    """Pull, then rebuild and restart the compose stack."""
    confirmation_error = _confirmation_error()
    if confirmation_error:
        return confirmation_error

    start_time = time.time()
    try:
        dirty = utils.get_dirty_files()
        if dirty:
            logger.warning(f"[UPDATE] Refusing update, {len(dirty)} uncommitted path(s)")
            return error_response(
                'Working directory has uncommitted changes. Please commit or stash them first.',
                400, {'files': dirty}
            )
        success, message, steps = utils.perform_update()
    except CommandError as e:
        logger.error(f"[UPDATE] Update failed: {e.message}")
        write_to_log('update', f'Update failed: {e.message}', 'error')
        return error_response('Failed to perform update', 500, {'error': e.message, **e.details})

    operation_time = time.time() - start_time
    if not success:
        write_to_log('update', message, 'error')
        return error_response(message, 500, {'steps': steps})

    logger.info(f"[UPDATE] Update completed in {operation_time:.2f} seconds")
    write_to_log('update', 'Update applied successfully', 'info')
    return success_response(message, {
        'steps': steps,
        'operationTime': f"{operation_time:.2f} seconds"
    })

@bp.route('/api/update/status', methods=['GET'])
def update_status():
    """Report whether compose services are still coming back up."""
    try:
        success, stdout, stderr = utils.run_compose('ps', '--format', 'json')
        if not success:
            raise CommandError('compose ps failed', details={'stderr': stderr})
        containers = utils.parse_compose_ps(stdout)
    except (CommandError, ValueError) as e:
        logger.error(f"[UPDATE] Error getting update status: {str(e)}")
        return jsonify({'error': 'Failed to get update status'}), 500

    return jsonify({
        'currentVersion': current_app.config['APP_VERSION'],
        'isUpdating': any(c['state'] in utils.TRANSITIONAL_STATES for c in containers),
        'containers': containers
    }), 200

@bp.route('/api/version/current', methods=['GET'])
def current_version():
    return jsonify({'version': current_app.config['APP_VERSION']}), 200

@bp.route('/api/version/check', methods=['GET'])
def check_version():
    """List commits on the tracked branch that are not checked out yet."""
    remote = current_app.config['UPDATE_REMOTE']
    branch = current_app.config['UPDATE_BRANCH']
    try:
        success, _, stderr = utils.run_git('fetch', remote)
        if not success:
            raise CommandError('git fetch failed', details={'stderr': stderr})
        success, stdout, stderr = utils.run_git('log', f'HEAD..{remote}/{branch}', '--oneline')
        if not success:
            raise CommandError('git log failed', details={'stderr': stderr})
    except CommandError as e:
        logger.error(f"[UPDATE] Error checking for updates: {e.message}")
        return error_response('Failed to check for updates', 500, e.details)

    pending = [line for line in stdout.splitlines() if line.strip()]
    return jsonify({
        'hasUpdates': bool(pending),
        'pendingCommits': pending
    }), 200

@bp.route('/api/version/update', methods=['POST'])
def update_version():
    """Fast-forward the checkout without rebuilding."""
    confirmation_error = _confirmation_error()
    if confirmation_error:
        return confirmation_error

    try:
        success, stdout, stderr = utils.run_git('pull', current_app.config['UPDATE_REMOTE'],
                                                current_app.config['UPDATE_BRANCH'])
    except CommandError as e:
        return error_response('Failed to update', 500, {'error': e.message})

    if not success:
        logger.error(f"[UPDATE] git pull failed: {stderr}")
        write_to_log('update', f'git pull failed: {stderr}', 'error')
        return error_response('Failed to update', 500, {'error': stderr})

    write_to_log('update', 'Checkout updated', 'info')
    return success_response('Update completed successfully', {'output': stdout})

@bp.route('/api/version/restart', methods=['POST'])
def restart_services():
    confirmation_error = _confirmation_error()
    if confirmation_error:
        return confirmation_error

    try:
        success, stdout, stderr = utils.run_compose('restart')
    except CommandError as e:
        return error_response('Failed to restart services', 500, {'error': e.message})

    if not success:
        logger.error(f"[UPDATE] compose restart failed: {stderr}")
        write_to_log('update', f'Service restart failed: {stderr}', 'error')
        return error_response('Failed to restart services', 500, {'error': stderr})

    write_to_log('update', 'Services restarted', 'info')
    return success_response('Services restarted successfully', {'output': stdout})
