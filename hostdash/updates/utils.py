"""
Git and compose helpers for the self-update routes.
"""
import json
import logging
import re
import shutil
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app

from hostdash.exceptions import CommandError
from hostdash.utils.utils import execute_command

logger = logging.getLogger('hostdash')

# Compose states that mean a rebuild or restart is still running
TRANSITIONAL_STATES = {'restarting', 'starting', 'created'}

def run_git(*args: str) -> Tuple[bool, str, str]:
    """Run git inside the deployment checkout."""
    return execute_command(['git', *args], timeout=current_app.config['UPDATE_COMMAND_TIMEOUT'],
                           cwd=current_app.config['REPO_DIR'])

def compose_command() -> List[str]:
    """Prefer the standalone docker-compose binary, fall back to the compose plugin."""
    if shutil.which('docker-compose'):
        return ['docker-compose']
    return ['docker', 'compose']

def run_compose(*args: str) -> Tuple[bool, str, str]:
    return execute_command([*compose_command(), *args], timeout=current_app.config['UPDATE_COMMAND_TIMEOUT'],
                           cwd=current_app.config['REPO_DIR'])

def version_key(version: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r'\d+', version))

def parse_latest_tag(ls_remote_output: str) -> Optional[str]:
    """
    Pick the highest version tag from ``git ls-remote --tags`` output.

    Peeled refs (``^{}``) and a leading ``v`` are stripped.
    """
    tags = set()
    for line in ls_remote_output.splitlines():
        parts = line.split()
        if len(parts) != 2 or not parts[1].startswith('refs/tags/'):
            continue
        tag = parts[1][len('refs/tags/'):]
        if tag.endswith('^{}'):
            tag = tag[:-3]
        tag = tag.lstrip('vV')
        if version_key(tag):
            tags.add(tag)
    if not tags:
        return None
    return max(tags, key=version_key)

def parse_compose_ps(output: str) -> List[Dict[str, Any]]:
    """
    Parse ``compose ps --format json``.

    Older compose releases print one JSON array, newer ones one object per line.
    """
    output = output.strip()
    if not output:
        return []
    if output.startswith('['):
        entries = json.loads(output)
    else:
        entries = [json.loads(line) for line in output.splitlines() if line.strip()]
    return [{
        'name': entry.get('Name'),
        'state': (entry.get('State') or '').lower(),
        'status': entry.get('Status')
    } for entry in entries]

def _step(name: str, success: bool, stdout: str, stderr: str) -> Dict[str, Any]:
    return {'step': name, 'success': success, 'output': stdout, 'error': stderr}

def get_dirty_files() -> List[str]:
    """
    List uncommitted paths in the checkout.

    Raises:
        CommandError: when the directory is not a git checkout
    """
    success, stdout, stderr = run_git('status', '--porcelain')
    if not success:
        raise CommandError('Not a git checkout or git is unavailable', details={'stderr': stderr})
    return [line.strip().split(None, 1)[-1] for line in stdout.splitlines() if line.strip()]

def perform_update() -> Tuple[bool, str, List[Dict[str, Any]]]:
    """
    Pull the configured branch and rebuild the compose stack.

    Expects a clean working tree and stops at the first failing step.

    Returns:
        Tuple of (success, message, steps)
    """
    remote = current_app.config['UPDATE_REMOTE']
    branch = current_app.config['UPDATE_BRANCH']
    steps = []

    plan = [
        ('git pull', lambda: run_git('pull', remote, branch)),
        ('compose down', lambda: run_compose('down')),
        ('compose up', lambda: run_compose('up', '-d', '--build'))
    ]
    for name, run in plan:
        logger.info(f"[UPDATE] Running step: {name}")
        success, stdout, stderr = run()
        steps.append(_step(name, success, stdout, stderr))
        if not success:
            logger.error(f"[UPDATE] Step {name} failed: {stderr}")
            return False, f'Update failed during {name}', steps

    return True, 'Update completed successfully. Services are restarting...', steps
