"""
Utility functions shared by the route modules.
"""
import os
import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from flask import current_app, jsonify, request

from hostdash.exceptions import CommandTimeoutError

ANSI_ESCAPE = re.compile(r'\x1B\[[0-?]*[ -/]*[@-~]')

def write_to_log(component: str, message: str, level: str = 'info') -> bool:
    """Append a line to the audit log for state-changing operations."""
    try:
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M')
        log_line = f"[{timestamp}] [{component}] [{level}] {message}\n"

        # Ensure log directory exists
        log_dir = current_app.config['HOSTDASH_LOG_DIR']
        Path(log_dir).mkdir(parents=True, exist_ok=True)

        with open(os.path.join(log_dir, 'hostdash.log'), "a") as log_file:
            log_file.write(log_line)

        return True
    except Exception as e:
        current_app.logger.error(f'Failed to write to log: {str(e)}')
        return False

def execute_command(command: List[str], timeout: Optional[float] = None,
                    cwd: Optional[str] = None) -> Tuple[bool, str, str]:
    """
    Execute a command with proper error handling.

    Args:
        command: List of command arguments, never passed through a shell
        timeout: Seconds before the command is killed
        cwd: Working directory for the command

    Returns:
        Tuple of (success, stdout, stderr)

    Raises:
        CommandTimeoutError: if the command outlives ``timeout``
    """
    try:
        current_app.logger.info(f"Executing command: {' '.join(command)}")

        # Set up environment with proper PATH for system commands
        env = os.environ.copy()
        env['PATH'] = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"
        env['SYSTEMD_COLORS'] = "0"

        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=False,
            env=env,
            cwd=cwd,
            timeout=timeout
        )

        stdout = ANSI_ESCAPE.sub('', result.stdout)
        return result.returncode == 0, stdout.strip(), result.stderr.strip()

    except subprocess.TimeoutExpired:
        current_app.logger.error(f"Command timed out after {timeout}s: {' '.join(command)}")
        raise CommandTimeoutError(
            f"Command timed out after {timeout} seconds",
            details={'command': ' '.join(command)}
        )
    except Exception as e:
        current_app.logger.error(f"Error executing command: {str(e)}")
        return False, "", str(e)

def get_component(name: str):
    """Return a shared collaborator built by the application factory."""
    return current_app.extensions['hostdash'][name]

def get_int_arg(name: str, default: int, minimum: int = 1, maximum: Optional[int] = None) -> int:
    """
    Read an integer query parameter.

    Raises:
        ValueError: if the value is not an integer or lies outside the bounds
    """
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"'{name}' must be an integer")
    if value < minimum or (maximum is not None and value > maximum):
        if maximum is None:
            raise ValueError(f"'{name}' must be at least {minimum}")
        raise ValueError(f"'{name}' must be between {minimum} and {maximum}")
    return value

def error_response(message, status_code=400, details=None):
    """
    Create an error JSON response.

    Args:
        message (str): Error message
        status_code (int): HTTP status code
        details (dict, optional): Additional details

    Returns:
        tuple: (jsonify response, status_code)
    """
    response = {
        "success": False,
        "error": message
    }

    if details:
        response["details"] = details

    return jsonify(response), status_code

def success_response(message, details=None):
    """
    Create a success JSON response.

    Args:
        message (str): Success message
        details (dict, optional): Additional details

    Returns:
        tuple: (jsonify response, status_code)
    """
    response = {
        "success": True,
        "message": message
    }

    if details:
        response.update(details)

    return jsonify(response), 200
