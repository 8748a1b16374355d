"""
Helpers for systemd unit listing and validation.
"""
import re
from typing import Dict, List, Pattern

ALLOWED_ACTIONS = {'start', 'stop', 'restart', 'enable', 'disable', 'status'}

DEFAULT_SERVICE_PATTERN = 'nginx|apache2|docker|ssh|sshd'

# systemd unit names: letters, digits, ":-_.\@", optionally with a unit suffix
UNIT_NAME = re.compile(r'^[A-Za-z0-9:_.\\@-]+$')

# Bullet systemctl prints in front of failed or not-found units
UNIT_MARKER = '●'

def is_valid_unit_name(name: str) -> bool:
    return bool(name) and len(name) <= 256 and not name.startswith('-') and bool(UNIT_NAME.match(name))

def filter_lines(output: str, matcher: Pattern) -> List[str]:
    return [line for line in output.splitlines() if line.strip() and matcher.search(line)]

def parse_unit_line(line: str) -> Dict[str, str]:
    """
    Split one ``systemctl list-units`` row.

    Rows look like ``ssh.service loaded active running OpenBSD Secure Shell server``.
    """
    parts = line.replace(UNIT_MARKER, ' ').split(None, 4)
    parts += [''] * (5 - len(parts))
    return {
        'unit': parts[0],
        'load': parts[1],
        'active': parts[2],
        'sub': parts[3],
        'description': parts[4]
    }
