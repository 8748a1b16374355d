"""
Systemd service control blueprint.
"""
from flask import Blueprint

bp = Blueprint('services', __name__)

from . import routes  # noqa
