"""
Login session and SSH history blueprint.
"""
from flask import Blueprint

bp = Blueprint('users', __name__)

from . import routes  # noqa
