"""
Self-update and version blueprint.
"""
from flask import Blueprint

bp = Blueprint('updates', __name__)

from . import routes  # noqa
