"""
Container management blueprint.
"""
from flask import Blueprint

bp = Blueprint('containers', __name__)

from . import routes  # noqa
