"""
Port scanning blueprint.
"""
from flask import Blueprint

bp = Blueprint('ports', __name__)

from . import routes  # noqa
