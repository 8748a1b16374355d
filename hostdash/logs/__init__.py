"""
System and container log viewer blueprint.
"""
from flask import Blueprint

bp = Blueprint('logs', __name__)

from . import routes  # noqa
