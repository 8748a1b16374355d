"""
Third-party widget data blueprint.
"""
from flask import Blueprint

bp = Blueprint('widgets', __name__)

from . import routes  # noqa
