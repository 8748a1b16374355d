"""
Threshold alerts blueprint.
"""
from flask import Blueprint

bp = Blueprint('alerts', __name__)

from . import routes  # noqa
