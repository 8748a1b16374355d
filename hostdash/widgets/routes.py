"""
Widget data routes.
"""
import logging

from flask import current_app, jsonify, request

from hostdash.exceptions import WidgetError
from hostdash.utils.utils import error_response, get_int_arg
from . import bp
from .utils import WidgetClient

logger = logging.getLogger('hostdash')

def _client() -> WidgetClient:
    extensions = current_app.extensions['hostdash']
    if 'widget_client' not in extensions:
        extensions['widget_client'] = WidgetClient(
            weather_api_key=current_app.config['OPENWEATHER_API_KEY'],
            news_api_key=current_app.config['NEWS_API_KEY'],
            timeout=current_app.config['WIDGET_TIMEOUT']
        )
    return extensions['widget_client']

@bp.route('/api/widgets/weather', methods=['GET'])
def get_weather():
    city = request.args.get('city', 'London')
    try:
        return jsonify(_client().get_weather(city)), 200
    except WidgetError as e:
        logger.error(f"[WIDGETS] Error getting weather data: {e.message}")
        return error_response('Failed to get weather data', 500, {'error': e.message})

@bp.route('/api/widgets/news', methods=['GET'])
def get_news():
    category = request.args.get('category', 'technology')
    try:
        limit = get_int_arg('limit', 10, maximum=100)
    except ValueError as e:
        return error_response(str(e), 400)
    try:
        return jsonify(_client().get_news(category, limit)), 200
    except WidgetError as e:
        logger.error(f"[WIDGETS] Error getting news data: {e.message}")
        return error_response('Failed to get news data', 500, {'error': e.message})

@bp.route('/api/widgets/crypto', methods=['GET'])
def get_crypto():
    try:
        limit = get_int_arg('limit', 10, maximum=250)
    except ValueError as e:
        return error_response(str(e), 400)
    try:
        return jsonify(_client().get_crypto_prices(limit)), 200
    except WidgetError as e:
        logger.error(f"[WIDGETS] Error getting crypto data: {e.message}")
        return error_response('Failed to get crypto data', 500, {'error': e.message})

@bp.route('/api/widgets/github', methods=['GET'])
def get_github():
    username = request.args.get('username', '').strip()
    if not username:
        return error_response('Username is required', 400)
    try:
        limit = get_int_arg('limit', 5, maximum=100)
    except ValueError as e:
        return error_response(str(e), 400)
    try:
        return jsonify(_client().get_github_repos(username, limit)), 200
    except WidgetError as e:
        logger.error(f"[WIDGETS] Error getting GitHub data: {e.message}")
        return error_response('Failed to get GitHub data', 500, {'error': e.message})

@bp.route('/api/widgets/status', methods=['GET'])
def get_status():
    """Reachability of a few well-known upstream services."""
    return jsonify(_client().get_status()), 200
