"""
Flask application factory and extension initialization.
"""
import time
from datetime import datetime, timezone

import eventlet
from flask import Flask, jsonify, request
from flask_socketio import SocketIO
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import load_overrides

# Initialize extensions
socketio = SocketIO(
    cors_allowed_origins="*",  # Will be updated in create_app
    async_mode='eventlet',
    logger=False,
    engineio_logger=False,
    ping_timeout=60,
    ping_interval=25,
    transports=['websocket', 'polling'],
    cors_credentials=True
)

def apply_overrides(app: Flask, overrides: dict) -> None:
    """Copy the supported keys of the JSON override file into app.config."""
    cors = overrides.get('cors', {})
    if 'allowed_origins' in cors:
        app.config['CORS_ORIGINS'] = cors['allowed_origins']
        app.logger.info(f"Loaded CORS origins: {app.config['CORS_ORIGINS']}")

    alerts = overrides.get('alerts', {})
    for key, config_key in (('cpuLoad', 'ALERT_CPU_LOAD'),
                            ('memoryPercent', 'ALERT_MEMORY_PERCENT'),
                            ('diskPercent', 'ALERT_DISK_PERCENT')):
        if key in alerts:
            app.config[config_key] = alerts[key]

    intervals = overrides.get('intervals', {})
    if 'system' in intervals:
        app.config['SYSTEM_STATS_INTERVAL'] = intervals['system']
    if 'docker' in intervals:
        app.config['DOCKER_STATS_INTERVAL'] = intervals['docker']

def create_app(config_object=None, services=None):
    """
    Create and configure the Flask application.

    ``services`` lets callers hand in prebuilt collaborators (system monitor,
    container client, emitter); anything missing is built from the config.
    """
    app = Flask(__name__)

    if config_object:
        app.config.from_object(config_object)

    app.logger.setLevel('DEBUG' if app.config.get('DEBUG') else 'INFO')
    app.config['STARTED_AT'] = time.time()

    with app.app_context():
        app.logger.info("Loading dynamic configuration")
        overrides = load_overrides(app.config.get('HOSTDASH_CONFIG', ''))
        if overrides:
            apply_overrides(app, overrides)
        else:
            app.logger.info("No configuration overrides found, using defaults")

    origins = app.config.get('CORS_ORIGINS', ["http://localhost:3200"])
    CORS(app, resources={
        r"/api/*": {
            "origins": origins,
            "supports_credentials": True,
            "allow_headers": ["Content-Type", "Authorization", "X-Requested-With", "Origin"],
            "methods": ["GET", "POST", "OPTIONS"]
        }
    })

    # Handlers must be declared before init_app so every server gets them
    from .sockets import bp as sockets_bp
    socketio.init_app(app, cors_allowed_origins=origins)

    # Build monitors, broadcaster and connection registry
    from .broadcasts.events import init_broadcasters
    init_broadcasters(app, services or {})

    # Start connection logger
    if app.config.get('CONNECTION_LOG_INTERVAL'):
        from .sockets.events import log_connection_status
        eventlet.spawn(log_connection_status, app)

    # Register blueprints
    from .stats import bp as stats_bp
    from .containers import bp as containers_bp
    from .ports import bp as ports_bp
    from .logs import bp as logs_bp
    from .services import bp as services_bp
    from .users import bp as users_bp
    from .alerts import bp as alerts_bp
    from .updates import bp as updates_bp
    from .widgets import bp as widgets_bp
    app.register_blueprint(sockets_bp)
    app.register_blueprint(stats_bp)
    app.register_blueprint(containers_bp)
    app.register_blueprint(ports_bp)
    app.register_blueprint(logs_bp)
    app.register_blueprint(services_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(alerts_bp)
    app.register_blueprint(updates_bp)
    app.register_blueprint(widgets_bp)

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({
            'status': 'ok',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'uptime': time.time() - app.config['STARTED_AT']
        }), 200

    # Register error handlers
    @app.errorhandler(404)
    def not_found_error(error):
        return {'error': 'Route not found'}, 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return {'error': 'Method not allowed'}, 405

    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return {'error': error.description}, error.code
        app.logger.exception(f"Unhandled error on {request.method} {request.path}: {str(error)}")
        return {'error': 'Internal server error'}, 500

    return app
