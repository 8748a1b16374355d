"""
Main application entry point.
"""
import os
import signal
import sys
import eventlet
eventlet.monkey_patch()

from hostdash import create_app, socketio
from config import config

# Get config based on environment
config_name = os.getenv('FLASK_ENV', 'default')
config_class = config.get(config_name, config['default'])
app = create_app(config_class)

def signal_handler(signum, frame):
    """Handle shutdown signals by stopping every live subscription."""
    app.logger.info(f"Received signal {signum}, cleaning up WebSocket state...")
    from hostdash.sockets.events import cleanup_websocket_state
    with app.app_context():
        cleanup_websocket_state()
    eventlet.sleep(0)  # Yield to other greenlets
    sys.exit(0)

def worker_init():
    """Register signal handlers for a clean shutdown."""
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

if __name__ == '__main__':
    worker_init()
    app.logger.info(f"Server running on port {app.config['PORT']}")
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'])
