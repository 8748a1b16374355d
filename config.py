"""
Application configuration settings.
"""
import os
import json
import logging

def get_config_path() -> str:
    """Get the path of the optional JSON override file."""
    return os.environ.get('HOSTDASH_CONFIG', '/etc/hostdash/hostdash.json')

def load_overrides(path: str) -> dict:
    """
    Read the JSON override file.

    Returns an empty dict when the file is missing or unreadable so that a bad
    override file never keeps the dashboard from starting.
    """
    if not os.path.exists(path):
        return {}
    try:
        with open(path, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            logging.error(f"Ignoring config at {path}: top level must be an object")
            return {}
        return data
    except Exception as e:
        logging.error(f"Error reading config overrides from {path}: {str(e)}")
        return {}

class Config:
    """Base configuration."""
    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev')
    JSON_SORT_KEYS = False

    # Server settings
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', 5200))

    # CORS settings - overridden by the JSON config if available
    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3200')
    CORS_ORIGINS = [FRONTEND_URL]

    # File paths
    HOSTDASH_CONFIG = get_config_path()
    HOSTDASH_LOG_DIR = os.environ.get('HOSTDASH_LOG_DIR', '/var/log/hostdash')
    REPO_DIR = os.environ.get('REPO_DIR', os.path.dirname(os.path.abspath(__file__)))
    SYSLOG_PATH = '/var/log/syslog'
    AUTH_LOG_PATH = '/var/log/auth.log'

    # Container runtime
    DOCKER_SOCKET = os.environ.get('DOCKER_SOCKET', '/var/run/docker.sock')
    DOCKER_CLIENT_TIMEOUT = 10  # Seconds

    # Broadcast intervals
    SYSTEM_STATS_INTERVAL = 2  # Seconds
    DOCKER_STATS_INTERVAL = 3  # Seconds
    CONNECTION_LOG_INTERVAL = 60  # Seconds

    # Monitoring settings
    METRIC_HISTORY_LENGTH = 60  # Samples kept for the history endpoints

    # Timeouts
    PORT_SCAN_TIMEOUT = 2  # Seconds per socket
    SERVICE_COMMAND_TIMEOUT = 15  # Seconds
    UPDATE_COMMAND_TIMEOUT = 600  # Seconds, covers image rebuilds
    WIDGET_TIMEOUT = 5  # Seconds per outbound request

    # Log viewer limits
    DEFAULT_LOG_LINES = 200
    MAX_LOG_LINES = 5000

    # Alert thresholds
    ALERT_CPU_LOAD = 2.0  # 1-minute load average
    ALERT_MEMORY_PERCENT = 85
    ALERT_DISK_PERCENT = 85

    # Third-party widget keys
    OPENWEATHER_API_KEY = os.environ.get('OPENWEATHER_API_KEY', '')
    NEWS_API_KEY = os.environ.get('NEWS_API_KEY', '')

    # Self-update
    UPDATE_REMOTE = 'origin'
    UPDATE_BRANCH = 'main'
    UPDATE_TAGS_URL = os.environ.get('UPDATE_TAGS_URL', 'https://github.com/Lord0fthetrains/os.git')
    APP_VERSION = '1.2.0'

class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False

class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = True
    TESTING = True
    # Use temporary locations for testing
    HOSTDASH_LOG_DIR = '/tmp/hostdash_test_logs'
    HOSTDASH_CONFIG = '/tmp/hostdash_test_config.json'
    CORS_ORIGINS = ['http://localhost:3200']
    # Keep background loops quiet under test
    CONNECTION_LOG_INTERVAL = 0

class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False

# Map environment names to config classes
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
