"""Tests for configuration loading and overrides."""

import json

from flask import Flask

from config import TestingConfig, load_overrides
from hostdash import apply_overrides


def test_missing_file_gives_no_overrides(tmp_path):
    assert load_overrides(str(tmp_path / 'nope.json')) == {}


def test_invalid_json_is_ignored(tmp_path):
    path = tmp_path / 'hostdash.json'
    path.write_text('{not json')
    assert load_overrides(str(path)) == {}


def test_non_object_is_ignored(tmp_path):
    path = tmp_path / 'hostdash.json'
    path.write_text('[1, 2]')
    assert load_overrides(str(path)) == {}


def test_overrides_are_applied(tmp_path):
    path = tmp_path / 'hostdash.json'
    path.write_text(json.dumps({
        'cors': {'allowed_origins': ['http://nas.local:3200']},
        'alerts': {'cpuLoad': 4.0, 'diskPercent': 95},
        'intervals': {'system': 5}
    }))
    app = Flask(__name__)
    app.config.from_object(TestingConfig)

    apply_overrides(app, load_overrides(str(path)))

    assert app.config['CORS_ORIGINS'] == ['http://nas.local:3200']
    assert app.config['ALERT_CPU_LOAD'] == 4.0
    assert app.config['ALERT_DISK_PERCENT'] == 95
    assert app.config['ALERT_MEMORY_PERCENT'] == 85
    assert app.config['SYSTEM_STATS_INTERVAL'] == 5
    assert app.config['DOCKER_STATS_INTERVAL'] == 3
