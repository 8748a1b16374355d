"""Tests for the third-party widget client."""

from unittest.mock import MagicMock

import pytest
import requests

from hostdash.exceptions import WidgetError
from hostdash.widgets.utils import WidgetClient


def response(payload):
    mock = MagicMock()
    mock.json.return_value = payload
    mock.raise_for_status.return_value = None
    return mock


@pytest.fixture
def session():
    return MagicMock()


def forecast_entry(day, temp):
    return {
        'dt_txt': f'2025-10-{day:02d} 12:00:00',
        'main': {'temp': temp, 'temp_min': temp - 2, 'temp_max': temp + 2, 'humidity': 70, 'pressure': 1012},
        'weather': [{'description': 'light rain', 'icon': '10d'}]
    }


class TestWidgetClient:

    def test_weather_picks_one_entry_per_day(self, session):
        entries = [forecast_entry(1 + i // 8, 10.6 + i) for i in range(40)]
        session.get.return_value = response({'list': entries})
        client = WidgetClient(weather_api_key='key', session=session)

        weather = client.get_weather('Leeds')

        assert weather['current']['temp'] == 11
        assert [day['date'] for day in weather['forecast']] == [
            '2025-10-01', '2025-10-02', '2025-10-03', '2025-10-04', '2025-10-05'
        ]
        assert session.get.call_args.kwargs['params']['q'] == 'Leeds'
        assert session.get.call_args.kwargs['timeout'] == 5

    def test_missing_keys(self, session):
        client = WidgetClient(session=session)
        with pytest.raises(WidgetError):
            client.get_weather()
        with pytest.raises(WidgetError):
            client.get_news()
        session.get.assert_not_called()

    def test_crypto_symbols_are_upper_case(self, session):
        session.get.return_value = response([{'id': 'bitcoin', 'symbol': 'btc', 'name': 'Bitcoin',
                                              'current_price': 1, 'market_cap': 2}])
        [coin] = WidgetClient(session=session).get_crypto_prices(1)
        assert coin['symbol'] == 'BTC'

    def test_upstream_failure_becomes_widget_error(self, session):
        session.get.side_effect = requests.exceptions.ConnectTimeout('timed out')
        with pytest.raises(WidgetError):
            WidgetClient(session=session).get_github_repos('octocat')

    def test_status_marks_unreachable_targets_offline(self, session):
        def fake_get(url, timeout):
            if 'docker' in url:
                raise requests.exceptions.ConnectionError('refused')
            return response({})

        session.get.side_effect = fake_get
        status = WidgetClient(session=session).get_status()

        assert {s['service']: s['status'] for s in status} == {
            'GitHub': 'online', 'Docker Hub': 'offline', 'PyPI': 'online'
        }
