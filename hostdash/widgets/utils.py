"""Third-party API integrations backing the dashboard widgets."""
import logging
import time
from typing import Any, Dict, List, Optional

import eventlet
import requests

from hostdash.exceptions import WidgetError

logger = logging.getLogger('hostdash')

OPENWEATHER_URL = 'https://api.openweathermap.org/data/2.5/forecast'
NEWS_URL = 'https://newsapi.org/v2/top-headlines'
COINGECKO_URL = 'https://api.coingecko.com/api/v3/coins/markets'
GITHUB_REPOS_URL = 'https://api.github.com/users/{username}/repos'

STATUS_TARGETS = [
    {'name': 'GitHub', 'url': 'https://api.github.com'},
    {'name': 'Docker Hub', 'url': 'https://hub.docker.com'},
    {'name': 'PyPI', 'url': 'https://pypi.org'}
]

class WidgetClient:
    """Fetch and reshape third-party data for the widgets."""

    def __init__(self, weather_api_key: str = '', news_api_key: str = '', timeout: float = 5,
                 session: Optional[requests.Session] = None):
        self.weather_api_key = weather_api_key
        self.news_api_key = news_api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"[WIDGETS] Request to {url} failed: {str(e)}")
            raise WidgetError(f"Upstream request failed: {str(e)}", details={'url': url})
        except ValueError as e:
            raise WidgetError(f"Invalid JSON from upstream: {str(e)}", details={'url': url})

    def get_weather(self, city: str = 'London') -> Dict[str, Any]:
        """Current conditions plus one forecast entry per day for five days."""
        if not self.weather_api_key:
            raise WidgetError('OpenWeather API key not configured')

        data = self._get(OPENWEATHER_URL, {'q': city, 'appid': self.weather_api_key, 'units': 'metric'})
        entries = data.get('list') or []
        if not entries:
            raise WidgetError(f"No forecast data for {city}")

        current = entries[0]
        # Three-hour steps, so every eighth entry starts a new day
        forecast = [{
            'date': item['dt_txt'].split(' ')[0],
            'temp': {'min': item['main']['temp_min'], 'max': item['main']['temp_max']},
            'description': item['weather'][0]['description'],
            'icon': item['weather'][0]['icon']
        } for item in entries[::8][:5]]

        return {
            'current': {
                'temp': round(current['main']['temp']),
                'humidity': current['main']['humidity'],
                'pressure': current['main']['pressure'],
                'description': current['weather'][0]['description'],
                'icon': current['weather'][0]['icon']
            },
            'forecast': forecast
        }

    def get_news(self, category: str = 'technology', limit: int = 10) -> List[Dict[str, Any]]:
        if not self.news_api_key:
            raise WidgetError('News API key not configured')

        data = self._get(NEWS_URL, {'category': category, 'pageSize': limit, 'apiKey': self.news_api_key})
        return [{
            'title': article.get('title'),
            'description': article.get('description'),
            'url': article.get('url'),
            'publishedAt': article.get('publishedAt'),
            'source': (article.get('source') or {}).get('name'),
            'urlToImage': article.get('urlToImage')
        } for article in data.get('articles', [])]

    def get_crypto_prices(self, limit: int = 10) -> List[Dict[str, Any]]:
        data = self._get(COINGECKO_URL, {
            'vs_currency': 'usd',
            'order': 'market_cap_desc',
            'per_page': limit,
            'page': 1,
            'sparkline': 'false'
        })
        return [{
            'id': coin.get('id'),
            'symbol': (coin.get('symbol') or '').upper(),
            'name': coin.get('name'),
            'current_price': coin.get('current_price'),
            'price_change_percentage_24h': coin.get('price_change_percentage_24h'),
            'market_cap': coin.get('market_cap'),
            'image': coin.get('image')
        } for coin in data]

    def get_github_repos(self, username: str, limit: int = 5) -> List[Dict[str, Any]]:
        data = self._get(GITHUB_REPOS_URL.format(username=username), {'sort': 'updated', 'per_page': limit})
        return [{
            'name': repo.get('name'),
            'full_name': repo.get('full_name'),
            'description': repo.get('description'),
            'stargazers_count': repo.get('stargazers_count'),
            'forks_count': repo.get('forks_count'),
            'open_issues_count': repo.get('open_issues_count'),
            'language': repo.get('language'),
            'updated_at': repo.get('updated_at')
        } for repo in data]

    def check_target(self, target: Dict[str, str]) -> Dict[str, Any]:
        start = time.monotonic()
        try:
            self.session.get(target['url'], timeout=self.timeout)
            status = 'online'
        except requests.exceptions.RequestException:
            status = 'offline'
        return {
            'service': target['name'],
            'status': status,
            'responseTime': int((time.monotonic() - start) * 1000)
        }

    def get_status(self, targets: Optional[List[Dict[str, str]]] = None) -> List[Dict[str, Any]]:
        """Check every target concurrently; each has its own timeout."""
        targets = targets if targets is not None else STATUS_TARGETS
        pool = eventlet.GreenPool(size=max(len(targets), 1))
        return list(pool.imap(self.check_target, targets))
