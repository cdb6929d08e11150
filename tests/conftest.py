from concurrent.futures import Executor, Future

import pytest
import requests

from app import create_app
from services.catalog import CatalogEntry
from services.pokemon import build_detail

LIST_URL = 'https://pokeapi.co/api/v2/pokemon?limit=2000'


class ImmediateExecutor(Executor):
    """Runs submitted work on the calling thread so tests stay deterministic."""

    def submit(self, fn, *args, **kwargs):
        f = Future()
        try:
            f.set_result(fn(*args, **kwargs))
        except BaseException as e:
            f.set_exception(e)
        return f


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeApi:
    """Maps URLs to payloads; anything unknown is a 404, exceptions are raised."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        payload = self.routes.get(url)
        if isinstance(payload, requests.RequestException):
            raise payload
        if isinstance(payload, FakeResponse):
            return payload
        if payload is None:
            return FakeResponse({'detail': 'Not found.'}, status_code=404)
        return FakeResponse(payload)


def make_entries(*identifiers):
    return tuple(CatalogEntry.from_identifier(i) for i in identifiers)


def pokemon_record(name, pid=1, stats=None, types=('normal',)):
    stats = stats or {'hp': 50, 'attack': 50}
    return {
        'id': pid,
        'name': name,
        'height': 7,
        'weight': 69,
        'sprites': {
            'front_default': f'https://img/{name}.png',
            'other': {'official-artwork': {'front_default': f'https://art/{name}.png'}},
        },
        'types': [{'slot': i + 1, 'type': {'name': t}} for i, t in enumerate(types)],
        'abilities': [
            {'slot': 3, 'is_hidden': True, 'ability': {'name': 'chlorophyll'}},
            {'slot': 1, 'is_hidden': False, 'ability': {'name': 'overgrow'}},
        ],
        'stats': [{'base_stat': v, 'stat': {'name': k}} for k, v in stats.items()],
    }


@pytest.fixture
def fake_api(monkeypatch):
    api = FakeApi()
    monkeypatch.setattr(requests, 'get', api.get)
    return api


@pytest.fixture
def immediate():
    return ImmediateExecutor()


@pytest.fixture
def app(immediate):
    def catalog_fetcher(options):
        return make_entries('bulbasaur', 'charmander', 'mr-mime')

    def detail_fetcher(identifier):
        stats = {'hp': 45, 'attack': 49} if identifier == 'bulbasaur' else {'hp': 39, 'attack': 52}
        return build_detail(pokemon_record(identifier, stats=stats))

    application = create_app(
        {'TESTING': True, 'ROLL_DELAY_SECONDS': 0},
        loader=immediate,
        catalog_fetcher=catalog_fetcher,
        detail_fetcher=detail_fetcher,
    )
    yield application
    application.extensions['comparison_sessions'].close_all()


@pytest.fixture
def client(app):
    return app.test_client()
