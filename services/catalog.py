import logging
import time
from concurrent.futures import FIRST_EXCEPTION, wait
from dataclasses import dataclass, field

import requests

from .core import EXECUTOR, POKEAPI_BASE
from .text_utils import derive_label, label_sort_key

logger = logging.getLogger(__name__)


class CatalogFetchError(RuntimeError):
    """The option list could not be built from the upstream API."""


@dataclass(frozen=True)
class CatalogEntry:
    identifier: str
    label: str

    @classmethod
    def from_identifier(cls, identifier: str) -> 'CatalogEntry':
        return cls(identifier=identifier, label=derive_label(identifier))

    def to_dict(self) -> dict:
        return {'value': self.identifier, 'label': self.label}


@dataclass(frozen=True)
class CatalogOptions:
    base: str = POKEAPI_BASE
    strategy: str = 'flat'
    catalog_limit: int = 2000
    species_limit: int = 1000
    sort: bool = True
    fetch_varieties: bool = False
    timeout: int = 20
    executor: object = field(default=EXECUTOR, compare=False, repr=False)

    @classmethod
    def from_config(cls, config) -> 'CatalogOptions':
        return cls(
            base=config['POKEAPI_BASE'],
            strategy=config['CATALOG_STRATEGY'],
            catalog_limit=config['CATALOG_LIMIT'],
            species_limit=config['SPECIES_LIMIT'],
            sort=config['CATALOG_SORT'],
            fetch_varieties=config['FETCH_VARIETIES'],
            timeout=config['REQUEST_TIMEOUT'],
        )


def _fetch_json(url: str, timeout: int = 20):
    r = requests.get(url, timeout=timeout)
    r.raise_for_status()
    return r.json()


def join_all(fn, items, executor=EXECUTOR):
    """Run ``fn`` over ``items`` concurrently and return the results in input order.

    Fails fast: the first exception cancels every task that has not started yet
    and is re-raised. Tasks already running are left to finish; their results
    are dropped.
    """
    futures = [executor.submit(fn, item) for item in items]
    if not futures:
        return []
    done, pending = wait(futures, return_when=FIRST_EXCEPTION)
    for f in pending:
        f.cancel()
    for f in futures:
        if f in done and f.exception() is not None:
            raise f.exception()
    return [f.result() for f in futures]


def _results(payload) -> list:
    results = payload.get('results') if isinstance(payload, dict) else None
    if not isinstance(results, list):
        raise ValueError("list response has no 'results' array")
    return results


def _flat_identifiers(options: CatalogOptions) -> list:
    url = f"{options.base}/pokemon?limit={options.catalog_limit}"
    return [item['name'] for item in _results(_fetch_json(url, options.timeout))]


def _forms_identifiers(options: CatalogOptions) -> list:
    url = f"{options.base}/pokemon-species?limit={options.species_limit}"
    species_urls = [item['url'] for item in _results(_fetch_json(url, options.timeout))]

    def fetch(u):
        return _fetch_json(u, options.timeout)

    species_records = join_all(fetch, species_urls, options.executor)
    varieties = [
        variety['pokemon']
        for record in species_records
        for variety in record.get('varieties', [])
    ]
    if options.fetch_varieties:
        records = join_all(fetch, [v['url'] for v in varieties], options.executor)
        return [record['name'] for record in records]
    return [v['name'] for v in varieties]


_STRATEGIES = {
    'flat': _flat_identifiers,
    'forms': _forms_identifiers,
}


def fetch_catalog(options: CatalogOptions) -> tuple:
    """Build the selectable catalog once, according to ``options.strategy``.

    Raises CatalogFetchError on any network error, non-2xx response or malformed
    body. There is no partial result: one failed sub-request fails the catalog.
    """
    try:
        strategy = _STRATEGIES[options.strategy]
    except KeyError:
        raise ValueError(f"unknown catalog strategy: {options.strategy!r}") from None

    started = time.monotonic()
    try:
        identifiers = strategy(options)
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        raise CatalogFetchError(f"{options.strategy} catalog fetch failed: {e}") from e

    seen = set()
    entries = []
    for identifier in identifiers:
        if not isinstance(identifier, str) or not identifier:
            raise CatalogFetchError(f"malformed identifier in list response: {identifier!r}")
        if identifier in seen:
            continue
        seen.add(identifier)
        entries.append(CatalogEntry.from_identifier(identifier))

    if options.sort:
        entries.sort(key=lambda e: label_sort_key(e.label))

    logger.info(
        "Built %s catalog with %d entries in %.2fs",
        options.strategy, len(entries), time.monotonic() - started,
    )
    return tuple(entries)
