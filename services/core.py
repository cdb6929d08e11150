import os
from concurrent.futures import ThreadPoolExecutor

# Constants
POKEAPI_BASE = 'https://pokeapi.co/api/v2'
STRATEGIES = {'flat', 'forms'}
MAX_BASE_STAT = 255  # highest base stat any Pokémon can have

DEFAULT_SETTINGS = {
    'POKEAPI_BASE': POKEAPI_BASE,
    'CATALOG_STRATEGY': 'flat',
    'CATALOG_LIMIT': 2000,
    'SPECIES_LIMIT': 1000,
    'CATALOG_SORT': True,
    'FETCH_VARIETIES': False,
    'ROLL_DELAY_SECONDS': 1.0,
    'REQUEST_TIMEOUT': 20,
    'MAX_SESSIONS': 256,
    'LOG_LEVEL': 'INFO',
}

# Thread pool for parallel sub-requests (bounded to be polite to PokeAPI)
EXECUTOR = ThreadPoolExecutor(max_workers=8)

# Whole catalog builds run here so they never wait on EXECUTOR slots
LOADER = ThreadPoolExecutor(max_workers=4, thread_name_prefix='catalog-loader')


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    v = str(value).strip().lower()
    if v in {'1', 'true', 'yes', 'on'}:
        return True
    if v in {'0', 'false', 'no', 'off', ''}:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _positive_int(value) -> int:
    n = int(value)
    if n <= 0:
        raise ValueError(f"must be positive: {value!r}")
    return n


def _non_negative_float(value) -> float:
    f = float(value)
    if f < 0:
        raise ValueError(f"must not be negative: {value!r}")
    return f


def _strategy(value) -> str:
    s = str(value).strip().lower()
    if s not in STRATEGIES:
        raise ValueError(f"unknown catalog strategy: {value!r}")
    return s


_CONVERTERS = {
    'POKEAPI_BASE': lambda v: str(v).rstrip('/'),
    'CATALOG_STRATEGY': _strategy,
    'CATALOG_LIMIT': _positive_int,
    'SPECIES_LIMIT': _positive_int,
    'CATALOG_SORT': _parse_bool,
    'FETCH_VARIETIES': _parse_bool,
    'ROLL_DELAY_SECONDS': _non_negative_float,
    'REQUEST_TIMEOUT': _positive_int,
    'MAX_SESSIONS': _positive_int,
    'LOG_LEVEL': lambda v: str(v).upper(),
}


def load_settings(environ=None, overrides=None) -> dict:
    """Resolve settings from defaults, then the environment, then explicit overrides.

    Raises ValueError naming the offending key when a value cannot be converted.
    """
    if environ is None:
        environ = os.environ
    settings = dict(DEFAULT_SETTINGS)
    for key in DEFAULT_SETTINGS:
        if key in environ:
            settings[key] = environ[key]
    settings.update(overrides or {})
    for key, convert in _CONVERTERS.items():
        try:
            settings[key] = convert(settings[key])
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid {key}: {e}") from e
    return settings
