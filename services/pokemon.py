import logging

import requests

from .core import MAX_BASE_STAT, POKEAPI_BASE
from .text_utils import derive_label

logger = logging.getLogger(__name__)


class PokemonNotFound(LookupError):
    pass


def _pick_sprite(sprites: dict):
    sprites = sprites or {}
    other = sprites.get('other') or {}
    art = (other.get('official-artwork') or {}).get('front_default')
    if not art:
        art = sprites.get('front_default')
    if not art:
        for k in other.values():
            if isinstance(k, dict) and k.get('front_default'):
                art = k['front_default']
                break
    return art


def _by_slot(items):
    return sorted(items or [], key=lambda x: x.get('slot', 0))


def build_detail(j: dict) -> dict:
    """Reshape a /pokemon/{name} record into the props the comparison page shows."""
    name = j['name']
    return {
        'id': j.get('id'),
        'name': name,
        'label': derive_label(name),
        'sprite': _pick_sprite(j.get('sprites')),
        'types': [t['type']['name'] for t in _by_slot(j.get('types'))],
        'abilities': [
            {
                'name': a['ability']['name'],
                'label': derive_label(a['ability']['name']),
                'hidden': bool(a.get('is_hidden')),
            }
            for a in _by_slot(j.get('abilities'))
        ],
        'stats': [
            {
                'name': s['stat']['name'],
                'label': s['stat']['name'].upper().replace('-', ' '),
                'base_stat': s['base_stat'],
            }
            for s in j.get('stats', [])
        ],
        # PokeAPI reports decimetres and hectograms
        'height': j.get('height'),
        'weight': j.get('weight'),
    }


def get_pokemon_detail(identifier: str, base: str = POKEAPI_BASE, timeout: int = 20) -> dict:
    url = f"{base}/pokemon/{identifier.strip().lower()}"
    r = requests.get(url, timeout=timeout)
    if r.status_code == 404:
        raise PokemonNotFound(f"Unknown Pokémon: {identifier}")
    r.raise_for_status()
    return build_detail(r.json())


def _pct(value) -> float:
    return round(min(value, MAX_BASE_STAT) / MAX_BASE_STAT * 100, 1)


def compare_stats(left: dict, right: dict) -> list:
    """Pair up base stats of two details, in the left Pokémon's stat order.

    Stats missing on one side count as 0.
    """
    right_stats = {s['name']: s['base_stat'] for s in right.get('stats', [])}
    names = [s['name'] for s in left.get('stats', [])]
    names += [n for n in right_stats if n not in names]
    left_stats = {s['name']: s['base_stat'] for s in left.get('stats', [])}
    rows = []
    for n in names:
        a = left_stats.get(n, 0)
        b = right_stats.get(n, 0)
        rows.append({
            'name': n,
            'label': n.upper().replace('-', ' '),
            'left': a,
            'right': b,
            'left_pct': _pct(a),
            'right_pct': _pct(b),
            'leader': 'left' if a > b else 'right' if b > a else 'tie',
        })
    return rows
