import logging
import secrets
import threading
from collections import OrderedDict
from functools import partial

from .pokemon import compare_stats
from .selector import PokemonSelector

logger = logging.getLogger(__name__)

SLOTS = ('left', 'right')


class ComparisonSession:
    """Two independent selector slots and the Pokémon chosen in each.

    Each slot owns its own selector and catalog; nothing is shared between them.
    """

    def __init__(self, options, detail_fetcher, roll_delay=1.0, loader=None, rng=None,
                 catalog_fetcher=None):
        self.id = secrets.token_urlsafe(12)
        self._detail_fetcher = detail_fetcher
        self._lock = threading.Lock()
        self._pokemon = {slot: None for slot in SLOTS}
        self._errors = {slot: None for slot in SLOTS}
        self._pending = {slot: 0 for slot in SLOTS}
        self.selectors = {
            slot: PokemonSelector(
                options,
                partial(self._on_select, slot),
                roll_delay=roll_delay,
                loader=loader,
                rng=rng,
                catalog_fetcher=catalog_fetcher,
            )
            for slot in SLOTS
        }

    def start(self):
        for selector in self.selectors.values():
            selector.load()
        return self

    def close(self):
        for selector in self.selectors.values():
            selector.close()

    def selector(self, slot) -> PokemonSelector:
        try:
            return self.selectors[slot]
        except KeyError:
            raise LookupError(f"Unknown slot: {slot}") from None

    def _on_select(self, slot, identifier):
        with self._lock:
            self._pending[slot] += 1
        try:
            detail = self._detail_fetcher(identifier)
        except Exception as e:
            logger.exception("Error fetching pokemon %s for %s slot", identifier, slot)
            with self._lock:
                self._errors[slot] = str(e)
        else:
            with self._lock:
                self._pokemon[slot] = detail
                self._errors[slot] = None
        finally:
            with self._lock:
                self._pending[slot] -= 1

    def pokemon(self, slot):
        return self._pokemon[slot]

    def comparison(self):
        with self._lock:
            left, right = self._pokemon['left'], self._pokemon['right']
        if not left or not right:
            return None
        return compare_stats(left, right)

    def to_dict(self) -> dict:
        with self._lock:
            slots = {
                slot: {
                    'selector': self.selectors[slot].snapshot(),
                    'pokemon': self._pokemon[slot],
                    'error': self._errors[slot],
                    'pending': self._pending[slot] > 0,
                }
                for slot in SLOTS
            }
        return {'session': self.id, 'slots': slots, 'comparison': self.comparison()}


class SessionRegistry:
    """In-memory session store; the oldest session is closed once ``max_sessions`` is exceeded."""

    def __init__(self, factory, max_sessions=256):
        self._factory = factory
        self._max = max_sessions
        self._sessions = OrderedDict()
        self._lock = threading.Lock()

    def create(self) -> ComparisonSession:
        session = self._factory()
        evicted = []
        with self._lock:
            self._sessions[session.id] = session
            while len(self._sessions) > self._max:
                _, old = self._sessions.popitem(last=False)
                evicted.append(old)
        for old in evicted:
            logger.info("Evicting comparison session %s", old.id)
            old.close()
        return session.start()

    def get(self, session_id):
        with self._lock:
            return self._sessions.get(session_id)

    def close(self, session_id) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def close_all(self):
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()

    def __len__(self):
        with self._lock:
            return len(self._sessions)
