import enum
import logging
import random
import threading

from .catalog import fetch_catalog
from .core import LOADER
from .text_utils import matches_query

logger = logging.getLogger(__name__)


class LoadingState(str, enum.Enum):
    UNINITIALIZED = 'uninitialized'
    LOADING = 'loading'
    READY = 'ready'
    FAILED = 'failed'


class PokemonSelector:
    """Searchable option list plus a "random pick" trigger for one comparison slot.

    The catalog is built once, in the background, when ``load()`` is called.
    Until it is READY the selector accepts no selection. Random picks set the
    rolling flag and report the chosen identifier to ``on_select`` after
    ``roll_delay`` seconds; re-entrant picks and explicit selections while
    rolling are ignored. The rolling flag clears as the pick fires, before
    ``on_select`` runs.

    All transitions happen under ``self._lock``; ``on_select`` is always called
    outside it.
    """

    def __init__(self, options, on_select, roll_delay=1.0, loader=None, rng=None,
                 catalog_fetcher=None):
        self.options = options
        self.on_select = on_select
        self.roll_delay = roll_delay
        self._loader = loader or LOADER
        self._rng = rng or random.Random()
        self._fetch_catalog = catalog_fetcher or fetch_catalog

        self._lock = threading.Lock()
        self._settled = threading.Event()
        self._state = LoadingState.UNINITIALIZED
        self._catalog = ()
        self._members = frozenset()
        self._error = None
        self._rolling = False
        self._timer = None
        self._generation = 0
        self._closed = False

    # --- lifecycle ---

    def load(self):
        with self._lock:
            if self._closed or self._state != LoadingState.UNINITIALIZED:
                return False
            generation = self._begin_load()
        self._loader.submit(self._run_load, generation)
        return True

    def retry(self):
        with self._lock:
            if self._closed or self._state != LoadingState.FAILED:
                return False
            logger.info("Retrying catalog load")
            generation = self._begin_load()
        self._loader.submit(self._run_load, generation)
        return True

    def _begin_load(self):
        self._state = LoadingState.LOADING
        self._catalog = ()
        self._members = frozenset()
        self._error = None
        self._generation += 1
        self._settled.clear()
        return self._generation

    def _run_load(self, generation):
        try:
            catalog = self._fetch_catalog(self.options)
        except Exception as e:
            logger.exception("Error fetching pokemon list")
            self._finish_load(generation, (), str(e))
        else:
            self._finish_load(generation, catalog, None)

    def _finish_load(self, generation, catalog, error):
        with self._lock:
            if self._closed or generation != self._generation:
                logger.debug("Discarding catalog result for a closed or superseded load")
                self._settled.set()
                return
            self._catalog = tuple(catalog)
            self._members = frozenset(e.identifier for e in self._catalog)
            self._error = error
            self._state = LoadingState.FAILED if error is not None else LoadingState.READY
            self._settled.set()

    def wait(self, timeout=None) -> bool:
        """Block until the current load has settled. Returns False on timeout."""
        return self._settled.wait(timeout)

    def close(self):
        with self._lock:
            self._closed = True
            timer, self._timer = self._timer, None
            self._rolling = False
            self._settled.set()
        if timer is not None:
            timer.cancel()

    # --- queries ---

    @property
    def state(self) -> LoadingState:
        return self._state

    @property
    def catalog(self) -> tuple:
        return self._catalog

    @property
    def rolling(self) -> bool:
        return self._rolling

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> dict:
        with self._lock:
            return {
                'loading_state': self._state.value,
                'loading': self._state in (LoadingState.UNINITIALIZED, LoadingState.LOADING),
                'rolling': self._rolling,
                'disabled': self._closed or self._rolling or self._state != LoadingState.READY,
                'count': len(self._catalog),
                'error': self._error,
            }

    def search(self, query='', limit=None) -> list:
        if self._state != LoadingState.READY:
            return []
        matches = [e for e in self._catalog if matches_query(e.label, query or '')]
        if limit is not None:
            matches = matches[:limit]
        return matches

    # --- user actions ---

    def select(self, identifier) -> bool:
        with self._lock:
            accepted = (
                not self._closed
                and not self._rolling
                and self._state == LoadingState.READY
                and identifier in self._members
            )
        if not accepted:
            logger.debug("Ignoring selection of %r", identifier)
            return False
        self.on_select(identifier)
        return True

    def random_pick(self):
        """Start a random pick; returns the chosen identifier, or None for a no-op."""
        with self._lock:
            if (self._closed or self._rolling or self._state != LoadingState.READY
                    or not self._catalog):
                logger.debug("Random pick ignored (state=%s, rolling=%s, size=%d)",
                             self._state.value, self._rolling, len(self._catalog))
                return None
            identifier = self._catalog[self._rng.randrange(len(self._catalog))].identifier
            self._rolling = True
            if self.roll_delay > 0:
                self._timer = threading.Timer(self.roll_delay, self._finish_roll, args=(identifier,))
                self._timer.daemon = True
                self._timer.start()
                return identifier
        self._finish_roll(identifier)
        return identifier

    def _finish_roll(self, identifier):
        with self._lock:
            if self._closed or not self._rolling:
                return
            self._timer = None
            self._rolling = False
        self.on_select(identifier)
