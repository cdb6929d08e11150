import atexit
import os
from functools import partial

from flask import Flask

from services.catalog import CatalogOptions
from services.comparison import ComparisonSession, SessionRegistry
from services.core import load_settings
from services.logging_utils import setup_logging
from services.pokemon import get_pokemon_detail
from views.compare import bp as compare_bp


def create_app(overrides=None, **session_kwargs):
    """Build the Flask app.

    ``overrides`` are merged over environment settings; ``session_kwargs`` are
    passed to every ComparisonSession (tests use them to inject fetchers).
    """
    app = Flask(__name__)
    app.json.sort_keys = False
    app.config.update(load_settings(overrides=overrides))

    # Prefer environment variable; fall back to a deterministic dev default.
    app.secret_key = app.config.get('SECRET_KEY') or os.environ.get('SECRET_KEY') or 'pokemon-compare-dev-secret-key'

    if not app.config.get('TESTING'):
        setup_logging(app.config['LOG_LEVEL'])

    options = CatalogOptions.from_config(app.config)
    session_kwargs.setdefault('detail_fetcher', partial(
        get_pokemon_detail,
        base=app.config['POKEAPI_BASE'],
        timeout=app.config['REQUEST_TIMEOUT'],
    ))
    session_kwargs.setdefault('roll_delay', app.config['ROLL_DELAY_SECONDS'])

    registry = SessionRegistry(
        partial(ComparisonSession, options, **session_kwargs),
        max_sessions=app.config['MAX_SESSIONS'],
    )
    app.extensions['comparison_sessions'] = registry
    atexit.register(registry.close_all)

    app.register_blueprint(compare_bp)
    return app


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    create_app().run(host='0.0.0.0', port=port, debug=True)
