import logging

from flask import Blueprint, current_app, jsonify, render_template, request

from services.comparison import SLOTS
from services.pokemon import PokemonNotFound, get_pokemon_detail

logger = logging.getLogger(__name__)

bp = Blueprint('compare', __name__)


def _registry():
    return current_app.extensions['comparison_sessions']


def _session_or_404(session_id):
    session = _registry().get(session_id)
    if session is None:
        return None, (jsonify({"error": "Unknown session"}), 404)
    return session, None


def _slot_selector(session_id, slot):
    session, err = _session_or_404(session_id)
    if err:
        return None, None, err
    if slot not in SLOTS:
        return None, None, (jsonify({"error": f"Unknown slot: {slot}"}), 404)
    return session, session.selector(slot), None


@bp.route('/')
def index():
    return render_template('compare.html', slots=SLOTS)


@bp.route('/api/sessions', methods=['POST'])
def create_session():
    try:
        session = _registry().create()
        return jsonify(session.to_dict()), 201
    except Exception as e:
        logger.exception("Could not create comparison session")
        return jsonify({"error": str(e)}), 500


@bp.route('/api/sessions/<session_id>')
def session_state(session_id):
    session, err = _session_or_404(session_id)
    if err:
        return err
    return jsonify(session.to_dict())


@bp.route('/api/sessions/<session_id>', methods=['DELETE'])
def close_session(session_id):
    if not _registry().close(session_id):
        return jsonify({"error": "Unknown session"}), 404
    return '', 204


@bp.route('/api/sessions/<session_id>/<slot>/options')
def slot_options(session_id, slot):
    _, selector, err = _slot_selector(session_id, slot)
    if err:
        return err
    q = (request.args.get('q') or '').strip()
    try:
        limit = int(request.args.get('limit', '50'))
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400
    if limit <= 0:
        limit = 50
    state = selector.snapshot()
    return jsonify({
        **state,
        'options': [e.to_dict() for e in selector.search(q, limit)],
    })


@bp.route('/api/sessions/<session_id>/<slot>/select', methods=['POST'])
def slot_select(session_id, slot):
    session, selector, err = _slot_selector(session_id, slot)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    identifier = data.get('identifier')
    if not isinstance(identifier, str) or not identifier.strip():
        return jsonify({"error": "identifier is required"}), 400
    try:
        if not selector.select(identifier.strip()):
            return jsonify({"error": "Selection not available", **selector.snapshot()}), 409
        return jsonify(session.to_dict())
    except Exception as e:
        return jsonify({"error": str(e)}), 500


@bp.route('/api/sessions/<session_id>/<slot>/random', methods=['POST'])
def slot_random(session_id, slot):
    _, selector, err = _slot_selector(session_id, slot)
    if err:
        return err
    identifier = selector.random_pick()
    if identifier is None:
        return jsonify({"error": "Random pick not available", **selector.snapshot()}), 409
    return jsonify({'identifier': identifier, **selector.snapshot()}), 202


@bp.route('/api/sessions/<session_id>/<slot>/retry', methods=['POST'])
def slot_retry(session_id, slot):
    _, selector, err = _slot_selector(session_id, slot)
    if err:
        return err
    if not selector.retry():
        return jsonify({"error": "Nothing to retry", **selector.snapshot()}), 409
    return jsonify(selector.snapshot()), 202


@bp.route('/api/pokemon/<identifier>')
def pokemon_detail(identifier):
    try:
        detail = get_pokemon_detail(
            identifier,
            base=current_app.config['POKEAPI_BASE'],
            timeout=current_app.config['REQUEST_TIMEOUT'],
        )
        return jsonify(detail)
    except PokemonNotFound as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        logger.exception("Error fetching pokemon %s", identifier)
        return jsonify({"error": str(e)}), 500
