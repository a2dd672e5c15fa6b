"""
Flask web application for Job Bracket.

Serves a single in-memory tournament as a JSON API. Restarting the process
starts from scratch.
"""
import os
import random
import threading

from flask import Flask, jsonify, request, Response

from catalog import load_candidates, export_results, EXPORT_FORMATS
from core.exceptions import BracketError, CatalogError
from core.double_elimination import (
    describe_match,
    get_bracket_progress,
    initialize_bracket,
    select_winner,
    undo_selection,
)

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
CATALOG_FILE = os.environ.get('BRACKET_CATALOG_FILE', os.path.join(DATA_DIR, 'jobs.yaml'))
SHUFFLE_SEED = os.environ.get('BRACKET_SEED')

# The one tournament this process serves, plus the catalog it was built from
_bracket_state = None
_jobs_by_id = {}
_state_lock = threading.Lock()


def _make_rng():
    """Seeded random source when BRACKET_SEED is set, else None (fresh entropy)."""
    if SHUFFLE_SEED in (None, ''):
        return None
    return random.Random(int(SHUFFLE_SEED))


def _match_view(match):
    if match is None:
        return None
    view = match.to_dict()
    view['round_name'] = describe_match(match)
    return view


def _state_view(state):
    """JSON-friendly summary of a bracket state for the client."""
    if state is None:
        return {'started': False}
    return {
        'started': True,
        'complete': state.is_complete,
        'current_match': _match_view(state.current_match),
        'progress': get_bracket_progress(state),
        'can_undo': bool(state.history),
        'winners': [job.to_dict() for job in state.winners],
        'placements': {str(job_id): place for job_id, place in state.placements.items()},
    }


def _error(message, status):
    return jsonify({'success': False, 'error': message}), status


@app.route('/api/bracket', methods=['GET'])
def api_bracket():
    """Current match and progress of the running tournament."""
    return jsonify(_state_view(_bracket_state))


@app.route('/api/bracket/start', methods=['POST'])
def api_start_bracket():
    """Load the catalog and start a new tournament, replacing any running one."""
    global _bracket_state, _jobs_by_id
    try:
        candidates = load_candidates(CATALOG_FILE)
        state = initialize_bracket(candidates, _make_rng())
    except CatalogError as e:
        app.logger.error(f'Failed to load catalog {CATALOG_FILE}: {e}')
        return _error(str(e), 500)
    except BracketError as e:
        app.logger.error(f'Cannot start bracket from {CATALOG_FILE}: {e}')
        return _error(str(e), 500)

    with _state_lock:
        _bracket_state = state
        _jobs_by_id = {job.id: job for job in candidates}
    app.logger.info(f'Bracket started with {len(candidates)} jobs from {CATALOG_FILE}')
    return jsonify(_state_view(state))


@app.route('/api/bracket/select', methods=['POST'])
def api_select_winner():
    """Record the winner of the current match. Expects {"job_id": <int>}."""
    global _bracket_state
    data = request.get_json(silent=True) or {}
    try:
        job_id = int(data.get('job_id'))
    except (TypeError, ValueError):
        return _error('job_id must be an integer.', 400)

    with _state_lock:
        if _bracket_state is None:
            return _error('No tournament is running.', 409)
        if _bracket_state.current_match is None:
            return jsonify(_state_view(_bracket_state))

        winner = _jobs_by_id.get(job_id)
        if winner is None:
            app.logger.warning(f'Rejected selection of unknown job {job_id}')
            return _error(f'Unknown job id {job_id}.', 400)
        try:
            _bracket_state = select_winner(_bracket_state, winner)
        except BracketError as e:
            app.logger.warning(f'Rejected selection: {e}')
            return _error(str(e), 400)
        state = _bracket_state

    if state.is_complete:
        app.logger.info(f'Bracket complete, champion: {state.winners[0].title}')
    return jsonify(_state_view(state))


@app.route('/api/bracket/undo', methods=['POST'])
def api_undo_selection():
    """Undo the last recorded winner."""
    global _bracket_state
    with _state_lock:
        if _bracket_state is None:
            return _error('No tournament is running.', 409)
        _bracket_state = undo_selection(_bracket_state)
        state = _bracket_state
    return jsonify(_state_view(state))


@app.route('/api/bracket/restart', methods=['POST'])
def api_restart_bracket():
    """Throw away the running tournament."""
    global _bracket_state, _jobs_by_id
    with _state_lock:
        _bracket_state = None
        _jobs_by_id = {}
    app.logger.info('Bracket restarted')
    return jsonify({'success': True})


@app.route('/api/bracket/progress', methods=['GET'])
def api_bracket_progress():
    state = _bracket_state
    if state is None:
        return _error('No tournament is running.', 409)
    return jsonify(get_bracket_progress(state))


@app.route('/api/bracket/results', methods=['GET'])
def api_bracket_results():
    """Final standings once the tournament is over."""
    state = _bracket_state
    if state is None or not state.is_complete:
        return _error('The tournament is not finished yet.', 409)
    return jsonify({
        'winners': [job.to_dict() for job in state.winners],
        'placements': {str(job_id): place for job_id, place in state.placements.items()},
    })


@app.route('/api/bracket/export', methods=['GET'])
def api_export_results():
    """Download the final standings as YAML or CSV, with an optional label."""
    state = _bracket_state
    if state is None or not state.is_complete:
        return _error('The tournament is not finished yet.', 409)

    fmt = request.args.get('format', 'yaml').lower()
    if fmt not in EXPORT_FORMATS:
        return _error(f'Unsupported format "{fmt}".', 400)
    label = request.args.get('label', '').strip() or None

    content = export_results(state.winners, label=label, fmt=fmt)
    mimetype = 'application/x-yaml' if fmt == 'yaml' else 'text/csv'
    return Response(
        content,
        mimetype=mimetype,
        headers={'Content-Disposition': f'attachment; filename=bracket_results.{fmt}'}
    )


if __name__ == '__main__':
    app.run(debug=True, port=5000)
