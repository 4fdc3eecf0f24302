"""
SocketIO Event Handlers - Real-time WebSocket events for the dashboard.
Handles spin input, predictions, undo, bulk import and reset.
"""

from flask import current_app
from flask_socketio import emit

from hybrid_predictor import socketio, get_session
from hybrid_predictor.ml.engine import run_test
from hybrid_predictor.ml.observation import InvalidSpinError, build_observations, parse_spin_text
from config import get_number_color


def _session():
    return get_session(current_app)


@socketio.on('connect')
def handle_connect():
    session = _session()
    emit('connected', {
        'message': 'Connected to Hybrid Roulette Predictor',
        'status': session.get_status(),
        'prediction': session.current_prediction(),
    })


@socketio.on('get_status')
def handle_get_status():
    emit('status_update', _session().get_status())


@socketio.on('get_prediction')
def handle_get_prediction(data=None):
    """Prediction for the next spin without recording anything."""
    direction = (data or {}).get('direction')
    try:
        prediction = _session().current_prediction(direction)
    except InvalidSpinError as e:
        emit('error', {'message': str(e)})
        return
    emit('prediction_result', prediction)


@socketio.on('record_spin')
def handle_record_spin(data):
    """Record the actual spin result and publish the next prediction."""
    data = data or {}
    try:
        result = _session().record_spin(data.get('number'), data.get('direction'))
    except InvalidSpinError as e:
        print(f"[record_spin] Rejected: {e}")
        emit('error', {'message': str(e)})
        return
    emit('spin_processed', result)


@socketio.on('undo_spin')
def handle_undo_spin():
    session = _session()
    removed = session.undo_last()
    if removed is None:
        emit('error', {'message': 'No spins to undo.'})
        return

    emit('spin_undone', {
        'removed_number': removed.number,
        'removed_color': get_number_color(removed.number),
        'remaining_spins': len(session.spins),
        'prediction': session.current_prediction(),
        'status': session.get_status(),
    })


@socketio.on('import_data')
def handle_import_data(data):
    """Record a pasted batch of spins on top of the current session."""
    raw_text = (data or {}).get('text', '')
    if not raw_text.strip():
        emit('error', {'message': 'No data provided.'})
        return

    entries, skipped = parse_spin_text(raw_text)
    print(f"[import_data] Parsed {len(entries)} spins, skipped {len(skipped)} tokens")
    if not entries:
        emit('error', {'message': 'No valid numbers (0-36) found in data.'})
        return

    session = _session()
    result = session.import_spins(entries)
    result['skipped'] = skipped
    result['status'] = session.get_status()
    emit('import_complete', result)


@socketio.on('run_test')
def handle_run_test(data):
    """Walk-forward accuracy test on pasted data; the session is untouched."""
    raw_text = (data or {}).get('text', '')
    entries, _ = parse_spin_text(raw_text)
    if len(entries) < 5:
        emit('error', {'message': f'Need at least 5 numbers for test. Got {len(entries)}.'})
        return

    report = run_test(build_observations(entries))
    report.pop('state')
    emit('test_report', report)


@socketio.on('reset_all')
def handle_reset_all():
    """Clear history, learned state and the saved file."""
    session = _session()
    session.reset()
    emit('reset_complete', {
        'message': 'All learning data cleared. Fresh start.',
        'status': session.get_status(),
    })
