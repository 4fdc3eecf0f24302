"""
HTTP Routes - Health check and read-only JSON views of the session.
"""

from flask import Blueprint, current_app, jsonify, request

from hybrid_predictor import get_session
from hybrid_predictor.ml.observation import InvalidSpinError

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    return jsonify({'status': 'ok', 'service': 'Hybrid Roulette Predictor'})


@main_bp.route('/api/state')
def state():
    return jsonify(get_session(current_app).get_status())


@main_bp.route('/api/prediction')
def prediction():
    try:
        result = get_session(current_app).current_prediction(request.args.get('direction'))
    except InvalidSpinError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(result)
