from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from geodaily import socketio
from geodaily.services.game import get_or_create_daily, submit_answer


game = Blueprint('game', __name__)


@game.route('/daily', methods=['GET'])
@login_required
def get_daily():
    """
    Returns the caller's riddle for today, issuing one if they have none.
    """
    assignment, is_new = get_or_create_daily(current_user.id)
    return jsonify(assignment.to_daily_dict()), 201 if is_new else 200


@game.route('/answer', methods=['POST'])
@login_required
def answer():
    """
    Scores a guessed coordinate against the caller's pending riddle.
    """
    data = request.get_json(silent=True) or {}
    result = submit_answer(current_user.id, data.get('latitude'), data.get('longitude'))

    # Live feed for admin dashboards
    try:
        socketio.emit('answer_submitted', {
            'assignment_id': result.assignment_id,
            'user_id': current_user.id,
            'riddle_id': result.riddle_id,
            'points': result.points,
        }, to='admin', namespace='/ws')
    except Exception as exc:
        current_app.logger.warning(f"[feed] answer_submitted not delivered: {exc}")

    return jsonify(result.to_dict())
