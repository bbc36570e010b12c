from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from geodaily.services import stats


users = Blueprint('users', __name__)


@users.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify(current_user.to_dict())


@users.route('/me/stats', methods=['GET'])
@login_required
def my_stats():
    return jsonify(stats.my_stats(current_user.id))
