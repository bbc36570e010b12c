from flask import Blueprint, jsonify

from geodaily.auth import admin_required
from geodaily.services import stats


admin = Blueprint('admin', __name__)


@admin.route('/riddles/stats', methods=['GET'])
@admin_required
def riddle_stats():
    return jsonify(stats.riddle_stats())


@admin.route('/users/stats', methods=['GET'])
@admin_required
def user_stats():
    return jsonify(stats.user_stats())


@admin.route('/submissions', methods=['GET'])
@admin_required
def submissions():
    return jsonify(stats.all_submissions())
