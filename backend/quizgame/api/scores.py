from flask import Blueprint, jsonify, request
from quizgame.services.leaderboard import get_leaderboard
from quizgame.services.sessions import report_progress, list_user_sessions


scores = Blueprint('scores', __name__)


@scores.route('/update', methods=['POST'])
def update_game_score():
    data = request.get_json(silent=True) or {}
    session = report_progress(data.get('userId'), data)
    return jsonify({
        'success': True,
        'message': 'Game score updated successfully.',
        'gameSession': session.to_dict(),
    })


@scores.route('/leaderboard', methods=['GET'])
def leaderboard():
    return jsonify(get_leaderboard(request.args.get('limit')))


@scores.route('/sessions/<int:user_id>', methods=['GET'])
def user_sessions(user_id):
    sessions = list_user_sessions(user_id)
    return jsonify({'success': True, 'sessions': [s.to_dict() for s in sessions]})
