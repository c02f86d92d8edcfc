from flask import Blueprint, jsonify, request
from quizgame.services.teams import assign_team


teams = Blueprint('teams', __name__)


@teams.route('/select', methods=['POST'])
def select_team():
    data = request.get_json(silent=True) or {}
    user = assign_team(data.get('userId'), data.get('teamName'))
    return jsonify({
        'success': True,
        'message': f'Team "{user.team_name}" selected successfully!',
        'user': {
            'id': user.id,
            'username': user.username,
            'pfpUrl': user.pfp_url,
            'team': user.team,
        },
    })
