from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from quizgame.services.users import register_or_login, update_profile

main = Blueprint('main', __name__)
auth = Blueprint('auth', __name__)

@main.route('/')
def index():
    return 'API is running...'

@auth.route('/register', methods=['POST'])
def register():
    # Username-only: an existing name logs in, a new one registers
    data = request.get_json(silent=True) or request.form or {}
    user, created = register_or_login(data.get('username'), data.get('pfpUrl'))
    login_user(user, remember=True)
    if created:
        return jsonify({'success': True, 'message': 'Registration successful!', 'user': user.to_dict()}), 201
    return jsonify({'success': True, 'message': 'Login successful!', 'user': user.to_dict()})

@auth.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'success': True, 'user': current_user.to_dict()})

@auth.route('/logout', methods=['POST'])
def logout():
    logout_user()
    return jsonify({'success': True, 'message': 'Logged out successfully.'})

@auth.route('/profile', methods=['PATCH'])
def profile():
    data = request.get_json(silent=True) or {}
    user = update_profile(data.get('userId'), pfp_url=data.get('pfpUrl'), team_color=data.get('teamColor'))
    return jsonify({'success': True, 'message': 'Profile updated.', 'user': user.to_dict()})
