from datetime import datetime

from flask import Blueprint, jsonify, request, current_app
from flask_login import login_user, logout_user, login_required, current_user
from models import User, db

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Vendor login. Accepts a username or email."""
    data = request.get_json(silent=True) or {}
    username = data.get('username') or ''
    password = data.get('password') or ''

    user = User.query.filter(
        (User.username == username) |
        (User.email == username)
    ).first()

    if user and user.check_password(password):
        login_user(user)
        user.last_login = datetime.utcnow()
        db.session.commit()
        current_app.logger.info(f"User {user.username} logged in")
        return jsonify({'success': True, 'user': {'id': user.id, 'username': user.username}})

    return jsonify({'success': False, 'error': 'Invalid username/email or password'}), 401


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    current_app.logger.info(f"User {current_user.username} logged out")
    logout_user()
    return jsonify({'success': True})
