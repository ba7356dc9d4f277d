from flask import Blueprint, current_app, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from arena import db
from arena.models import User

main = Blueprint('main', __name__)


def _credentials():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    return username, password


@main.route('/register', methods=['POST'])
def register():
    username, password = _credentials()
    if not username or not password:
        return jsonify({'error': 'Missing username or password'}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({'error': 'Username already exists'}), 400

    user = User(username=username)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"[register] user={username}")
    return jsonify({'message': 'User registered successfully'}), 201


@main.route('/login', methods=['POST'])
def login():
    username, password = _credentials()
    user = User.query.filter_by(username=username).first()
    if not user or not user.check_password(password):
        return jsonify({'error': 'Invalid credentials'}), 401
    login_user(user, remember=True)
    token = current_app.extensions['arena.users'].issue_token(user.username)
    return jsonify({'token': token, 'user': user.to_dict()})


@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})
