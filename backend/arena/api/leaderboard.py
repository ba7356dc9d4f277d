from flask import Blueprint, current_app, jsonify
from arena.models import User

leaderboard = Blueprint('leaderboard', __name__)


@leaderboard.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    """
    Returns the top players ordered by wins.
    """
    limit = int(current_app.config.get('LEADERBOARD_LIMIT', 10))
    users = User.query.order_by(User.wins.desc(), User.username.asc()).limit(limit).all()
    return jsonify([u.to_leaderboard_dict() for u in users]), 200
