from arena import db, bcrypt
from flask_login import UserMixin


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    wins = db.Column(db.Integer, default=0, nullable=False)
    losses = db.Column(db.Integer, default=0, nullable=False)
    draws = db.Column(db.Integer, default=0, nullable=False)
    avatar = db.Column(db.Text, nullable=True)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'wins': self.wins or 0,
            'losses': self.losses or 0,
            'draws': self.draws or 0,
            'avatar': self.avatar,
        }

    def to_leaderboard_dict(self):
        return {
            'username': self.username,
            'wins': self.wins or 0,
            'losses': self.losses or 0,
            'draws': self.draws or 0,
        }
