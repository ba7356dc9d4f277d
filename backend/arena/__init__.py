from functools import partial

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

SOCKETIO_NAMESPACE = '/ws'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = [o.strip() for o in flask_app.config.get('CORS_ORIGINS', '').split(',') if o.strip()]

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from arena.main import main
    flask_app.register_blueprint(main, url_prefix='/api')

    from arena.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api')

    # In-memory game coordination lives for the lifetime of this app
    from arena.services.accounts import UserDirectory
    from arena.services.games import Lobby
    directory = UserDirectory(
        flask_app.config['SECRET_KEY'],
        max_age=int(flask_app.config.get('TOKEN_MAX_AGE_SEC', 0)),
    )
    flask_app.extensions['arena.users'] = directory
    flask_app.extensions['arena.lobby'] = Lobby(
        partial(socketio.emit, namespace=SOCKETIO_NAMESPACE),
        directory,
        max_message_length=int(flask_app.config.get('MAX_MESSAGE_LENGTH', 0)),
    )

    # Importing here ensures the handlers bind to the initialized socketio instance
    from arena.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=SOCKETIO_NAMESPACE)

    # Flask-Login user loader
    from arena.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            click.echo('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
