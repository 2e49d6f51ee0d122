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


def _allowed_origins(config):
    raw = config.get('CORS_ORIGINS') or '*'
    if raw.strip() == '*':
        return '*'
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = _allowed_origins(flask_app.config)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Registers the Flask-Login loaders
    from baller import auth  # noqa: F401

    from baller.main import main
    flask_app.register_blueprint(main)

    from baller.api.ranked import ranked
    flask_app.register_blueprint(ranked, url_prefix='/api')

    from baller.api.clans import clans
    flask_app.register_blueprint(clans, url_prefix='/api/clans')

    from baller.api.leagues import leagues
    flask_app.register_blueprint(leagues, url_prefix='/api/leagues')

    from baller.api.teams import teams
    flask_app.register_blueprint(teams, url_prefix='/api')

    # Live matchmaking state lives for the lifetime of this app instance
    from baller.socketio_events import create_matchmaking_service, register_socketio_handlers
    flask_app.extensions['matchmaking'] = create_matchmaking_service(flask_app)
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from baller.models import User
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u, team_name=u)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
