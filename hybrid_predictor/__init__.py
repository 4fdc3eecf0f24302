"""
Flask Application Factory with SocketIO initialization.
"""

from flask import Flask
from flask_socketio import SocketIO

from config import SECRET_KEY, SOCKETIO_ASYNC_MODE, ENGINE_STATE_PATH

socketio = SocketIO()

EXTENSION_KEY = 'game_session'


def create_app(state_path=ENGINE_STATE_PATH, async_mode=SOCKETIO_ASYNC_MODE, load_state=True):
    from hybrid_predictor.session.session_manager import GameSession
    from hybrid_predictor.session.state_store import StateStore

    app = Flask(__name__)
    app.config['SECRET_KEY'] = SECRET_KEY

    session = GameSession(StateStore(state_path))
    if load_state:
        session.load()
    app.extensions[EXTENSION_KEY] = session

    from hybrid_predictor.routes import main_bp
    app.register_blueprint(main_bp)

    # Handlers must be registered before the first init_app so that every
    # app created afterwards gets them too
    from hybrid_predictor import socketio_handlers  # noqa: F401

    socketio.init_app(app, cors_allowed_origins="*", async_mode=async_mode)

    return app


def get_session(app):
    return app.extensions[EXTENSION_KEY]
