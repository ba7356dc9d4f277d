from functools import wraps

from flask import current_app, request
from flask_socketio import emit
from arena import socketio
from arena.errors import PersistenceError


def _lobby():
    return current_app.extensions['arena.lobby']


def _users():
    return current_app.extensions['arena.users']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _text(data, key):
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, str) else None


def _identified(handler):
    """Run ``handler(username, data)`` only for authenticated connections."""
    @wraps(handler)
    def wrapper(data=None):
        username = _lobby().registry.identity_for(_get_sid())
        if username is None:
            current_app.logger.debug(f"[unauthenticated] event={handler.__name__} sid={_get_sid()}")
            return None
        return handler(username, data)
    return wrapper


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    entry = _lobby().registry.unregister(_get_sid())
    if entry is not None:
        current_app.logger.info(f"[disconnect] user={entry.username} sid={entry.sid} reason={reason}")


def handle_authenticate(data):
    token = data.get('token') if isinstance(data, dict) else data
    users = _users()
    username = users.verify_token(token)
    if username is None:
        current_app.logger.warning(f"[auth-failed] sid={_get_sid()} invalid token")
        emit('authError', {'message': 'Invalid token'})
        return
    try:
        user = users.find_user(username)
    except PersistenceError as exc:
        current_app.logger.warning(f"[auth-failed] sid={_get_sid()} user={username} error={exc}")
        emit('authError', {'message': 'Authentication unavailable'})
        return
    if user is None:
        current_app.logger.warning(f"[auth-failed] sid={_get_sid()} unknown user={username}")
        emit('authError', {'message': 'Unknown user'})
        return
    emit('authenticated', user.to_dict())
    _lobby().registry.register(username, _get_sid())
    current_app.logger.info(f"[auth] user={username} sid={_get_sid()}")


@_identified
def handle_send_challenge(username, data):
    _lobby().challenges.send_challenge(username, _text(data, 'target'), _text(data, 'symbol'))


@_identified
def handle_respond_to_challenge(username, data):
    challenge_id = _text(data, 'challenge_id')
    if challenge_id is None:
        return
    _lobby().challenges.respond(
        challenge_id,
        username,
        _get_sid(),
        bool(data.get('accepted')),
        _text(data, 'symbol'),
    )


@_identified
def handle_make_move(username, data):
    session_id = _text(data, 'session_id')
    if session_id is None:
        return
    _lobby().sessions.apply_move(session_id, username, data.get('position'))


@_identified
def handle_send_message(username, data):
    session_id = _text(data, 'session_id')
    if session_id is None:
        return
    _lobby().sessions.send_message(session_id, username, _text(data, 'message'))


@_identified
def handle_request_rematch(username, data):
    session_id = _text(data, 'session_id')
    if session_id is None:
        return
    _lobby().sessions.request_rematch(session_id, username)


@_identified
def handle_respond_to_rematch(username, data):
    session_id = _text(data, 'session_id')
    if session_id is None:
        return
    _lobby().sessions.respond_to_rematch(session_id, username, bool(data.get('accepted')))


@_identified
def handle_leave_game(username, data):
    session_id = _text(data, 'session_id')
    if session_id is None:
        return
    if _lobby().sessions.leave(session_id) is not None:
        current_app.logger.info(f"[leave] user={username} session={session_id}")


@_identified
def handle_update_avatar(username, data):
    avatar = data.get('avatar') if isinstance(data, dict) else data
    try:
        _users().set_avatar(username, avatar)
    except PersistenceError as exc:
        current_app.logger.warning(f"[avatar-failed] user={username} error={exc}")
        emit('error', {'message': 'Failed to update avatar'})
        return
    emit('avatarUpdated', {'avatar': avatar})


@_identified
def handle_find_match(username, data):
    _lobby().queue.enqueue(username, _get_sid())


@_identified
def handle_cancel_matchmaking(username, data):
    _lobby().queue.cancel(username)


@_identified
def handle_match_symbol_chosen(username, data):
    match_id = _text(data, 'match_id')
    if match_id is None:
        return
    _lobby().queue.choose_symbol(match_id, username, _text(data, 'symbol'))


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the game namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('authenticate', handle_authenticate, namespace=namespace)
    socketio.on_event('sendChallenge', handle_send_challenge, namespace=namespace)
    socketio.on_event('respondToChallenge', handle_respond_to_challenge, namespace=namespace)
    socketio.on_event('makeMove', handle_make_move, namespace=namespace)
    socketio.on_event('sendMessage', handle_send_message, namespace=namespace)
    socketio.on_event('requestRematch', handle_request_rematch, namespace=namespace)
    socketio.on_event('respondToRematch', handle_respond_to_rematch, namespace=namespace)
    socketio.on_event('leaveGame', handle_leave_game, namespace=namespace)
    socketio.on_event('updateAvatar', handle_update_avatar, namespace=namespace)
    socketio.on_event('findMatch', handle_find_match, namespace=namespace)
    socketio.on_event('cancelMatchmaking', handle_cancel_matchmaking, namespace=namespace)
    socketio.on_event('matchSymbolChosen', handle_match_symbol_chosen, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
