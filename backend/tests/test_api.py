import pytest

from arena import db
from arena.errors import PersistenceError
from arena.models import User


def _register(client, username, password='password'):
    return client.post('/api/register', json={'username': username, 'password': password})


def test_register_and_login(client, flask_app):
    res = _register(client, 'alice')
    assert res.status_code == 201

    res = client.post('/api/login', json={'username': 'alice', 'password': 'password'})
    assert res.status_code == 200
    data = res.get_json()
    assert data['user']['username'] == 'alice'
    assert data['user']['wins'] == 0
    assert flask_app.extensions['arena.users'].verify_token(data['token']) == 'alice'

    res = client.get('/api/check_login')
    assert res.status_code == 200
    assert res.get_json()['user']['username'] == 'alice'


def test_register_rejects_duplicates_and_missing_fields(client):
    assert _register(client, 'alice').status_code == 201
    res = _register(client, 'alice')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Username already exists'
    assert client.post('/api/register', json={'username': 'bob'}).status_code == 400


def test_login_with_wrong_password(client):
    _register(client, 'alice')
    res = client.post('/api/login', json={'username': 'alice', 'password': 'nope'})
    assert res.status_code == 401
    assert res.get_json()['error'] == 'Invalid credentials'


def test_logout_requires_login(client):
    assert client.post('/api/logout').status_code == 401
    _register(client, 'alice')
    client.post('/api/login', json={'username': 'alice', 'password': 'password'})
    assert client.post('/api/logout').status_code == 200
    assert client.get('/api/check_login').status_code == 401


def test_leaderboard_orders_by_wins(client, make_user):
    for name, wins in [('alice', 2), ('bob', 5), ('carol', 0), ('dave', 3)]:
        user = make_user(name)
        user.wins = wins
    db.session.commit()

    res = client.get('/api/leaderboard')
    assert res.status_code == 200
    board = res.get_json()
    # TestConfig limits the board to three rows
    assert [row['username'] for row in board] == ['bob', 'dave', 'alice']
    assert set(board[0]) == {'username', 'wins', 'losses', 'draws'}


def test_tampered_token_is_rejected(flask_app):
    users = flask_app.extensions['arena.users']
    token = users.issue_token('alice')
    assert users.verify_token(token + 'x') is None
    assert users.verify_token('') is None
    assert users.verify_token(None) is None
    assert users.verify_token({'username': 'alice'}) is None


def test_increment_stat(flask_app, make_user):
    make_user('alice')
    users = flask_app.extensions['arena.users']
    users.increment_stat('alice', 'win')
    users.increment_stat('alice', 'win')
    users.increment_stat('alice', 'loss')
    users.increment_stat('alice', 'draw')
    alice = User.query.filter_by(username='alice').first()
    assert (alice.wins, alice.losses, alice.draws) == (2, 1, 1)
    with pytest.raises(ValueError):
        users.increment_stat('alice', 'forfeit')


def test_persistence_failure_is_wrapped(flask_app, make_user, monkeypatch):
    from sqlalchemy.exc import OperationalError

    make_user('alice')
    users = flask_app.extensions['arena.users']

    def broken_commit():
        raise OperationalError('UPDATE user', {}, Exception('disk full'))

    monkeypatch.setattr(db.session, 'commit', broken_commit)
    with pytest.raises(PersistenceError):
        users.set_avatar('alice', 'frog')
    with pytest.raises(PersistenceError):
        users.increment_stat('alice', 'win')
