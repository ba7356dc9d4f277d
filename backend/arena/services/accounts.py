"""User directory: token issuance and the stats/avatar writes games need."""

from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from sqlalchemy.exc import SQLAlchemyError

from arena import db
from arena.errors import PersistenceError
from arena.models import User

STAT_COLUMNS = {
    'win': 'wins',
    'loss': 'losses',
    'draw': 'draws',
}


class UserDirectory:
    """Everything the real-time layer needs to know about stored users.

    Must be called inside an application context.
    """

    def __init__(self, secret_key: str, max_age: int = 0):
        self._serializer = URLSafeTimedSerializer(secret_key, salt='arena-auth')
        self._max_age = max_age or None

    def issue_token(self, username: str) -> str:
        return self._serializer.dumps({'username': username})

    def verify_token(self, token) -> Optional[str]:
        if not isinstance(token, str) or not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=self._max_age)
        except BadSignature:
            # SignatureExpired is a BadSignature subclass
            return None
        if not isinstance(data, dict):
            return None
        return data.get('username')

    def find_user(self, username: str) -> Optional[User]:
        try:
            return User.query.filter_by(username=username).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"could not load user {username}") from exc

    def increment_stat(self, username: str, kind: str) -> None:
        column = STAT_COLUMNS.get(kind)
        if column is None:
            raise ValueError(f"unknown stat kind {kind!r}")
        try:
            User.query.filter_by(username=username).update(
                {column: getattr(User, column) + 1}, synchronize_session=False
            )
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"could not record {kind} for {username}") from exc

    def set_avatar(self, username: str, avatar) -> None:
        try:
            User.query.filter_by(username=username).update({'avatar': avatar}, synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"could not update avatar for {username}") from exc
