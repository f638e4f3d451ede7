"""Session store: sign up, sign in, sign out and session-change notifications.

Sessions are opaque tokens kept in the ``auth_sessions`` table. The caller
supplies the mapping the current token lives in (the Flask cookie session in
the web app, a plain dict in tests), so one client object serves exactly one
browser session.
"""
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash, check_password_hash

from models import db, User, AuthSession
from .errors import AuthError

log = logging.getLogger(__name__)

SIGNED_IN = 'SIGNED_IN'
SIGNED_OUT = 'SIGNED_OUT'

TOKEN_KEY = 'auth_token'
MIN_PASSWORD_LENGTH = 6
_EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def utcnow() -> datetime:
    # naive UTC, the way the timestamps are stored
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str


@dataclass(frozen=True)
class Session:
    access_token: str
    user: SessionUser
    expires_at: datetime


@dataclass(frozen=True)
class AuthResponse:
    user: SessionUser
    session: Session | None


class Subscription:
    def __init__(self, listeners: list, callback):
        self._listeners = listeners
        self.callback = callback

    @property
    def active(self) -> bool:
        return self.callback in self._listeners

    def unsubscribe(self) -> None:
        if self.callback in self._listeners:
            self._listeners.remove(self.callback)


class AuthClient:
    def __init__(self, storage, session_ttl: int = 3600, clock=utcnow):
        self._storage = storage
        self._ttl = timedelta(seconds=session_ttl)
        self._clock = clock
        self._listeners = []

    # ---------------------- Session ----------------------
    def get_session(self) -> Session | None:
        """Return the current session, or None when anonymous or expired.

        A token that no longer maps to a live session row is dropped from
        storage and reported to listeners as SIGNED_OUT.
        """
        token = self._storage.get(TOKEN_KEY)
        if not token:
            return None
        row = db.session.get(AuthSession, token)
        if row is not None and row.expires_at > self._clock():
            return self._to_session(row)

        self._storage.pop(TOKEN_KEY, None)
        if row is not None:
            log.info('Session for user %s expired', row.user_id)
            db.session.delete(row)
            db.session.commit()
        self._notify(SIGNED_OUT, None)
        return None

    def on_auth_state_change(self, callback) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    # ---------------------- Sign up / in / out ----------------------
    def sign_up(self, email: str, password: str) -> AuthResponse:
        email = (email or '').strip().lower()
        password = password or ''
        if not _EMAIL_RE.match(email):
            raise AuthError('Unable to validate email address: invalid format')
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f'Password should be at least {MIN_PASSWORD_LENGTH} characters')
        if User.query.filter_by(email=email).first():
            raise AuthError('User already registered')
        user = User(email=email, password_hash=generate_password_hash(password), created_at=self._clock())
        try:
            db.session.add(user)
            db.session.flush()
            session = self._issue(user)
        except SQLAlchemyError as exc:
            db.session.rollback()
            log.exception('Sign up failed for %s', email)
            raise AuthError('Database error saving new user') from exc
        log.info('User %s signed up', user.id)
        return AuthResponse(user=session.user, session=session)

    def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        email = (email or '').strip().lower()
        user = User.query.filter_by(email=email).first()
        if not user or not check_password_hash(user.password_hash, password or ''):
            log.warning('Rejected sign in for %s', email)
            raise AuthError('Invalid login credentials')
        try:
            session = self._issue(user)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise AuthError('Database error granting session') from exc
        log.info('User %s signed in', user.id)
        return AuthResponse(user=session.user, session=session)

    def sign_out(self) -> None:
        token = self._storage.pop(TOKEN_KEY, None)
        try:
            row = db.session.get(AuthSession, token) if token else None
            if row is not None:
                db.session.delete(row)
                db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise AuthError('Database error revoking session') from exc
        finally:
            # the local token is gone either way
            self._notify(SIGNED_OUT, None)

    # ---------------------- Helpers ----------------------
    def _issue(self, user: User) -> Session:
        now = self._clock()
        previous = self._storage.get(TOKEN_KEY)
        if previous:
            AuthSession.query.filter_by(token=previous).delete()
        AuthSession.query.filter(AuthSession.expires_at <= now).delete()
        row = AuthSession(token=uuid.uuid4().hex, user_id=user.id, expires_at=now + self._ttl)
        db.session.add(row)
        db.session.commit()
        self._storage[TOKEN_KEY] = row.token
        session = Session(access_token=row.token, user=SessionUser(id=user.id, email=user.email), expires_at=row.expires_at)
        self._notify(SIGNED_IN, session)
        return session

    def _to_session(self, row: AuthSession) -> Session:
        return Session(
            access_token=row.token,
            user=SessionUser(id=row.user.id, email=row.user.email),
            expires_at=row.expires_at,
        )

    def _notify(self, event: str, session: Session | None) -> None:
        for callback in list(self._listeners):
            callback(event, session)
