from .auth import AuthClient, AuthResponse, Session, SessionUser, Subscription, SIGNED_IN, SIGNED_OUT
from .data import APIResponse, QueryBuilder
from .errors import BackendError, AuthError, DataStoreError, PolicyViolationError


class BackendClient:
    """Handle on the session store (``.auth``) and the data store (``.table()``)."""

    def __init__(self, storage=None, session_ttl: int = 3600, **auth_options):
        self.auth = AuthClient(storage if storage is not None else {}, session_ttl, **auth_options)

    def table(self, name: str) -> QueryBuilder:
        return QueryBuilder(self, name)


def create_client(storage=None, session_ttl: int = 3600, **auth_options) -> BackendClient:
    return BackendClient(storage, session_ttl, **auth_options)
