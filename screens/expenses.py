"""Expense screen: session gating, listing and adding expenses, logout.

One instance lives for one mount. ``mount()`` checks the session and either
redirects to the auth screen or subscribes to session changes and loads the
list; ``teardown()`` releases the subscription, after which any late result is
dropped instead of being written to the screen.
"""
import logging
from datetime import datetime, timezone
from enum import Enum

from backend import AuthError, DataStoreError
from .forms import DEFAULT_CURRENCY, ExpenseForm, blank_to_none, parse_amount
from .navigation import AUTH_PATH

log = logging.getLogger(__name__)

INVALID_AMOUNT = 'Enter a valid positive amount.'


class ScreenState(str, Enum):
    CHECKING = 'checking'
    AUTHENTICATED = 'authenticated'
    REDIRECTING = 'redirecting'


class ErrorKind(str, Enum):
    FETCH = 'fetch'
    VALIDATION = 'validation'
    INSERT = 'insert'


def _client_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ExpenseScreen:
    def __init__(self, client, navigator, default_currency: str = DEFAULT_CURRENCY, clock=_client_timestamp):
        self.client = client
        self.navigator = navigator
        self.default_currency = default_currency
        self.clock = clock

        self.state = ScreenState.CHECKING
        self.user = None
        self.loading = False
        self.error = None
        self.error_kind = None
        self.expenses = []
        self.form = ExpenseForm(currency=default_currency)

        self._subscription = None
        self._mounted = False

    def __enter__(self):
        self.mount()
        return self

    def __exit__(self, *exc_info):
        self.teardown()
        return False

    # ---------------------- Lifecycle ----------------------
    def mount(self) -> ScreenState:
        self._mounted = True
        self.state = ScreenState.CHECKING
        session = self.client.auth.get_session()
        if session is None:
            self._redirect()
            return self.state

        self.user = session.user
        self.state = ScreenState.AUTHENTICATED
        self._subscription = self.client.auth.on_auth_state_change(self._on_auth_change)
        self.fetch_expenses()
        return self.state

    def teardown(self) -> None:
        self._mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_auth_change(self, event, session) -> None:
        if not self._mounted or self.state is ScreenState.REDIRECTING:
            return
        if session is None:
            log.info('Session ended (%s), leaving expenses', event)
            self._redirect()
            return
        previous = self.user
        self.user = session.user
        if previous is None or previous.id != session.user.id:
            # account switch: the list on screen belongs to someone else
            log.info('Session switched to user %s, reloading expenses', session.user.id)
            self.fetch_expenses()

    def _redirect(self) -> None:
        self.state = ScreenState.REDIRECTING
        self.navigator.replace(AUTH_PATH)

    def _set_error(self, kind: ErrorKind | None, message: str | None) -> None:
        self.error_kind = kind
        self.error = message

    # ---------------------- Operations ----------------------
    def fetch_expenses(self) -> None:
        self.loading = True
        self._set_error(None, None)
        try:
            response = self.client.table('expenses').select('*').order('date', desc=True).execute()
        except DataStoreError as exc:
            log.warning('fetch expenses failed: %s', exc.message)
            if not self._mounted:
                return
            self._set_error(ErrorKind.FETCH, exc.message)
            self.expenses = []
        else:
            if not self._mounted:
                log.debug('Discarding expenses fetched after teardown')
                return
            self.expenses = response.data
        self.loading = False

    def add_expense(self) -> bool:
        """Insert the current form as one expense, then reload the list.

        Returns True when the record was stored.
        """
        if self.loading:
            return False
        self._set_error(None, None)

        if self.user is None:
            self._redirect()
            return False

        amount = parse_amount(self.form.amount)
        if amount is None:
            self._set_error(ErrorKind.VALIDATION, INVALID_AMOUNT)
            return False

        record = {
            'user_id': self.user.id,
            'amount': amount,
            'currency': self.form.currency.strip() or self.default_currency,
            'category': blank_to_none(self.form.category),
            'description': blank_to_none(self.form.description),
            'date': self.clock(),
        }
        self.loading = True
        try:
            self.client.table('expenses').insert([record]).execute()
        except DataStoreError as exc:
            log.warning('insert expense failed: %s', exc.message)
            if self._mounted:
                self.loading = False
                self._set_error(ErrorKind.INSERT, exc.message)
            return False
        if not self._mounted:
            return True

        self.loading = False
        self.form = self.form.cleared()
        self.fetch_expenses()
        return True

    def reset_form(self) -> None:
        self.form = self.form.cleared()

    def logout(self) -> None:
        try:
            self.client.auth.sign_out()
        except AuthError as exc:
            log.warning('sign out failed: %s', exc.message)
        self._redirect()
