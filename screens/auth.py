import logging

from backend import AuthError
from .forms import CredentialsForm
from .navigation import EXPENSES_PATH

log = logging.getLogger(__name__)

SIGNUP_NOTICE = 'Signup successful! Please check your email to confirm.'


class AuthScreen:
    """Login / signup. Errors become a blocking alert; success leaves for the expense screen."""

    def __init__(self, client, navigator, form: CredentialsForm | None = None):
        self.client = client
        self.navigator = navigator
        self.form = form or CredentialsForm()
        self.loading = False
        self.alert = None
        self.notice = None

    def sign_up(self) -> bool:
        return self._submit(self.client.auth.sign_up, notice=SIGNUP_NOTICE)

    def sign_in(self) -> bool:
        return self._submit(self.client.auth.sign_in_with_password)

    def _submit(self, action, notice: str | None = None) -> bool:
        self.alert = None
        self.notice = None
        self.loading = True
        try:
            action(self.form.email, self.form.password)
        except AuthError as exc:
            log.info('auth rejected for %s: %s', self.form.email, exc.message)
            self.alert = exc.message
            return False
        finally:
            self.loading = False
        self.notice = notice
        self.navigator.replace(EXPENSES_PATH)
        return True
