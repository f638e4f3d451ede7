from .auth import AuthScreen, SIGNUP_NOTICE
from .expenses import ExpenseScreen, ScreenState, ErrorKind, INVALID_AMOUNT
from .forms import CredentialsForm, ExpenseForm, apply_change, apply_changes, parse_amount
from .landing import LandingScreen
from .navigation import Navigator, AUTH_PATH, EXPENSES_PATH
