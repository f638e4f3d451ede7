import logging
import os
from flask import Flask, Blueprint, current_app, render_template, request, redirect, session, jsonify, flash
from models import db
from backend import create_client
from screens import (
    AuthScreen, ExpenseScreen, LandingScreen, Navigator, ScreenState, ErrorKind,
    CredentialsForm, apply_changes,
)

pages = Blueprint('pages', __name__)
api = Blueprint('api', __name__)

def create_app(test_config=None):
    app = Flask(__name__, template_folder='templates', static_folder='static')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///expenses.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    app.config['DEFAULT_CURRENCY'] = os.environ.get('DEFAULT_CURRENCY', 'INR')
    app.config['SESSION_TTL_SECONDS'] = int(os.environ.get('SESSION_TTL_SECONDS', 3600))
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')
    if test_config:
        app.config.update(test_config)
    logging.basicConfig(level=app.config['LOG_LEVEL'], format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    db.init_app(app)
    with app.app_context():
        db.create_all()
    app.register_blueprint(pages)
    app.register_blueprint(api, url_prefix='/api')
    return app

# ---------------------- Backend Helpers ----------------------
def backend():
    """A fresh client for this request, keeping its session token in the signed cookie."""
    return create_client(session, current_app.config['SESSION_TTL_SECONDS'])

def expense_screen(navigator):
    return ExpenseScreen(backend(), navigator, default_currency=current_app.config['DEFAULT_CURRENCY'])

def follow(navigator):
    return redirect(navigator.location, code=303)

# ---------------------- Routes: Pages ----------------------
@pages.route('/')
def index():
    screen = LandingScreen(backend())
    screen.mount()
    return render_template('index.html', screen=screen)

@pages.route('/auth', methods=['GET', 'POST'])
def auth():
    if request.method == 'POST':
        nav = Navigator()
        screen = AuthScreen(backend(), nav, apply_changes(CredentialsForm(), request.form))
        if request.form.get('action') == 'signup':
            screen.sign_up()
        else:
            screen.sign_in()
        if screen.alert:
            flash(screen.alert, 'error')
            return render_template('auth.html', screen=screen)
        if screen.notice:
            flash(screen.notice, 'success')
        return follow(nav)
    return render_template('auth.html', screen=AuthScreen(backend(), Navigator()))

@pages.route('/expenses', methods=['GET', 'POST'])
def expenses():
    nav = Navigator()
    with expense_screen(nav) as screen:
        if screen.state is ScreenState.AUTHENTICATED and request.method == 'POST':
            action = request.form.get('action', 'add')
            if action == 'logout':
                screen.logout()
            elif action == 'reset':
                screen.reset_form()
            else:
                screen.form = apply_changes(screen.form, request.form)
                if screen.add_expense():
                    flash('Expense added.', 'success')
        if nav.navigated:
            return follow(nav)
        return render_template('expenses.html', screen=screen)

# ---------------------- API Endpoints ----------------------
@api.route('/health')
def api_health():
    return jsonify({'status': 'ok'})

@api.route('/profiles')
def api_profiles():
    screen = LandingScreen(backend())
    screen.mount()
    if screen.error:
        return jsonify({'error': screen.error}), 502
    return jsonify(screen.profiles)

@api.route('/expenses', methods=['GET', 'POST'])
def api_expenses():
    """List the caller's expenses (newest first) or add one from a JSON body."""
    nav = Navigator()
    with expense_screen(nav) as screen:
        if screen.state is not ScreenState.AUTHENTICATED:
            return jsonify({'error': 'Not authenticated'}), 401
        if request.method == 'POST':
            payload = request.get_json(silent=True)
            if not isinstance(payload, dict):
                payload = {}
            screen.form = apply_changes(screen.form, payload)
            if not screen.add_expense():
                status = 400 if screen.error_kind is ErrorKind.VALIDATION else 502
                return jsonify({'error': screen.error}), status
            return jsonify(screen.expenses), 201
        if screen.error:
            return jsonify({'error': screen.error}), 502
        return jsonify(screen.expenses)


# ---------------------- Run App ----------------------
if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=True)
