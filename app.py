import logging
from urllib.parse import urlsplit

from flask import Flask, current_app, render_template, redirect, url_for, request, flash, jsonify
from flask_login import LoginManager, login_user, login_required, logout_user
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, InternalServerError

import aggregation
from accounts import authenticate, register_user
from config import CHART_COLORS, Config, LOGGING_CONFIG, ensure_data_dir
from ledger import TransactionStore, ValidationError
from models import db, User

logger = logging.getLogger(__name__)

API_PREFIXES = ("/transactions", "/api/")

login_manager = LoginManager()
login_manager.login_view = 'login'


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    if request.path.startswith(API_PREFIXES):
        return jsonify({'error': 'Authentication required'}), 401
    return redirect(url_for('login', next=request.path))


def create_app(overrides=None):
    logging.basicConfig(**LOGGING_CONFIG)

    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    if app.config['SQLALCHEMY_DATABASE_URI'] == Config.SQLALCHEMY_DATABASE_URI:
        ensure_data_dir()

    db.init_app(app)
    login_manager.init_app(app)

    with app.app_context():
        db.create_all()

    register_error_handlers(app)
    register_routes(app)
    register_commands(app)
    return app


# ==============================
# ERRORS
# ==============================
def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def handle_validation_error(err):
        logger.info("Rejected request to %s: %s", request.path, err)
        return jsonify({'error': str(err)}), 400

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(err):
        db.session.rollback()
        logger.exception("Database error while handling %s %s", request.method, request.path)
        return jsonify({'error': 'Internal Server Error'}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(err):
        if isinstance(err, HTTPException):
            return err
        db.session.rollback()
        logger.exception("Unhandled error while handling %s %s", request.method, request.path)
        if request.path.startswith(API_PREFIXES):
            return jsonify({'error': 'Internal Server Error'}), 500
        return InternalServerError()


def _safe_next():
    target = request.args.get('next') or ''
    parts = urlsplit(target)
    # only paths on this site, never //host or scheme://host
    if target.startswith('/') and not target.startswith('//') and not parts.scheme and not parts.netloc:
        return target
    return url_for('dashboard')


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object')
    return body


def _recent_limit():
    raw = request.args.get('limit')
    if raw is None:
        return current_app.config['RECENT_TRANSACTIONS_LIMIT']
    try:
        limit = int(raw)
    except ValueError:
        raise ValidationError('limit must be an integer')
    if limit < 0:
        raise ValidationError('limit must not be negative')
    return limit


def build_summary(limit):
    records = [t.to_dict() for t in TransactionStore(db.session).list_transactions()]
    return aggregation.summarize(records, current_app.config['TRANSACTION_CATEGORIES'], limit)


# ==============================
# ROUTES
# ==============================
def register_routes(app):

    @app.route('/register', methods=['GET', 'POST'])
    def register():
        if request.method == 'GET':
            return render_template('register.html')

        if request.is_json:
            body = _json_body()
            user = register_user(db.session, body.get('name'), body.get('email'), body.get('password'))
            return jsonify({'message': 'User created successfully', 'user_id': user.id}), 201

        try:
            register_user(db.session, request.form.get('name'), request.form.get('email'),
                          request.form.get('password'))
        except ValidationError as err:
            flash(str(err), 'error')
            return redirect(url_for('register'))
        flash('Registration successful. Please log in.', 'success')
        return redirect(url_for('login'))

    @app.route('/login', methods=['GET', 'POST'])
    def login():
        if request.method == 'POST':
            user = authenticate(db.session, request.form.get('email'), request.form.get('password'))
            if user:
                login_user(user)
                return redirect(_safe_next())
            flash('Invalid credentials', 'error')
        return render_template('login.html')

    @app.route('/logout')
    @login_required
    def logout():
        logout_user()
        return redirect(url_for('login'))

    @app.route('/')
    @login_required
    def dashboard():
        summary = build_summary(app.config['RECENT_TRANSACTIONS_LIMIT'])
        return render_template('dashboard.html', summary=summary,
                               categories=app.config['TRANSACTION_CATEGORIES'],
                               colors=CHART_COLORS)

    @app.route('/transactions', methods=['GET'])
    @login_required
    def list_transactions():
        transactions = TransactionStore(db.session).list_transactions()
        logger.debug("Transactions fetched: %d", len(transactions))
        return jsonify([t.to_dict() for t in transactions])

    @app.route('/transactions', methods=['POST'])
    @login_required
    def create_transaction():
        record = TransactionStore(db.session).create_transaction(_json_body())
        return jsonify(record.to_dict()), 201

    @app.route('/api/summary')
    @login_required
    def api_summary():
        return jsonify(build_summary(_recent_limit()))


# ==============================
# CLI COMMANDS
# ==============================
def register_commands(app):

    @app.cli.command('initdb')
    def initdb():
        db.create_all()
        print('Database initialized.')

    @app.cli.command('inspect-db')
    def inspect_db():
        print("Users in DB:")
        for user in User.query.all():
            print(f"- {user.id} | {user.name} | {user.email}")

        print("\nTransactions in DB:")
        for tx in TransactionStore(db.session).list_transactions():
            print(f"- {tx.id} | {tx.date.date()} | {tx.type} | {tx.category or '-'} | {tx.amount:.2f} | {tx.description}")


if __name__ == '__main__':
    create_app().run(debug=True)
