from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import logging

from repairdesk.errors import ServiceError

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _error(message: str, status: int):
    return {'success': False, 'error': message}, status


@jwt.unauthorized_loader
def _missing_token(reason):
    return _error('Authorization header missing', 401)


@jwt.invalid_token_loader
def _invalid_token(reason):
    return _error('Invalid token', 403)


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return _error('Token expired', 403)


@jwt.user_lookup_loader
def _load_user(jwt_header, jwt_data):
    # re-fetched on every protected request so deactivation takes effect at once
    from repairdesk.services.auth_service import load_active_user
    return load_active_user(get_db(), jwt_data.get('sub'))


@jwt.user_lookup_error_loader
def _user_lookup_failed(jwt_header, jwt_data):
    return _error('User not found or inactive', 401)


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    from repairdesk.config.settings import load_settings, missing_envs

    app = Flask(__name__)
    app.config.update(load_settings())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'),
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    for name in missing_envs():
        app.logger.warning(f"Missing environment variable: {name}")

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    try:
        with db_engine.connect() as conn:
            conn.execute(text('SELECT 1'))
    except Exception as e:
        app.logger.error(f"Database connection error: {e}")
        raise RuntimeError(f"Database connection failed: {e}") from e
    app.logger.info('Database connected')

    jwt.init_app(app)

    from repairdesk.services.integrations import build_integrations, EXTENSION_KEY
    app.extensions[EXTENSION_KEY] = build_integrations(app.config, get_db)

    from .routes.auth import auth_bp
    from .routes.service_requests import sr_bp
    from .routes.partner import partner_bp
    from .routes.integrator import integrator_bp
    from .routes.notifications import notify_bp
    from .routes.chat import chat_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(sr_bp, url_prefix='/service-requests')
    app.register_blueprint(partner_bp, url_prefix='/api/partner')
    app.register_blueprint(integrator_bp, url_prefix='/api/integrator')
    app.register_blueprint(notify_bp, url_prefix='/api')
    app.register_blueprint(chat_bp, url_prefix='/api/gemini')

    @app.route('/health')
    def health():
        from repairdesk.utils.timestamps import utcnow, to_iso
        return {'status': 'OK', 'timestamp': to_iso(utcnow()), 'environment': app.config.get('ENVIRONMENT')}

    @app.teardown_appcontext
    def remove_session(exc=None):
        if SessionLocal is not None:
            SessionLocal.remove()

    # Unified error handler producing the {success, error} shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, ServiceError):
            return _error(e.message, e.status)
        if isinstance(e, HTTPException):
            return _error(e.description or e.name, e.code or 500)
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return _error('Internal server error', 500)

    if app.config.get('SEED_SAMPLE_DATA'):
        from repairdesk.seed import seed_sample_data
        seed_sample_data(get_db())

    return app


def get_db():
    return SessionLocal()
