import os, sys, pytest
# Ensure the backend directory is on path so 'repairdesk' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from repairdesk import create_app, get_db
from repairdesk.models.user import Base
# Import all model modules to ensure tables are registered before create_all
import repairdesk.models.ticket  # noqa: F401
import repairdesk.models.partner_request  # noqa: F401
import repairdesk.models.project  # noqa: F401
import repairdesk.models.device  # noqa: F401

TEST_CONFIG = {
    'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
    'JWT_SECRET_KEY': 'test-secret',
    'TICKET_STORE': 'sql',
    'MAIL_PROVIDER': 'mock',
    'GEMINI_API_KEY': None,
    'ENFORCE_TICKET_TRANSITIONS': False,
    'SEED_SAMPLE_DATA': False,
    'ENVIRONMENT': 'test',
}


@pytest.fixture()
def app_instance():
    # fresh in-memory database per test
    app = create_app(dict(TEST_CONFIG))
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def ext(app_instance):
    """The app's integrations container (ticket store, mailer, notifier, ...)."""
    return app_instance.extensions['repairdesk']


@pytest.fixture()
def outbox(ext):
    return ext.mailer.outbox


@pytest.fixture()
def db(app_instance):
    with app_instance.app_context():
        yield get_db()
