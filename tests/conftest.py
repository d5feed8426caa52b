# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from helpdesk.core.config import Settings
from helpdesk.main import create_app
from helpdesk.user import services as user_service
from helpdesk.user.models import Role

PASSWORD = "Secret#123"


class RecordingTransport:
    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append(message)

    def to(self, address):
        return [m for m in self.sent if m.to == address]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_SECRET="test-secret-for-the-helpdesk-suite-0123456789",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        SMTP_HOST=None,
        SMTP_USER=None,
    )


@pytest.fixture
def outbox():
    return RecordingTransport()


@pytest.fixture
def app(settings, outbox):
    return create_app(settings=settings, transport=outbox)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app, client):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(app, client):
    def _make(username, role=Role.CUSTOMER, password=PASSWORD, verified=True, force=False, email=None):
        with app.state.session_factory() as session:
            user = user_service.insert_user(
                session,
                username=username,
                email=email or f"{username}@example.com",
                password=password,
                role=role,
                first_name=username.title(),
                last_name="Test",
                email_verified=verified,
                force_password_change=force,
            )
            session.commit()
            return user.id

    return _make


@pytest.fixture
def login(client):
    def _login(username, password=PASSWORD):
        r = client.post("/auth/login", json={"login": username, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['token']}"}

    return _login


@pytest.fixture
def admin(make_user, login):
    user_id = make_user("boss", role=Role.ADMIN)
    return user_id, login("boss")


@pytest.fixture
def agent(make_user, login):
    user_id = make_user("agent1", role=Role.AGENT)
    return user_id, login("agent1")


@pytest.fixture
def customer(make_user, login):
    user_id = make_user("alice")
    return user_id, login("alice")


@pytest.fixture
def other_customer(make_user, login):
    user_id = make_user("bob")
    return user_id, login("bob")


@pytest.fixture
def new_ticket(client):
    def _create(headers, subject="Printer on fire", description="Smoke everywhere", **fields):
        data = {"subject": subject, "description": description, **fields}
        r = client.post("/tickets/", data=data, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _create
