"""Shared test fixtures."""

import pytest

from api import create_app
from models import storage


class RecordingNotifier:
    """Stands in for the SMTP mailer and keeps what would have been sent."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_password_reset_email(self, email, token, base_url):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append({"email": email, "token": token, "base_url": base_url})


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(notifier):
    app = create_app("testing", notifier=notifier)
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    with app.app_context():
        yield app.extensions["auth_service"]


@pytest.fixture
def customer(service):
    """Signed-up customer: (AuthResult, password)."""
    password = "password1"
    return service.signup("a@b.com", password, first_name="Ada", last_name="Byron"), password
