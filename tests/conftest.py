import pytest

from api import create_app
from models import storage

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"


@pytest.fixture
def app(tmp_path):
    app = create_app(
        "testing",
        {
            "DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}",
            "ACCESS_TOKEN_SECRET": ACCESS_SECRET,
            "REFRESH_TOKEN_SECRET": REFRESH_SECRET,
        },
    )
    yield app
    storage.close()


@pytest.fixture
def client(app):
    # Cookies are passed explicitly so each test controls what the server sees
    return app.test_client(use_cookies=False)


@pytest.fixture
def sessions(app):
    return app.extensions["session_manager"]


@pytest.fixture
def issuer(app):
    return app.extensions["token_issuer"]
