import os
import tempfile

# Must be set before the models package creates the DBStorage singleton
_DB_DIR = tempfile.mkdtemp(prefix="clean-shop-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ["APP_ENV"] = "test"

import pytest

from api import create_app
from models import storage
from models.user import Role, User
from utils.security import hash_password

from tests.helpers import PASSWORD, bearer, login, register


@pytest.fixture
def app():
    storage.drop_all()
    app = create_app("test")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def flow(app):
    return app.extensions["session_flow"]


@pytest.fixture
def make_user(app):
    def _make(email="a@x.com", name="A", password=PASSWORD, role=Role.ADMIN):
        user = User(name=name, email=email, password_hash=hash_password(password), role=role)
        storage.new(user)
        storage.save()
        return user

    return _make


@pytest.fixture
def admin_headers(client):
    register(client, name="Admin", email="admin@x.com")
    resp = login(client, email="admin@x.com")
    return bearer(resp.get_json()["access_token"])


@pytest.fixture
def customer_headers(app, make_user):
    user = make_user(email="buyer@x.com", name="Buyer", role=Role.CUSTOMER)
    token = app.extensions["token_signer"].issue_access(user.id, user.role)
    return bearer(token)
