import os

# Must be set before app.py reads it at import time
os.environ["DATABASE_URL"] = "sqlite://"

import pytest

from app import app as flask_app
from models import db


@pytest.fixture
def app():
    flask_app.config["TESTING"] = True
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
