import sys
from datetime import timedelta
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from writerly import create_app
from writerly.config import TestConfig
from writerly.extensions import db
from writerly.models import User
from writerly.storage import WritingStorage
from writerly.timeutils import utc_today


@pytest.fixture
def app_instance():
    app = create_app(TestConfig)
    app.config["WTF_CSRF_ENABLED"] = False
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app_instance):
    return app_instance.test_client()


def _register(client, pen_name, email):
    return client.post(
        "/register",
        data={
            "pen_name": pen_name,
            "email": email,
            "password": "password123",
            "confirm_password": "password123",
        },
        follow_redirects=True,
    )


def _login(client, email):
    return client.post(
        "/login",
        data={"email": email, "password": "password123"},
        follow_redirects=True,
    )


def test_register_stores_trimmed_pen_name(client):
    response = _register(client, "  Ink Well  ", " Ink@Example.com ")

    assert b"Your writing desk is ready, Ink Well." in response.data
    user = User.query.one()
    assert user.pen_name == "Ink Well"
    assert user.email == "ink@example.com"


def test_pen_name_must_be_unique_ignoring_case(client):
    _register(client, "Ink Well", "ink@example.com")

    response = _register(client, "INK WELL", "other@example.com")

    assert b"Another writer already publishes under that pen name." in response.data
    assert User.query.count() == 1


def test_pen_name_rejects_markup(client):
    response = _register(client, "<b>Ink</b>", "ink@example.com")

    assert b"Pen names may use letters" in response.data
    assert User.query.count() == 0


def test_login_greets_writer_with_current_streak(client):
    _register(client, "Ink Well", "ink@example.com")
    user = User.query.one()
    storage = WritingStorage()
    today = utc_today()
    storage.create_writing_activity(user.id, 300, activity_date=today)
    storage.create_writing_activity(user.id, 120, activity_date=today - timedelta(days=1))

    response = _login(client, "ink@example.com")

    assert b"Welcome back, Ink Well! You have written 2 days in a row." in response.data


def test_login_without_streak_invites_writer_back(client):
    _register(client, "Ink Well", "ink@example.com")

    response = _login(client, "ink@example.com")

    assert b"Welcome back, Ink Well! Pick up where you left off." in response.data
