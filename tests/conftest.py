# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app import create_app
from config import TestingConfig
from db import db
from errors import OAuthVerificationFailed


class FakeClock:
    """Wall clock the tests can move forward."""

    def __init__(self):
        self.now = datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail_with = None

    def __call__(self, *, to, subject, html="", text=""):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})

    @property
    def last_code(self) -> str:
        # "Your OTP code is 123456. Valid for 5 minutes."
        return self.sent[-1]["text"].split("is ", 1)[1].split(".", 1)[0]


class FakeGoogle:
    """Accepts tokens registered in `identities`, rejects everything else."""

    def __init__(self):
        self.identities = {}

    def __call__(self, token):
        try:
            return dict(self.identities[token])
        except KeyError:
            raise OAuthVerificationFailed()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def google():
    return FakeGoogle()


@pytest.fixture
def app(clock, mailer, google):
    app = create_app(TestingConfig, send_email=mailer, verify_identity_token=google, clock=clock)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def flow(app):
    return app.extensions["auth_flow"]


@pytest.fixture
def alice(flow):
    user, _ = flow.register("alice_01", "Alice@Example.com", "secret123")
    return user
