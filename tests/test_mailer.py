import smtplib

import pytest

from cephas.config import settings
from cephas.services import mailer


class FakeSMTP:
    sent = []

    def __init__(self, host, port):
        self.host, self.port = host, port
        self.tls = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.tls = True

    def login(self, username, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append((self.tls, msg))


@pytest.fixture
def smtp(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "mail_from", "tracker@example.com")
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_unconfigured_mail_is_skipped(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", None)
    assert not mailer.mail_configured()
    assert mailer.send_mail("a@example.com", "Hi", "Body") is False


def test_message_is_sent_over_tls(smtp):
    assert mailer.send_mail("lim@example.com", "Reset", "Click here")
    tls, msg = smtp.sent[0]
    assert tls
    assert msg["To"] == "lim@example.com"
    assert msg["From"] == "tracker@example.com"


def test_delivery_failure_returns_false(smtp, monkeypatch):
    def refuse(self, msg):
        raise smtplib.SMTPRecipientsRefused({})

    monkeypatch.setattr(FakeSMTP, "send_message", refuse)
    assert mailer.send_mail("lim@example.com", "Reset", "Click here") is False
