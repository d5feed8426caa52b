# tests/test_notifications.py
from helpdesk.core.config import Settings
from helpdesk.notification import messages
from helpdesk.notification.dispatcher import NotificationDispatcher, OutgoingEmail, SmtpTransport
from helpdesk.notification.services import fire_and_forget


class BrokenTransport:
    def send(self, message):
        raise ConnectionRefusedError("smtp down")


MESSAGE = OutgoingEmail(to="x@example.com", subject="Hi", html="<p>Hi</p>", text="Hi")


def test_delivery_failure_is_swallowed():
    assert NotificationDispatcher(BrokenTransport()).deliver(MESSAGE) is False


def test_missing_transport_drops_message():
    assert NotificationDispatcher(None).deliver(MESSAGE) is False


def test_smtp_transport_requires_configuration():
    assert SmtpTransport.from_settings(Settings(_env_file=None)) is None
    configured = Settings(_env_file=None, SMTP_HOST="smtp.example.com", SMTP_USER="mailer")
    transport = SmtpTransport.from_settings(configured)
    assert transport is not None
    assert transport.host == "smtp.example.com"


def test_fire_and_forget_logs_instead_of_raising():
    calls = []

    @fire_and_forget
    def explode():
        calls.append(1)
        raise RuntimeError("boom")

    assert explode() is None
    assert calls == [1]


def test_message_bodies_are_escaped():
    class FakeTicket:
        ticket_number = 7
        subject = "<script>"
        description = "a & b"
        priority = "high"
        status = "in_progress"

    mail = messages.new_ticket("staff@example.com", FakeTicket())
    assert "<script>" not in mail.html
    assert "&lt;script&gt;" in mail.html
    assert "Status: in progress" in mail.text
