import smtplib
from unittest.mock import MagicMock, patch

from stevi.services.email_service import EmailService


def _smtp_mock():
    server = MagicMock()
    smtp = MagicMock()
    smtp.return_value.__enter__.return_value = server
    return smtp, server


def test_send_invitation_email_builds_link_and_subject(monkeypatch):
    monkeypatch.setenv("SMTP_FROM_EMAIL", "portal@example.org")
    monkeypatch.setenv("SMTP_FROM_NAME", "STEVI Test")
    monkeypatch.setenv("APP_BASE_URL", "https://portal.test/")
    monkeypatch.setenv("SMTP_USE_TLS", "false")
    smtp, server = _smtp_mock()

    with patch("stevi.services.email_service.smtplib.SMTP", smtp):
        sent = EmailService().send_invitation_email(
            to_email="invitee@example.org",
            organization_name="Harbour Outreach",
            invitation_token="token-xyz",
            inviter_name="Sam",
            message="Welcome <aboard>",
        )

    assert sent is True
    server.starttls.assert_not_called()
    msg = server.send_message.call_args[0][0]
    assert msg["To"] == "invitee@example.org"
    assert msg["From"] == "STEVI Test <portal@example.org>"
    assert msg["Subject"] == "Sam invited you to join Harbour Outreach"
    html = msg.get_payload()[0].get_payload(decode=True).decode()
    assert "https://portal.test/invite/accept?token=token-xyz" in html
    assert "Welcome &lt;aboard&gt;" in html


def test_login_used_when_credentials_configured(monkeypatch):
    monkeypatch.setenv("SMTP_USERNAME", "mailer")
    monkeypatch.setenv("SMTP_PASSWORD", "secret")
    smtp, server = _smtp_mock()

    with patch("stevi.services.email_service.smtplib.SMTP", smtp):
        EmailService()._send_email(to="a@example.org", subject="Hi", html_body="<p>Hi</p>")

    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer", "secret")


def test_send_failure_returns_false(monkeypatch):
    smtp = MagicMock(side_effect=smtplib.SMTPConnectError(421, "busy"))

    with patch("stevi.services.email_service.smtplib.SMTP", smtp):
        sent = EmailService()._send_email(to="a@example.org", subject="Hi", html_body="<p>Hi</p>")

    assert sent is False
