"""Transactional email: typed message props and the SendGrid transport."""

import logging
from dataclasses import dataclass
from html import escape
from urllib.parse import quote

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from dashboard.config import Settings
from dashboard.exceptions import MailError
from dashboard.models import Token
from dashboard.services.interfaces import Mailer

logger = logging.getLogger(__name__)

FOOTER = "© 2021 Test Automation Dashboard"


@dataclass(frozen=True)
class VerifyEmailProps:
    site_url: str
    token: str

    subject = "Verify Email"

    def render(self) -> str:
        # "123456" is shown as "123 456" to make it easier to type
        code = f"{self.token[:3]} {self.token[3:]}"
        return f"""
        <h2>Verify your email address</h2>
        <p>Enter the code below into the browser window where you began creating your Dashboard account.</p>
        <h1 style="font-size: 32px; letter-spacing: 8px; font-family: monospace;">{escape(code)}</h1>
        <p>This code expires in 24 hours.</p>
        <p>This email address was used to create an account with the Dashboard.
        If it was not you, you can safely ignore this email.</p>
        <p><a href="{escape(self.site_url)}">{escape(self.site_url)}</a></p>
        <p>{FOOTER}</p>
        """


@dataclass(frozen=True)
class ResetPasswordProps:
    site_url: str
    reset_url: str

    subject = "Password Reset"

    @classmethod
    def for_token(cls, site_url: str, token: str) -> "ResetPasswordProps":
        return cls(site_url=site_url, reset_url=f"{site_url}/reset-password?token={quote(token)}")

    def render(self) -> str:
        return f"""
        <h2>Reset Your Password</h2>
        <p>Click the link below to reset your password. If you didn't request this, you can safely ignore this email.</p>
        <p><a href="{escape(self.reset_url)}">Reset Password</a></p>
        <p>This link expires in 24 hours.</p>
        <p>{FOOTER}</p>
        """


class SendGridMailer:
    """Mailer that delivers through the SendGrid API."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        if not self._settings.sendgrid_api_key:
            logger.warning("SendGrid API key not configured, skipping email send")
            return

        message = Mail(
            from_email=(self._settings.email_from_address, self._settings.email_from_name),
            to_emails=to_address,
            subject=subject,
            html_content=html_body,
        )

        try:
            sg = SendGridAPIClient(self._settings.sendgrid_api_key)
            sg.client.timeout = self._settings.email_timeout_seconds
            response = sg.send(message)
        except Exception as e:
            logger.exception(f"Failed to send email to {to_address}")
            raise MailError(f"unable to send email to {to_address}: {e}") from e

        logger.info(f"Email sent to {to_address}, status: {response.status_code}")
        if response.status_code not in (200, 201, 202):
            raise MailError(f"unexpected SendGrid status {response.status_code}")


class EmailService:
    """Render and send the account emails."""

    def __init__(self, mailer: Mailer, settings: Settings) -> None:
        self._mailer = mailer
        self._settings = settings

    def send_verify_email(self, email: str, token: Token) -> None:
        """Send the email verification code."""
        props = VerifyEmailProps(site_url=self._settings.site_url, token=token.token)
        if self._settings.dev:
            logger.debug(f"Verification code for {email}: {token.token}")
        self._mailer.send(email, props.subject, props.render())

    def send_password_reset_email(self, email: str, token: Token) -> None:
        """Send the password reset link."""
        props = ResetPasswordProps.for_token(self._settings.site_url, token.token)
        if self._settings.dev:
            logger.debug(f"Password reset link for {email}: {props.reset_url}")
        self._mailer.send(email, props.subject, props.render())
