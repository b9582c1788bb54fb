"""Password reset mail over SMTP."""

import html
import logging
import smtplib
from email.message import EmailMessage

from goalcast.config import settings

logger = logging.getLogger(__name__)


class MailNotConfigured(RuntimeError):
    pass


def is_configured() -> bool:
    return bool(settings.EMAIL_USER and settings.EMAIL_PASSWORD and settings.CLIENT_URL)


def reset_url(token: str) -> str:
    return f"{settings.CLIENT_URL}/reset-password?token={token}"


def _reset_html(username: str, url: str) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #333;">Hello {html.escape(username)},</h1>
  <p>You requested a password reset for your GoalCast account.</p>
  <p>Click the button below to reset your password:</p>
  <div style="text-align: center; margin: 30px 0;">
    <a href="{url}" style="background-color: #4F46E5; color: white; padding: 12px 24px; text-decoration: none; border-radius: 4px; display: inline-block;">Reset Password</a>
  </div>
  <p>This link will expire in {settings.RESET_TOKEN_TTL_MINUTES} minutes.</p>
  <p>If you didn't request this, please ignore this email.</p>
</div>
"""


def send_password_reset(email: str, username: str, token: str) -> None:
    if not is_configured():
        logger.error(
            "Mail is not configured: EMAIL_USER=%s EMAIL_PASSWORD=%s CLIENT_URL=%s",
            "set" if settings.EMAIL_USER else "missing",
            "set" if settings.EMAIL_PASSWORD else "missing",
            "set" if settings.CLIENT_URL else "missing",
        )
        raise MailNotConfigured("Email service not properly configured")

    url = reset_url(token)
    message = EmailMessage()
    message["Subject"] = "Password Reset Request - GoalCast"
    message["From"] = f"GoalCast <{settings.EMAIL_USER}>"
    message["To"] = email
    message.set_content(f"Hello {username},\n\nReset your GoalCast password here: {url}\n")
    message.add_alternative(_reset_html(username, url), subtype="html")

    with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
        smtp.login(settings.EMAIL_USER, settings.EMAIL_PASSWORD)
        smtp.send_message(message)
    logger.info("Password reset mail sent to %s", email)
