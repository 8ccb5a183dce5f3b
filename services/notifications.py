"""
Outbound email for account recovery.

Messages go out over SMTP on a small background pool so the request that
triggered them never waits on (or fails because of) the mail server.
Without SMTP settings the message is logged instead, which is what
development and test setups rely on.
"""
from __future__ import annotations

import logging
import smtplib
import ssl
from concurrent.futures import Future, ThreadPoolExecutor
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Mapping, Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Password Reset Request"

RESET_HTML = """\
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="background-color: #4CAF50; color: white; padding: 20px; text-align: center;">Password Reset Request</h1>
    <p>Hello,</p>
    <p>Someone asked to reset the password of the account registered as <strong>{email}</strong>.</p>
    <p style="text-align: center;">
      <a href="{link}" style="display: inline-block; padding: 12px 24px; background-color: #4CAF50; color: white; text-decoration: none; border-radius: 4px;">Reset Password</a>
    </p>
    <p>If the button does not work, open this address:</p>
    <p style="word-break: break-all; background-color: #f0f0f0; padding: 10px;">{link}</p>
    <p><strong>The link expires in {minutes} minutes and works once.</strong>
       If you did not ask for a reset you can ignore this message.</p>
  </div>
</body>
</html>
"""

RESET_TEXT = """\
Someone asked to reset the password of the account registered as {email}.

Open this link to choose a new password (valid for {minutes} minutes, single use):
{link}

If you did not ask for a reset you can ignore this message.
"""


def _redact(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def reset_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/reset-password?token={quote(token)}"


class EmailNotifier:
    def __init__(
        self,
        *,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        smtp_use_tls: bool = True,
        from_email: Optional[str] = None,
        timeout: int = 30,
        reset_ttl_minutes: int = 60,
        max_workers: int = 2,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email or smtp_user
        self.timeout = timeout
        self.reset_ttl_minutes = reset_ttl_minutes
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mailer")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "EmailNotifier":
        return cls(
            smtp_host=config.get("SMTP_HOST") or None,
            smtp_port=int(config.get("SMTP_PORT", 587)),
            smtp_user=config.get("SMTP_USERNAME") or None,
            smtp_password=config.get("SMTP_PASSWORD") or None,
            smtp_use_tls=config.get("SMTP_USE_TLS", True),
            from_email=config.get("FROM_EMAIL") or None,
            timeout=int(config.get("SMTP_TIMEOUT_SECONDS", 30)),
            reset_ttl_minutes=int(config["RESET_TOKEN_EXPIRES"].total_seconds() // 60),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def send_password_reset_email(self, email: str, token: str, base_url: str) -> Future:
        """Queue the reset message; failures are logged by the worker."""
        link = reset_link(base_url, token)
        values = {"email": email, "link": link, "minutes": self.reset_ttl_minutes}
        future = self._executor.submit(
            self._send, email, RESET_SUBJECT, RESET_HTML.format(**values), RESET_TEXT.format(**values)
        )
        future.add_done_callback(self._log_failure)
        return future

    @staticmethod
    def _log_failure(future: Future):
        exc = future.exception()
        if exc is not None:
            logger.error("Failed to send email: %s", exc, exc_info=exc)

    def _send(self, to_email: str, subject: str, html_body: str, text_body: str):
        if not self.is_configured:
            logger.info("SMTP not configured; email to %s not sent (%s)", _redact(to_email), subject)
            logger.debug("Email body:\n%s", text_body)
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        context = ssl.create_default_context()
        if self.smtp_use_tls:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls(context=context)
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to_email], msg.as_string())
        else:
            with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context, timeout=self.timeout) as server:
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s (%s)", _redact(to_email), subject)

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
