"""
mail/sender.py -- Outbound email over SMTP.

MailSender delivers the verification and password-reset links produced by
the auth service. send_email() reports the outcome as a bool instead of
raising: the auth service decides per workflow whether a failed send is fatal
(password reset) or merely logged (registration).

When SMTP is disabled (the default in development) the send counts as
successful and only the recipient and the link targets are logged. The last
path segment of every link is masked: it is the single-use verify token.

Layer rule: no imports from api/, auth/, or internship/.
"""

import logging
import re
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from core.config import Settings

logger = logging.getLogger("interntrack.mail")

SUBJECT = "Confirm your email - InternTrack"

_HREF_RE = re.compile(r'href="([^"]*/)[^"/]*"')


def _masked_links(html_body: str) -> list[str]:
    """Return every href in html_body with its final path segment replaced by ***."""
    return [f"{prefix}***" for prefix in _HREF_RE.findall(html_body)]


class MailSender:
    def __init__(self, settings: Settings):
        self._settings = settings

    def _create_message(self, to_email: str, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def _deliver(self, message: MIMEMultipart) -> None:
        settings = self._settings
        password = settings.smtp_password.get_secret_value() if settings.smtp_password else ""

        if settings.smtp_use_tls and not settings.smtp_starttls:
            # Implicit TLS (port 465)
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context, timeout=10) as server:
                if settings.smtp_user:
                    server.login(settings.smtp_user, password)
                server.send_message(message)
            return

        # STARTTLS (port 587) or plain
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
            if settings.smtp_starttls:
                server.starttls(context=ssl.create_default_context())
            if settings.smtp_user:
                server.login(settings.smtp_user, password)
            server.send_message(message)

    def send_email(self, to_email: str, html_body: str, name: str) -> bool:
        """Send html_body to to_email. Returns True on success, False on any delivery failure."""
        if not self._settings.smtp_enabled:
            logger.warning("SMTP disabled, email to %s not sent. Links: %s", to_email, _masked_links(html_body))
            return True

        if not self._settings.smtp_host:
            logger.error("SMTP host not configured")
            return False

        message = self._create_message(to_email, SUBJECT, html_body)
        try:
            self._deliver(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s (%s): %s", to_email, name, e)
            return False

        logger.info("Email sent to %s", to_email)
        return True
