import logging
import smtplib
from contextlib import contextmanager
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from config import settings

logger = logging.getLogger(__name__)


class EmailClient:
    """SMTP client for notification emails. One attempt per message; failures are logged, not retried."""

    def __init__(
        self,
        smtp_host: Optional[str],
        smtp_port: int,
        username: Optional[str],
        password: Optional[str],
        sender: Optional[str],
        recipient: Optional[str],
        use_ssl: bool = False,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.sender = sender
        self.recipient = recipient
        self.use_ssl = use_ssl

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.username and self.password)

    @contextmanager
    def _connection(self):
        """Context-managed SMTP connection."""
        server = None
        try:
            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.smtp_host, self.smtp_port)
            else:
                server = smtplib.SMTP(self.smtp_host, self.smtp_port)
                server.starttls()
            server.login(self.username, self.password)
            yield server
        finally:
            if server:
                try:
                    server.quit()
                except Exception as e:
                    logger.warning(f"Error closing SMTP connection: {e}")

    def _build_message(self, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = f'"Lab Inventory" <{self.sender}>'
        msg["To"] = self.recipient
        msg["Subject"] = subject
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def send(self, subject: str, html_body: str) -> bool:
        """Send one notification. Returns True only when the SMTP server accepted it."""
        if not self.is_configured:
            logger.warning("Email transport not configured. Skipping email notification.")
            return False
        if not self.recipient:
            logger.warning("Notification recipient not configured. Skipping email.")
            return False

        msg = self._build_message(subject, html_body)
        try:
            with self._connection() as server:
                server.sendmail(self.sender, [self.recipient], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email '{subject}': {e}", exc_info=True)
            return False
        logger.info(f"Notification email sent: {subject}")
        return True


def get_email_client() -> EmailClient:
    return EmailClient(
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        sender=settings.EMAIL_SENDER,
        recipient=settings.NOTIFICATION_RECIPIENT,
        use_ssl=settings.SMTP_USE_SSL,
    )
