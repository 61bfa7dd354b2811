import logging
import re
import smtplib
import socket
from collections import deque
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Deque, Dict, Optional

from repairdesk.errors import DeliveryError

# Set up logging
logger = logging.getLogger(__name__)

TAG_RE = re.compile(r'<[^>]*>')
# mock provider keeps only the most recent messages
OUTBOX_LIMIT = 100


def strip_html(html: str) -> str:
    return TAG_RE.sub('', html)


class Mailer:
    """Sends multipart (text + HTML) email via SMTP, or records it when the provider is ``mock``.

    Unlike a fire-and-forget helper this raises ``DeliveryError`` on failure:
    the notification dispatcher decides whether that is fatal.
    """

    def __init__(
        self,
        provider: str = 'smtp',
        server: Optional[str] = None,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_name: str = '',
        timeout: int = 10,
        outbox_limit: int = OUTBOX_LIMIT,
    ):
        self.provider = (provider or 'smtp').lower()
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.from_name = from_name
        self.timeout = timeout
        self.outbox: Deque[Dict[str, str]] = deque(maxlen=outbox_limit)
        self._mock_sent = 0

    @classmethod
    def from_config(cls, config) -> 'Mailer':
        return cls(
            provider=config.get('MAIL_PROVIDER', 'smtp'),
            server=config.get('MAIL_SERVER'),
            port=int(config.get('MAIL_PORT', 587)),
            username=config.get('MAIL_USERNAME'),
            password=config.get('MAIL_PASSWORD'),
            from_name=config.get('MAIL_FROM_NAME', ''),
        )

    @property
    def from_address(self) -> str:
        return self.username or 'no-reply@localhost'

    def _check_configured(self):
        if not all([self.server, self.username, self.password]):
            raise DeliveryError('Email settings not fully configured. Check EMAIL_USER / EMAIL_PASS.')

    def send(self, to_email: str, subject: str, html_content: str, plain_text: Optional[str] = None) -> str:
        """Deliver one message; returns the Message-ID-ish identifier."""
        plain_text = plain_text if plain_text is not None else strip_html(html_content)

        if self.provider == 'mock':
            self._mock_sent += 1
            message_id = f"mock-{self._mock_sent}"
            self.outbox.append({
                'id': message_id,
                'to': to_email,
                'subject': subject,
                'html': html_content,
                'text': plain_text,
            })
            logger.info(f"[MOCK EMAIL] To: {to_email} Subject: {subject}")
            return message_id

        self._check_configured()

        # Build the message container
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{self.from_name} <{self.from_address}>" if self.from_name else self.from_address
        msg['To'] = to_email
        msg.attach(MIMEText(plain_text, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        try:
            with smtplib.SMTP(str(self.server), self.port, timeout=self.timeout) as server:
                server.ehlo()
                server.starttls()
                server.ehlo()
                server.login(str(self.username), str(self.password))
                server.sendmail(self.from_address, [to_email], msg.as_string())
        except socket.gaierror as e:
            logger.error(f"DNS lookup failed for email server {self.server}: {e}")
            raise DeliveryError(f'Email delivery failed: {e}') from e
        except socket.timeout as e:
            logger.error(f"Connection to email server {self.server} timed out: {e}")
            raise DeliveryError(f'Email delivery failed: {e}') from e
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            raise DeliveryError('Email delivery failed: authentication rejected') from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to_email}: {e}")
            raise DeliveryError(f'Email delivery failed: {e}') from e

        logger.info(f"Email sent successfully to {to_email} via SMTP")
        return msg['Message-ID'] or ''

    def verify(self) -> bool:
        """Check that the transport accepts our credentials without sending anything."""
        if self.provider == 'mock':
            return True
        try:
            self._check_configured()
            with smtplib.SMTP(str(self.server), self.port, timeout=self.timeout) as server:
                server.ehlo()
                server.starttls()
                server.ehlo()
                server.login(str(self.username), str(self.password))
        except (DeliveryError, smtplib.SMTPException, OSError) as e:
            logger.error(f"Email configuration error: {e}")
            return False
        logger.info('Email configuration is valid and ready to send emails')
        return True
