"""
Outgoing mail for ByteInit.

Account mail (verification, password reset), contact-form relays and
interaction digests all go through one SMTP relay. Delivery is async via
aiosmtplib; bodies come from the Jinja2 templates under
``byteinit/templates/email`` as an HTML part plus a plain-text twin.
"""

import html
import os
import re
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr, make_msgid

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

logger = logging.getLogger(__name__)

TEMPLATE_ROOT = Path(__file__).resolve().parent.parent / "templates" / "email"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == 'true'


class EmailServiceConfig:
    """SMTP relay and sender identity, read from the environment."""

    def __init__(self):
        self.smtp_host = os.getenv('SMTP_HOST', '').strip()
        self.smtp_port = int(os.getenv('SMTP_PORT', '587'))
        self.smtp_username = os.getenv('SMTP_USERNAME', '')
        self.smtp_password = os.getenv('SMTP_PASSWORD', '')
        # Implicit TLS (465) and STARTTLS (587) are mutually exclusive
        self.smtp_use_tls = _env_flag('SMTP_USE_TLS', 'false')
        self.smtp_start_tls = _env_flag('SMTP_START_TLS', 'true')
        self.smtp_timeout = float(os.getenv('SMTP_TIMEOUT_SECONDS', '30'))
        self.from_email = os.getenv('FROM_EMAIL', 'noreply@byteinit.dev')
        self.from_name = os.getenv('FROM_NAME', 'ByteInit')
        self.reply_to_email = os.getenv('REPLY_TO_EMAIL', '')
        self.template_dir = os.getenv('EMAIL_TEMPLATE_DIR', str(TEMPLATE_ROOT))

    @property
    def sender(self) -> str:
        return formataddr((self.from_name, self.from_email))

    @property
    def message_domain(self) -> str:
        return self.from_email.rsplit('@', 1)[-1] or 'byteinit.dev'

    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_port and self.from_email)

    def validate(self) -> List[str]:
        """Return human-readable configuration problems (empty when usable)."""
        problems = []
        if not self.smtp_host:
            problems.append("SMTP_HOST is required")
        if self.smtp_port <= 0:
            problems.append("SMTP_PORT must be a positive integer")
        if not self.from_email:
            problems.append("FROM_EMAIL is required")
        if self.smtp_use_tls and self.smtp_start_tls:
            problems.append("SMTP_USE_TLS and SMTP_START_TLS cannot both be enabled (pick implicit TLS or STARTTLS)")
        return problems

    def smtp_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            'hostname': self.smtp_host,
            'port': self.smtp_port,
            'use_tls': self.smtp_use_tls,
            'start_tls': self.smtp_start_tls and not self.smtp_use_tls,
            'timeout': self.smtp_timeout,
        }
        if self.smtp_username and self.smtp_password:
            options['username'] = self.smtp_username
            options['password'] = self.smtp_password
        return options


class EmailService:
    """Renders ByteInit mail templates and relays messages over SMTP."""

    def __init__(self, config: Optional[EmailServiceConfig] = None):
        self.config = config or EmailServiceConfig()
        template_dir = Path(self.config.template_dir)
        if not template_dir.is_dir():
            logger.warning(f"Email templates missing at {template_dir}; rendering will fail")
        self.template_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
        )

    def build_message(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> MIMEMultipart:
        message = MIMEMultipart('alternative')
        message['From'] = self.config.sender
        message['To'] = to_email
        message['Subject'] = subject
        message['Message-ID'] = make_msgid(domain=self.config.message_domain)
        answer_to = reply_to or self.config.reply_to_email
        if answer_to:
            message['Reply-To'] = answer_to
        # Last alternative is the preferred one, so HTML goes after text
        if text_content:
            message.attach(MIMEText(text_content, 'plain', 'utf-8'))
        message.attach(MIMEText(html_content, 'html', 'utf-8'))
        return message

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Deliver one message.

        Never raises: the result is ``{'success': True, 'message_id': ...}``
        or ``{'success': False, 'error': ...}`` so callers can record the
        outcome on their email log row.
        """
        if not self.config.is_configured():
            return {'success': False, 'error': 'Email service not configured'}

        try:
            message = self.build_message(to_email, subject, html_content, text_content, reply_to)
            await aiosmtplib.send(message, **self.config.smtp_options())
        except Exception as e:
            error_msg = f"Failed to send email to {to_email}: {e}"
            logger.error(error_msg, exc_info=True)
            return {'success': False, 'error': error_msg}

        logger.info(f"Email '{subject}' delivered to {to_email}")
        return {'success': True, 'message_id': message['Message-ID']}

    def render_template(self, template_name: str, context: Dict[str, Any]) -> Tuple[str, str]:
        """Render ``<name>.html`` and ``<name>.txt``; the text part falls back to stripped HTML."""
        html_content = self.template_env.get_template(f"{template_name}.html").render(**context)
        try:
            text_content = self.template_env.get_template(f"{template_name}.txt").render(**context)
        except TemplateNotFound:
            text_content = self._html_to_text(html_content)
        return html_content, text_content

    def _html_to_text(self, html_content: str) -> str:
        without_tags = re.sub(r'<[^>]+>', ' ', html_content)
        return re.sub(r'\s+', ' ', html.unescape(without_tags)).strip()


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Process-wide EmailService; configuration problems are logged once."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
        config = _email_service.config
        if config.smtp_host:
            for problem in config.validate():
                logger.warning(f"Email configuration: {problem}")
        else:
            logger.info("SMTP_HOST not set; outgoing email is disabled")
    return _email_service
