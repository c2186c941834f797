"""Outgoing mail adapters."""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from sessionauth.services._shared.ports import Mailer, OutgoingMail

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SMTPMailer(Mailer):
    """
    Deliver messages through an SMTP relay.

    :param host: Relay hostname.
    :param port: Relay port (587 for STARTTLS).
    :param sender: ``From`` header.
    :param username: Optional login.
    :param password: Optional password.
    :param use_tls: Issue ``STARTTLS`` before authenticating.
    :param timeout: Socket timeout in seconds.
    """

    host: str
    port: int
    sender: str
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    timeout: float = 10.0

    def _build(self, message: OutgoingMail) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.attach(MIMEText(message.text, "plain", "utf-8"))
        msg.attach(MIMEText(message.html, "html", "utf-8"))
        return msg

    def send(self, message: OutgoingMail) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(self._build(message))
        log.info("mail.sent subject=%s", message.subject)


class LoggingMailer(Mailer):
    """Fallback when no relay is configured: log the subject, drop the message."""

    def send(self, message: OutgoingMail) -> None:
        log.warning("mail.not_configured subject=%s dropped", message.subject)
