from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class OutgoingMail:
    """
    A rendered message ready for delivery.

    :param to: Recipient address.
    :param subject: Subject line.
    :param html: HTML body.
    :param text: Plain-text alternative.
    """

    to: str
    subject: str
    html: str
    text: str


class Mailer(Protocol):
    """Port for delivering transactional email."""

    def send(self, message: OutgoingMail) -> None: ...


class InMemoryMailer(Mailer):
    """Collects messages instead of sending them (tests)."""

    def __init__(self) -> None:
        self.outbox: list[OutgoingMail] = []

    def send(self, message: OutgoingMail) -> None:
        self.outbox.append(message)

    def last_to(self, address: str) -> OutgoingMail | None:
        for message in reversed(self.outbox):
            if message.to == address:
                return message
        return None
