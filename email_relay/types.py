"""Shared type aliases for the email relay package."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol

Payload = Mapping[str, Any]
SendEmailEvent = dict[str, Any]
ConfirmationEvent = dict[str, Any]
HandlerResult = dict[str, Any]

SendMailFn = Callable[..., bool]
PublishConfirmationFn = Callable[[ConfirmationEvent], bool]


class EmailProvider(Protocol):
    """One outbound email transport.

    `send` collapses every transport, HTTP and parse failure into `False`.
    """

    name: str

    def send(
        self,
        to: str,
        subject: str,
        text: str | None = None,
        html: str | None = None,
    ) -> bool: ...
