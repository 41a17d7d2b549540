"""Application layer: provider selection and the dispatch facade."""

from .dispatch import MailDispatcher, resolve_provider_name, select_provider

__all__ = [
    "MailDispatcher",
    "resolve_provider_name",
    "select_provider",
]
