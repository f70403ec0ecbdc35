from __future__ import annotations


class DomainError(Exception):
    """Base for errors whose message is safe to show to the user."""


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass
