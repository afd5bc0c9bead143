from __future__ import annotations


class DestinationNotFoundError(LookupError):
    """Raised when a commute is requested for an unknown destination id.

    This signals caller misuse or a configuration bug, as opposed to a
    provider being unavailable, which is always recovered from.

    Args:
        destination_id: The identifier that could not be resolved.
    """

    def __init__(self, destination_id: str) -> None:
        super().__init__(f"Destination {destination_id!r} not found")
        self.destination_id = destination_id


class ProviderError(RuntimeError):
    """Describes why a commute provider tier produced no result.

    Tiers return instances of this class instead of raising so that the
    provider chain can fall through to the next tier explicitly.

    Args:
        provider: Short provider name for logs (``directions``, ``transit``...).
        message: High-level human-readable message for logs.
        technical_detail: Optional technical detail (status code, payload...).
    """

    def __init__(
        self, provider: str, message: str, *, technical_detail: str | None = None
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.technical_detail = technical_detail


class ProviderNotConfiguredError(ProviderError):
    """The tier does not apply (missing API key, no stop data...)."""
