"""Custom exception types."""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for analysis orchestration failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ProviderCallFailedError(OrchestratorError):
    """Raised when a single provider call returns an error or cannot be made."""

    def __init__(self, provider_id: str, message: str = "Provider call failed") -> None:
        super().__init__(message)
        self.provider_id = provider_id


class AuthenticationRequiredError(ProviderCallFailedError):
    """Raised when a provider rejects the supplied credential."""

    def __init__(self, provider_id: str, message: str = "Provider rejected the API key") -> None:
        super().__init__(provider_id, message=message)


class NoCredentialConfiguredError(OrchestratorError):
    """Raised when no active credential exists for the eligible providers."""

    def __init__(self, provider_id: str | None = None, message: str | None = None) -> None:
        if message is None:
            message = (
                f"No active credential configured for {provider_id}"
                if provider_id
                else "No active credential configured"
            )
        super().__init__(message)
        self.provider_id = provider_id


class AllProvidersFailedError(OrchestratorError):
    """Raised when every candidate in the fallback chain failed."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class CancelledResolutionError(OrchestratorError):
    """Raised when a resolution was cancelled before a provider answered."""


class CredentialEncryptionError(OrchestratorError):
    """Raised when a stored API key cannot be encrypted or decrypted."""
