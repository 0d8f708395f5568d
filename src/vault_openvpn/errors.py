"""Exception hierarchy shared by all vault-openvpn components."""

from typing import Optional


class VaultOpenVPNError(Exception):
    """Base class for every error surfaced to the command line."""
    pass


class ConfigurationError(VaultOpenVPNError):
    """Raised when configuration is missing or cannot be interpreted."""
    pass


class InvalidInputError(VaultOpenVPNError):
    """Raised when an FQDN or serial is rejected before talking to Vault."""
    pass


class BackendError(VaultOpenVPNError):
    """
    Raised when a call against the Vault API fails or returns unusable data.

    Args:
        operation: Backend operation that failed (read, write, list)
        path: Vault path the operation was addressed to
        reason: Human readable cause
        partial_results: Items collected before the failure, if any
    """

    def __init__(
        self,
        operation: str,
        path: str,
        reason: str,
        partial_results: Optional[list] = None
    ):
        self.operation = operation
        self.path = path
        self.reason = reason
        self.partial_results = partial_results if partial_results is not None else []
        super().__init__(f"{operation} {path}: {reason}")


class CertificateDecodeError(VaultOpenVPNError):
    """Raised when a PEM blob is not a single parseable X.509 certificate."""

    def __init__(self, message: str, partial_results: Optional[list] = None):
        self.partial_results = partial_results if partial_results is not None else []
        super().__init__(message)


class TemplateRenderError(VaultOpenVPNError):
    """Raised when a configuration template cannot be loaded or rendered."""
    pass
