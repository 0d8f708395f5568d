"""PKI Service - certificate lifecycle against a Vault PKI mount."""

from .vault_client import VaultClient
from .cert_directory import CertificateDirectory
from .cert_issuer import CertificateLifecycle
from .renderer import TemplateRenderer

__all__ = ['VaultClient', 'CertificateDirectory', 'CertificateLifecycle', 'TemplateRenderer']
