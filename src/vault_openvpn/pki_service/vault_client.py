"""Vault API access for the PKI secrets engine."""

from typing import Any, Dict, List, Optional, Type, TypeVar
import logging

import hvac
from hvac import exceptions as hvac_exceptions
from pydantic import BaseModel, ValidationError
from requests import exceptions as requests_exceptions

from ..config_service import Settings
from ..crypto_utils import CertificateFormatConverter
from ..errors import BackendError, ConfigurationError
from .models import CertificateResponse, IssueResponse, ListResponse, SharedSecret

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_CLIENT_ERRORS = (hvac_exceptions.VaultError, requests_exceptions.RequestException)


class VaultClient:
    """Thin wrapper around hvac exposing read, write and list with error context."""

    def __init__(self, settings: Settings, client: Optional[hvac.Client] = None):
        """
        Initialize the Vault client.

        Args:
            settings: Resolved settings (address, token, mount point)
            client: Preconfigured hvac client, mainly for tests

        Raises:
            ConfigurationError: If no token is configured
        """
        if not settings.vault_token:
            raise ConfigurationError("You need to set vault-token")

        self.settings = settings
        self.mount = settings.mount

        if client is None:
            verify: Any = True
            if settings.tls_skip_verify:
                verify = False
            elif settings.ca_cert:
                verify = settings.ca_cert

            client = hvac.Client(
                url=settings.vault_addr,
                token=settings.vault_token,
                verify=verify,
                timeout=settings.timeout,
            )

        self.client = client
        logger.debug(f"Vault client initialized for {settings.vault_addr} (mount: /{self.mount})")

    def pki_path(self, *parts: str) -> str:
        """Build a path below the configured PKI mount point."""
        return "/".join([self.mount, *parts]) if self.mount else "/".join(parts)

    def read(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Read a secret.

        Returns:
            The secret's data, or None if nothing exists at path
        """
        try:
            response = self.client.read(path)
        except _CLIENT_ERRORS as e:
            raise BackendError("read", path, str(e)) from e

        return self._data(response)

    def write(self, path: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Write fields to path and return the response data (may be empty)."""
        try:
            response = self.client.write_data(path, data=fields)
        except _CLIENT_ERRORS as e:
            raise BackendError("write", path, str(e)) from e

        return self._data(response) or {}

    def list(self, path: str) -> Optional[Dict[str, Any]]:
        """
        List entries below path.

        Returns:
            The list response data, or None if the backend returned nothing
        """
        try:
            response = self.client.list(path)
        except _CLIENT_ERRORS as e:
            raise BackendError("list", path, str(e)) from e

        return self._data(response)

    @staticmethod
    def _data(response: Any) -> Optional[Dict[str, Any]]:
        # write_data returns a bare requests.Response for 204 No Content
        if not isinstance(response, dict):
            return None
        data = response.get("data")
        return data if isinstance(data, dict) else None

    @staticmethod
    def _decode(model: Type[ModelT], data: Dict[str, Any], operation: str, path: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise BackendError(operation, path, f"unexpected response ({fields})") from e

    def _read_required(self, model: Type[ModelT], path: str) -> ModelT:
        data = self.read(path)
        if data is None:
            raise BackendError("read", path, "got no data from backend")
        return self._decode(model, data, "read", path)

    def read_ca_certificate(self) -> str:
        """Read the CA certificate of the mount."""
        path = self.pki_path("cert", "ca")
        return self._read_required(CertificateResponse, path).certificate

    def read_ca_chain(self) -> str:
        """
        Read the CA chain of the mount.

        Raises:
            BackendError: If the chain is missing or holds no certificate
        """
        path = self.pki_path("cert", "ca_chain")
        chain = self._read_required(CertificateResponse, path).certificate
        if not CertificateFormatConverter.split_certificate_chain(chain):
            raise BackendError("read", path, "empty ca_chain")
        return chain

    def list_serials(self) -> List[str]:
        """
        List the serials of all certificates known to the mount.

        Raises:
            BackendError: If the backend returned no data at all
        """
        path = self.pki_path("certs")
        data = self.list(path)
        if data is None:
            raise BackendError("list", path, "got no data from backend")
        return self._decode(ListResponse, data, "list", path).keys

    def read_certificate(self, serial: str) -> CertificateResponse:
        """Read one certificate record by serial."""
        path = self.pki_path("cert", serial)
        return self._read_required(CertificateResponse, path)

    def issue_certificate(self, role: str, common_name: str, ttl: str) -> IssueResponse:
        """
        Issue a new certificate and private key.

        Args:
            role: PKI role to issue against
            common_name: Common name of the certificate
            ttl: Requested TTL in Vault notation

        Returns:
            IssueResponse holding certificate, key and serial
        """
        path = self.pki_path("issue", role)
        data = self.write(path, {"common_name": common_name, "ttl": ttl})
        if not data:
            raise BackendError("write", path, "got no data from backend")

        issued = self._decode(IssueResponse, data, "write", path)
        logger.debug(f"Generated new certificate for {common_name} (serial: {issued.serial_number})")
        return issued

    def revoke_certificate(self, serial: str) -> None:
        """Revoke a certificate by serial."""
        self.write(self.pki_path("revoke"), {"serial_number": serial})

    def read_shared_secret(self, secret_path: str) -> str:
        """
        Read the OpenVPN shared key stored under 'key' at secret_path.

        Both KV version 1 and version 2 response layouts are understood.
        """
        path = secret_path.strip("/")
        data = self.read(path)
        if data is None:
            raise BackendError("read", path, "got no data from backend")
        if "key" not in data and not isinstance(data.get("data"), dict):
            raise BackendError("read", path, "within specified secret no entry named 'key' was found")

        try:
            return SharedSecret.from_secret_data(data).key
        except ValidationError as e:
            raise BackendError("read", path, "within specified secret no entry named 'key' was found") from e
