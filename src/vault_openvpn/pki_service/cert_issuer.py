"""Certificate issuance, revocation and listing workflows."""

from datetime import datetime, timezone
from typing import List, Optional, TextIO
import logging

from ..config_service import Settings
from ..config_service.config_manager import format_ttl
from ..crypto_utils import CertificateInfo
from ..errors import BackendError, CertificateDecodeError, InvalidInputError
from .cert_directory import CertificateDirectory
from .models import CertificateRow, TemplateContext
from .renderer import TemplateRenderer
from .vault_client import VaultClient

logger = logging.getLogger(__name__)

CONFIG_KINDS = ("client", "server")


def validate_fqdn(fqdn: str) -> bool:
    """Very basic check: at least two dot separated components. Vault does the real validation."""
    return len(fqdn.split(".")) > 1


def validate_serial(serial: str) -> bool:
    """Very basic check: at least one colon. Vault does the real validation."""
    return len(serial.split(":")) > 1


def sort_rows(rows: List[CertificateRow], sort_by: str = "fqdn") -> List[CertificateRow]:
    """
    Sort list rows.

    Args:
        rows: Rows to sort
        sort_by: "fqdn" (name, then issue date), "issuedate" or "expiredate"

    Returns:
        New sorted list
    """
    if sort_by == "issuedate":
        return sorted(rows, key=lambda r: r.not_before)
    if sort_by == "expiredate":
        return sorted(rows, key=lambda r: r.not_after)
    return sorted(rows, key=lambda r: (r.fqdn, r.not_before))


class CertificateLifecycle:
    """Issues, revokes and lists certificates of one PKI mount."""

    def __init__(
        self,
        settings: Settings,
        vault: VaultClient,
        directory: Optional[CertificateDirectory] = None,
        renderer: Optional[TemplateRenderer] = None
    ):
        """
        Initialize the workflows.

        Args:
            settings: Resolved settings
            vault: Vault client bound to the PKI mount
            directory: Certificate directory (default: built on vault)
            renderer: Template renderer (default: reads settings.template_path)
        """
        self.settings = settings
        self.vault = vault
        self.directory = directory or CertificateDirectory(vault)
        self.renderer = renderer or TemplateRenderer(settings.template_path)

    def issue(self, kind: str, fqdn: str, stream: TextIO) -> TemplateContext:
        """
        Issue a certificate for fqdn and render the matching configuration.

        A certificate that was issued stays issued when rendering fails
        afterwards; re-running the workflow revokes and replaces it.

        Args:
            kind: "client" or "server"
            fqdn: Common name to issue for
            stream: Output stream for the rendered configuration

        Returns:
            The context the template was rendered with
        """
        if kind not in CONFIG_KINDS:
            raise InvalidInputError(f"Unknown configuration kind: {kind}")
        if not validate_fqdn(fqdn):
            raise InvalidInputError("You need to provide a valid FQDN")

        if self.settings.auto_revoke:
            try:
                self.revoke_by_name(fqdn)
            except BackendError as e:
                raise BackendError(e.operation, e.path, f"could not revoke certificate: {e.reason}") from e
            except CertificateDecodeError as e:
                raise CertificateDecodeError(f"could not revoke certificate: {e}", e.partial_results) from e

        ca_chain = self.fetch_ca()

        issued = self.vault.issue_certificate(
            self.settings.pki_role,
            fqdn,
            format_ttl(self.settings.ttl),
        )

        tls_auth = None
        if self.settings.ovpn_key:
            tls_auth = self.vault.read_shared_secret(self.settings.ovpn_key)

        context = TemplateContext(
            ca_chain=ca_chain,
            certificate=issued.certificate,
            private_key=issued.private_key,
            tls_auth=tls_auth,
            common_name=fqdn,
        )

        self.renderer.render(f"{kind}.conf", context, stream)
        logger.info(f"Issued {kind} certificate for {fqdn} (serial: {issued.serial_number})")
        return context

    def fetch_ca(self) -> str:
        """Return the CA chain, or the CA certificate if no chain is available."""
        try:
            return self.vault.read_ca_chain()
        except BackendError as e:
            logger.debug(f"CA chain unavailable, falling back to CA certificate: {e}")
            return self.vault.read_ca_certificate()

    def revoke_by_name(self, fqdn: str, now: Optional[datetime] = None) -> List[str]:
        """
        Revoke all valid certificates issued for fqdn.

        Returns:
            Serials revoked by this call
        """
        if not validate_fqdn(fqdn):
            raise InvalidInputError("You need to provide a valid FQDN")

        now = now or datetime.now(timezone.utc)
        revoked = []
        for info in self.directory.find_by_common_name(fqdn, now):
            if self.revoke_by_serial(info.serial, now):
                revoked.append(info.serial)

        return revoked

    def revoke_by_serial(self, serial: str, now: Optional[datetime] = None) -> bool:
        """
        Revoke one certificate.

        Returns:
            True if a revocation was sent, False if it was already revoked or expired
        """
        if not validate_serial(serial):
            raise InvalidInputError("You need to provide a valid serial")

        info, revoked = self.directory.fetch_by_serial(serial, now)
        if revoked:
            logger.debug(f"Certificate {serial} already revoked or expired")
            return False

        try:
            self.vault.revoke_certificate(serial)
        except BackendError as e:
            raise BackendError(e.operation, e.path, f"revoke of serial {serial!r} failed: {e.reason}") from e

        logger.info(f"Revoked certificate {info.common_name} (serial: {serial})")
        return True

    def list_certificates(
        self,
        sort_by: Optional[str] = None,
        include_expired: Optional[bool] = None,
        now: Optional[datetime] = None
    ) -> List[CertificateRow]:
        """
        List certificates as sorted rows.

        Args:
            sort_by: Sort key (default: settings.sort)
            include_expired: Include expired certificates (default: settings.list_expired)
            now: Reference time (default: current UTC time)
        """
        if sort_by is None:
            sort_by = self.settings.sort
        if include_expired is None:
            include_expired = self.settings.list_expired

        certs: List[CertificateInfo] = self.directory.fetch_valid(include_expired, now)
        rows = [
            CertificateRow(
                fqdn=info.common_name,
                not_before=info.not_valid_before,
                not_after=info.not_valid_after,
                serial=info.serial,
            )
            for info in certs
        ]

        return sort_rows(rows, sort_by)
