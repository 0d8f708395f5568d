"""Lookup and filtering of the certificates stored in the PKI mount."""

from datetime import datetime, timezone
from typing import List, Optional, Tuple
import logging

from ..crypto_utils import CertificateInfo, CertificateVerifier, X509Utils
from ..errors import BackendError, CertificateDecodeError
from .vault_client import VaultClient

logger = logging.getLogger(__name__)


class CertificateDirectory:
    """Reads the certificate inventory of a PKI mount."""

    def __init__(self, vault: VaultClient):
        """
        Initialize the directory.

        Args:
            vault: Vault client bound to the PKI mount
        """
        self.vault = vault

    def list_serials(self) -> List[str]:
        """List all serials known to the mount."""
        return self.vault.list_serials()

    def fetch_by_serial(
        self,
        serial: str,
        now: Optional[datetime] = None
    ) -> Tuple[CertificateInfo, bool]:
        """
        Fetch and decode one certificate.

        Expired certificates are reported as revoked too: Vault does not set
        a revocation time when revoking a certificate that already expired.

        Args:
            serial: Colon separated serial
            now: Reference time (default: current UTC time)

        Returns:
            Tuple of (certificate info, revoked)
        """
        now = now or datetime.now(timezone.utc)
        record = self.vault.read_certificate(serial)

        try:
            info = X509Utils.decode_certificate(record.certificate)
        except CertificateDecodeError as e:
            raise CertificateDecodeError(f"Unable to decode certificate {serial}: {e}") from e

        info = CertificateVerifier.apply_status(info, record.revocation_time, now)
        return info, info.revoked or info.expired

    def fetch_valid(
        self,
        include_expired: bool = False,
        now: Optional[datetime] = None
    ) -> List[CertificateInfo]:
        """
        Fetch all certificates which are not revoked.

        Stops at the first failing fetch. The certificates gathered up to that
        point are attached to the raised error as partial_results.

        Args:
            include_expired: Keep expired (but not revoked) certificates
            now: Reference time (default: current UTC time)

        Returns:
            List of certificate info in backend order
        """
        now = now or datetime.now(timezone.utc)
        results: List[CertificateInfo] = []

        for serial in self.list_serials():
            try:
                info, _ = self.fetch_by_serial(serial, now)
            except BackendError as e:
                raise BackendError(e.operation, e.path, e.reason, partial_results=results) from e
            except CertificateDecodeError as e:
                raise CertificateDecodeError(str(e), partial_results=results) from e

            if info.revoked:
                continue
            if info.expired and not include_expired:
                continue

            results.append(info)

        logger.debug(f"Found {len(results)} certificate(s) (include_expired={include_expired})")
        return results

    def find_by_common_name(
        self,
        common_name: str,
        now: Optional[datetime] = None
    ) -> List[CertificateInfo]:
        """Return the valid certificates issued for exactly this common name."""
        return [
            info for info in self.fetch_valid(include_expired=False, now=now)
            if info.common_name == common_name
        ]
