"""Revocation and expiry status rules."""

from typing import Optional
from datetime import datetime, timezone
import logging

from .x509_utils import CertificateInfo

logger = logging.getLogger(__name__)


class CertificateVerifier:
    """Derives the effective status of a certificate record."""

    @staticmethod
    def is_revoked(revocation_time: int, now: Optional[datetime] = None) -> bool:
        """
        Check the revocation marker of a certificate record.

        Vault reports 0 for certificates that were never revoked. Only a
        positive timestamp strictly in the past counts as revoked.

        Args:
            revocation_time: Unix timestamp reported by Vault
            now: Reference time (default: current UTC time)

        Returns:
            True if the certificate is revoked
        """
        now = now or datetime.now(timezone.utc)
        return 0 < revocation_time < now.timestamp()

    @staticmethod
    def is_expired(info: CertificateInfo, now: Optional[datetime] = None) -> bool:
        """Check whether the certificate validity has ended."""
        now = now or datetime.now(timezone.utc)
        return info.not_valid_after < now

    @staticmethod
    def apply_status(
        info: CertificateInfo,
        revocation_time: int,
        now: Optional[datetime] = None
    ) -> CertificateInfo:
        """
        Return a copy of info with revoked and expired flags evaluated.

        Args:
            info: Decoded certificate
            revocation_time: Unix timestamp reported by Vault
            now: Reference time (default: current UTC time)
        """
        now = now or datetime.now(timezone.utc)
        return info.model_copy(update={
            "revoked": CertificateVerifier.is_revoked(revocation_time, now),
            "expired": CertificateVerifier.is_expired(info, now),
        })
