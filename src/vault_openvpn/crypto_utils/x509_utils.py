"""X.509 certificate decoding utilities."""

from datetime import datetime
import logging

from cryptography import x509
from cryptography.x509.oid import NameOID
from pydantic import BaseModel, Field

from ..errors import CertificateDecodeError
from .cert_formats import CertificateFormatConverter

logger = logging.getLogger(__name__)


class CertificateInfo(BaseModel):
    """Fields of a certificate relevant for listing and matching."""

    serial: str = Field(..., description="Colon separated hex serial")
    common_name: str = Field(..., description="Subject common name")
    not_valid_before: datetime = Field(..., description="Certificate start date (UTC)")
    not_valid_after: datetime = Field(..., description="Certificate expiration date (UTC)")
    revoked: bool = Field(default=False, description="Revocation time set and in the past")
    expired: bool = Field(default=False, description="Expiration date in the past")


class X509Utils:
    """Utility class for X.509 certificate operations."""

    @staticmethod
    def format_serial(serial_number: int) -> str:
        """
        Render a serial number the way Vault does.

        Args:
            serial_number: Integer serial of a certificate

        Returns:
            Lowercase hex bytes joined by colons, e.g. "1a:2b:3c"
        """
        length = max(1, (serial_number.bit_length() + 7) // 8)
        return ":".join(f"{b:02x}" for b in serial_number.to_bytes(length, "big"))

    @staticmethod
    def get_common_name(cert: x509.Certificate) -> str:
        """Return the subject common name or an empty string."""
        attributes = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        if not attributes:
            return ""
        return str(attributes[0].value)

    @staticmethod
    def load_certificate(pem_text: str) -> x509.Certificate:
        """
        Parse a PEM blob holding exactly one certificate.

        Args:
            pem_text: PEM-encoded certificate

        Returns:
            Certificate object

        Raises:
            CertificateDecodeError: If the text is not a single parseable certificate
        """
        blocks = CertificateFormatConverter.split_pem_blocks(pem_text)
        if len(blocks) != 1:
            raise CertificateDecodeError(
                f"Expected exactly one PEM block, found {len(blocks)}"
            )
        if CertificateFormatConverter.has_stray_content(pem_text):
            raise CertificateDecodeError("Unexpected content around PEM block")

        label, block = blocks[0]
        if label != "CERTIFICATE":
            raise CertificateDecodeError(f"Expected a CERTIFICATE block, found {label}")

        try:
            return x509.load_pem_x509_certificate(block.encode())
        except ValueError as e:
            raise CertificateDecodeError(f"Unable to parse certificate: {e}") from e

    @staticmethod
    def decode_certificate(pem_text: str) -> CertificateInfo:
        """
        Decode a PEM certificate into the fields used by the tool.

        Args:
            pem_text: PEM-encoded certificate

        Returns:
            CertificateInfo without revocation or expiry status applied
        """
        cert = X509Utils.load_certificate(pem_text)

        info = CertificateInfo(
            serial=X509Utils.format_serial(cert.serial_number),
            common_name=X509Utils.get_common_name(cert),
            not_valid_before=cert.not_valid_before_utc,
            not_valid_after=cert.not_valid_after_utc,
        )

        logger.debug(f"Decoded certificate {info.common_name} (serial: {info.serial})")
        return info
