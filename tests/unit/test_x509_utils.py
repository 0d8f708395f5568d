"""Unit tests for certificate decoding."""

import pytest
from datetime import datetime, timedelta, timezone

from vault_openvpn.crypto_utils import CertificateFormatConverter, X509Utils
from vault_openvpn.errors import CertificateDecodeError

from ..utils.test_helpers import TestCertificateFactory


@pytest.fixture
def ca():
    return TestCertificateFactory.create_ca_certificate()


class TestSerialFormatting:
    """Test the colon separated serial representation."""

    def test_format_serial_matches_vault_notation(self):
        """Test bytes are rendered as lowercase hex joined by colons."""
        assert X509Utils.format_serial(0x1A2B3C) == "1a:2b:3c"

    def test_format_serial_pads_each_byte(self):
        """Test single digit bytes keep their leading zero."""
        assert X509Utils.format_serial(0x0102) == "01:02"

    def test_format_serial_single_byte(self):
        """Test a one byte serial has no separator."""
        assert X509Utils.format_serial(0x7F) == "7f"


class TestCertificateDecoding:
    """Test decoding PEM blobs into CertificateInfo."""

    def test_decode_extracts_fields(self, ca):
        """Test common name, validity window and serial are extracted."""
        ca_cert, ca_key = ca
        not_before = datetime(2024, 1, 1, tzinfo=timezone.utc)
        not_after = datetime(2030, 1, 1, tzinfo=timezone.utc)
        cert, _ = TestCertificateFactory.create_leaf_certificate(
            "vpn.example.com", ca_cert, ca_key,
            not_before=not_before, not_after=not_after, serial_number=0xABCDEF01,
        )

        info = X509Utils.decode_certificate(TestCertificateFactory.certificate_pem(cert))

        assert info.common_name == "vpn.example.com"
        assert info.serial == "ab:cd:ef:01"
        assert info.not_valid_before == not_before
        assert info.not_valid_after == not_after
        assert info.revoked is False
        assert info.expired is False

    def test_decode_without_common_name(self, ca):
        """Test a subject without CN decodes to an empty common name."""
        ca_cert, ca_key = ca
        cert, _ = TestCertificateFactory.create_leaf_certificate(None, ca_cert, ca_key)

        info = X509Utils.decode_certificate(TestCertificateFactory.certificate_pem(cert))

        assert info.common_name == ""

    def test_reject_empty_input(self):
        """Test text without any PEM block is rejected."""
        with pytest.raises(CertificateDecodeError):
            X509Utils.decode_certificate("")

    def test_reject_multiple_blocks(self, ca):
        """Test a chain is not accepted where a single certificate is expected."""
        ca_cert, _ = ca
        pem = TestCertificateFactory.certificate_pem(ca_cert)

        with pytest.raises(CertificateDecodeError, match="exactly one"):
            X509Utils.decode_certificate(pem + pem)

    def test_reject_non_certificate_block(self):
        """Test a private key block is rejected."""
        key = TestCertificateFactory.create_private_key()

        with pytest.raises(CertificateDecodeError, match="CERTIFICATE"):
            X509Utils.decode_certificate(TestCertificateFactory.private_key_pem(key))

    def test_reject_corrupted_body(self):
        """Test a well delimited block with garbage content is rejected."""
        pem = "-----BEGIN CERTIFICATE-----\nbm90IGEgY2VydGlmaWNhdGU=\n-----END CERTIFICATE-----\n"

        with pytest.raises(CertificateDecodeError, match="Unable to parse"):
            X509Utils.decode_certificate(pem)

    def test_reject_stray_content(self, ca):
        """Test text surrounding the PEM block is rejected."""
        ca_cert, _ = ca
        pem = TestCertificateFactory.certificate_pem(ca_cert)

        with pytest.raises(CertificateDecodeError):
            X509Utils.decode_certificate("garbage\n" + pem)


class TestPemSplitting:
    """Test PEM chain handling."""

    def test_split_chain(self, ca):
        """Test a chain is split into its certificates."""
        ca_cert, _ = ca
        pem = TestCertificateFactory.certificate_pem(ca_cert)

        blocks = CertificateFormatConverter.split_certificate_chain(pem + pem)

        assert len(blocks) == 2
        assert all(block.startswith("-----BEGIN CERTIFICATE-----") for block in blocks)

    def test_split_empty_chain(self):
        """Test an empty chain yields no certificates."""
        assert CertificateFormatConverter.split_certificate_chain("") == []

    def test_split_skips_other_blocks(self):
        """Test key blocks are not returned as certificates."""
        key = TestCertificateFactory.create_private_key()
        pem = TestCertificateFactory.private_key_pem(key)

        assert CertificateFormatConverter.split_pem_blocks(pem)[0][0] == "PRIVATE KEY"
        assert CertificateFormatConverter.split_certificate_chain(pem) == []
