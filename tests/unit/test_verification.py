"""Unit tests for revocation and expiry rules."""

import pytest
from datetime import datetime, timedelta, timezone

from vault_openvpn.crypto_utils import CertificateInfo, CertificateVerifier

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_info(not_after: datetime) -> CertificateInfo:
    return CertificateInfo(
        serial="01:02",
        common_name="vpn.example.com",
        not_valid_before=not_after - timedelta(days=365),
        not_valid_after=not_after,
    )


class TestRevocationMarker:
    """Revoked iff 0 < revocation_time < now."""

    @pytest.mark.parametrize("offset, expected", [
        (-3600, True),
        (-1, True),
        (0, False),
        (3600, False),
    ])
    def test_relative_to_now(self, offset, expected):
        """Test past timestamps revoke, present and future ones do not."""
        revocation_time = int(NOW.timestamp()) + offset
        assert CertificateVerifier.is_revoked(revocation_time, NOW) is expected

    def test_zero_is_not_revoked(self):
        """Test Vault's zero marker means never revoked."""
        assert CertificateVerifier.is_revoked(0, NOW) is False

    def test_negative_is_not_revoked(self):
        """Test negative timestamps are not a revocation."""
        assert CertificateVerifier.is_revoked(-5, NOW) is False


class TestExpiry:
    """Test expiry detection."""

    def test_expired(self):
        assert CertificateVerifier.is_expired(make_info(NOW - timedelta(seconds=1)), NOW) is True

    def test_not_expired(self):
        assert CertificateVerifier.is_expired(make_info(NOW + timedelta(days=1)), NOW) is False

    def test_apply_status_sets_both_flags(self):
        """Test an expired and revoked certificate carries both flags."""
        info = make_info(NOW - timedelta(days=1))

        evaluated = CertificateVerifier.apply_status(info, int(NOW.timestamp()) - 10, NOW)

        assert evaluated.revoked is True
        assert evaluated.expired is True
        assert info.revoked is False  # input instance unchanged

    def test_apply_status_valid_certificate(self):
        info = make_info(NOW + timedelta(days=30))

        evaluated = CertificateVerifier.apply_status(info, 0, NOW)

        assert evaluated.revoked is False
        assert evaluated.expired is False
