"""Pytest configuration and shared fixtures for vault-openvpn testing."""

import pytest
import tempfile
import shutil
from pathlib import Path
from datetime import datetime, timezone
from typing import Generator

from vault_openvpn.config_service import Settings
from vault_openvpn.pki_service import CertificateDirectory, CertificateLifecycle, VaultClient

from .utils.test_helpers import FakeVault, SIMPLE_CLIENT_TEMPLATE, SIMPLE_SERVER_TEMPLATE


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test artifacts."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def template_dir(temp_dir: Path) -> Path:
    """Directory holding minimal client.conf / server.conf templates."""
    path = temp_dir / "templates"
    path.mkdir()
    (path / "client.conf").write_text(SIMPLE_CLIENT_TEMPLATE)
    (path / "server.conf").write_text(SIMPLE_SERVER_TEMPLATE)
    return path


@pytest.fixture
def settings(template_dir: Path) -> Settings:
    """Settings pointing at the fake Vault and the test templates."""
    return Settings(
        vault_addr="https://vault.test:8200",
        vault_token="s.testtoken",
        template_path=str(template_dir),
    )


@pytest.fixture
def fake_vault() -> FakeVault:
    """In-memory Vault with an empty PKI mount."""
    return FakeVault()


@pytest.fixture
def vault_client(settings: Settings, fake_vault: FakeVault) -> VaultClient:
    """VaultClient wired to the fake Vault."""
    return VaultClient(settings, client=fake_vault)


@pytest.fixture
def directory(vault_client: VaultClient) -> CertificateDirectory:
    return CertificateDirectory(vault_client)


@pytest.fixture
def lifecycle(settings: Settings, vault_client: VaultClient) -> CertificateLifecycle:
    return CertificateLifecycle(settings, vault_client)


@pytest.fixture
def now() -> datetime:
    """Current time, captured once per test."""
    return datetime.now(timezone.utc)
