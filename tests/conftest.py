"""Shared fixtures: a deterministic sample vault and the keys behind it."""

import pytest

from opvault.core.models import KeyMac
from vaultgen import PASSWORD, VaultWriter, populate_sample


@pytest.fixture
def vault_writer(tmp_path):
    return VaultWriter(tmp_path / "test.opvault")


@pytest.fixture
def populated_writer(vault_writer):
    return populate_sample(vault_writer)


@pytest.fixture
def sample_vault(populated_writer):
    """Path to a written vault with folders, logins, a note and trashed entries."""
    return populated_writer.write()


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def master_key(vault_writer) -> KeyMac:
    return vault_writer.master_key


@pytest.fixture
def overview_key(vault_writer) -> KeyMac:
    return vault_writer.overview_key
