"""
Pytest configuration file.

Sets up the Python path so test files can import from the python/ directory,
and provides in-memory stand-ins for ECR and Rancher.
"""
import base64
import copy
import sys
from pathlib import Path

import pytest

# Add python directory to path for all tests
_python_dir = Path(__file__).parent.parent / 'python'
_python_dir_abs = str(_python_dir.absolute())
if _python_dir_abs not in sys.path:
    sys.path.insert(0, _python_dir_abs)

from ecr_credentials.error_utils import DirectoryError, UpdateError, UpstreamError  # noqa: E402
from ecr_credentials.models import AuthorizationEntry, RegistryCredential, RegistryRecord  # noqa: E402
from ecr_credentials.ports import RegistryDirectory, TokenSource  # noqa: E402


def make_token(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class FakeTokenSource(TokenSource):
    """Returns canned entries and records the registry ids it was asked for"""

    def __init__(self, entries=None, error: Exception = None):
        self.entries = list(entries or [])
        self.error = error
        self.calls = []

    def fetch_authorization_entries(self, registry_ids=()):
        self.calls.append(list(registry_ids))
        if self.error is not None:
            raise self.error
        return list(self.entries)


class FakeRegistryDirectory(RegistryDirectory):
    """In-memory registry directory with inspectable stored state"""

    def __init__(self):
        self.registries = []
        self.credentials = {}
        self.calls = []
        self.fail_list_registries = False
        self.fail_list_credentials = set()
        self.fail_update = set()

    def add_registry(self, registry_id: str, server_address: str) -> RegistryRecord:
        record = RegistryRecord(id=registry_id, server_address=server_address)
        self.registries.append(record)
        return record

    def add_credential(self, credential_id: str, registry_id: str,
                       public_value: str = "AWS", secret_value: str = "old") -> RegistryCredential:
        credential = RegistryCredential(
            id=credential_id, registry_id=registry_id,
            public_value=public_value, secret_value=secret_value,
        )
        self.credentials[credential_id] = credential
        return credential

    def snapshot(self):
        return copy.deepcopy(self.credentials)

    def list_registries(self):
        self.calls.append(("list_registries",))
        if self.fail_list_registries:
            raise DirectoryError("Rancher API operation failed: list registries")
        return list(self.registries)

    def list_credentials(self, registry_id):
        self.calls.append(("list_credentials", registry_id))
        if registry_id in self.fail_list_credentials:
            raise DirectoryError(f"Rancher API operation failed: list credentials for registry {registry_id}")
        return [copy.copy(c) for c in self.credentials.values() if c.registry_id == registry_id]

    def update_credential(self, credential, public_value, secret_value):
        self.calls.append(("update_credential", credential.id))
        if credential.id in self.fail_update:
            raise UpdateError(f"Failed to update registry credential {credential.id}")
        stored = self.credentials[credential.id]
        stored.public_value = public_value
        stored.secret_value = secret_value
        return copy.copy(stored)


@pytest.fixture
def directory():
    return FakeRegistryDirectory()


@pytest.fixture
def ecr_entry():
    def _make(text="user1:pass1", endpoint="https://123.dkr.ecr.us-east-1.amazonaws.com"):
        return AuthorizationEntry(authorization_token=make_token(text), proxy_endpoint=endpoint)
    return _make


@pytest.fixture
def token_source_factory():
    def _make(entries=None, error=None):
        return FakeTokenSource(entries=entries, error=error)
    return _make


@pytest.fixture
def upstream_error():
    return UpstreamError("Failed to fetch ECR authorization token")
