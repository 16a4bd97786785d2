"""
Capability interfaces for the upstream token source and the downstream
registry directory. The sync pass only talks to these, so tests can swap in
in-memory implementations without AWS or Rancher.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List

from ecr_credentials.models import AuthorizationEntry, RegistryCredential, RegistryRecord


class TokenSource(ABC):
    """Issues registry authorization entries"""

    @abstractmethod
    def fetch_authorization_entries(self, registry_ids: Iterable[str] = ()) -> List[AuthorizationEntry]:
        """Fetch authorization entries, optionally scoped to registry ids.

        Raises:
            UpstreamError: If the upstream call fails
        """


class RegistryDirectory(ABC):
    """Lists registries and reads/writes their stored credentials"""

    @abstractmethod
    def list_registries(self) -> List[RegistryRecord]:
        """Raises DirectoryError on failure"""

    @abstractmethod
    def list_credentials(self, registry_id: str) -> List[RegistryCredential]:
        """Raises DirectoryError on failure"""

    @abstractmethod
    def update_credential(
        self, credential: RegistryCredential, public_value: str, secret_value: str
    ) -> RegistryCredential:
        """Set the public/secret values of an existing credential.

        Raises:
            UpdateError: If the write fails
        """
