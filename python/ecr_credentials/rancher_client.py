"""
Rancher (Cattle) API client for registries and registry credentials.

Talks to the environment-scoped API (CATTLE_URL, e.g. http://rancher:8080/v1)
with an environment API key. Only the three calls the sync pass needs are
implemented: list registries, list credentials for a registry, and update a
credential's public/secret value.
"""

from typing import Any, Dict, List, Optional

import requests

from ecr_credentials.error_utils import create_directory_error, create_update_error
from ecr_credentials.logging_utils import get_logger
from ecr_credentials.models import RegistryCredential, RegistryRecord
from ecr_credentials.ports import RegistryDirectory

DEFAULT_TIMEOUT = 30


class RancherClient(RegistryDirectory):
    """RegistryDirectory backed by the Rancher REST API"""

    def __init__(
        self,
        url: str,
        access_key: str,
        secret_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Rancher client

        Args:
            url: Base API URL of the environment
            access_key: API access key (basic auth username)
            secret_key: API secret key (basic auth password)
            timeout: Per-request timeout in seconds
            session: Optional pre-built requests session
        """
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.logger = get_logger(self.__class__.__name__)

        self.session = session or requests.Session()
        if access_key or secret_key:
            self.session.auth = (access_key, secret_key)
        self.session.headers.update({"Accept": "application/json"})

    def connect(self) -> Dict[str, Any]:
        """Fetch the API root to verify the URL and keys.

        Returns:
            Decoded API root document

        Raises:
            DirectoryError: If the API cannot be reached or rejects the keys
        """
        data = self._get_json(self.url, operation="connect")
        self.logger.info(f"Connected to Rancher API at {self.url}")
        return data

    def _get_json(self, url: str, operation: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise create_directory_error(operation, url, e) from e

    def _list_collection(self, url: str, operation: str, params: Optional[Dict[str, str]] = None) -> List[Dict]:
        """Read every page of a collection, following pagination.next links"""
        items: List[Dict] = []
        next_url: Optional[str] = url
        while next_url:
            page = self._get_json(next_url, operation, params=params)
            if not isinstance(page, dict):
                raise create_directory_error(
                    operation, next_url, ValueError(f"expected a collection object, got {type(page).__name__}")
                )
            items.extend(page.get("data") or [])
            pagination = page.get("pagination")
            next_url = pagination.get("next") if isinstance(pagination, dict) else None
            # next links already carry the query string
            params = None
        return items

    def list_registries(self) -> List[RegistryRecord]:
        url = f"{self.url}/registries"
        items = self._list_collection(url, operation="list registries")
        try:
            return [RegistryRecord.from_api(item) for item in items]
        except (KeyError, TypeError, AttributeError) as e:
            raise create_directory_error("list registries", url, e) from e

    def list_credentials(self, registry_id: str) -> List[RegistryCredential]:
        url = f"{self.url}/registrycredentials"
        operation = f"list credentials for registry {registry_id}"
        items = self._list_collection(url, operation=operation, params={"registryId": registry_id})
        try:
            return [RegistryCredential.from_api(item) for item in items]
        except (KeyError, TypeError, AttributeError) as e:
            raise create_directory_error(operation, url, e) from e

    def update_credential(
        self, credential: RegistryCredential, public_value: str, secret_value: str
    ) -> RegistryCredential:
        """PUT new public/secret values; other credential fields are left as they are.

        Raises:
            UpdateError: If the request fails or Rancher rejects it
        """
        url = credential.links.get("self") or f"{self.url}/registrycredentials/{credential.id}"
        body = {"publicValue": public_value, "secretValue": secret_value}

        try:
            response = self.session.put(url, json=body, timeout=self.timeout)
            response.raise_for_status()
            updated = RegistryCredential.from_api(response.json())
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            raise create_update_error(credential.id, credential.registry_id, e) from e

        if not updated.registry_id:
            updated.registry_id = credential.registry_id
        return updated
