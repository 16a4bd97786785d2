"""
AWS ECR authorization token source.

Uses boto3 to call GetAuthorizationToken. Credentials and region come from
the standard boto3 chain unless a region is configured explicitly.
"""

from typing import Any, Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ecr_credentials.error_utils import create_upstream_error
from ecr_credentials.logging_utils import get_logger
from ecr_credentials.models import AuthorizationEntry
from ecr_credentials.ports import TokenSource


class EcrTokenSource(TokenSource):
    """Fetches registry authorization entries from AWS ECR"""

    def __init__(self, region: Optional[str] = None, client: Any = None):
        """
        Args:
            region: AWS region for the ECR client (default: boto3 resolution chain)
            client: Pre-built boto3 ECR client, mainly for tests
        """
        self.region = region
        self._client = client
        self.logger = get_logger(self.__class__.__name__)

    @property
    def client(self) -> Any:
        if self._client is None:
            if self.region:
                self._client = boto3.client("ecr", region_name=self.region)
            else:
                self._client = boto3.client("ecr")
        return self._client

    def fetch_authorization_entries(self, registry_ids: Iterable[str] = ()) -> List[AuthorizationEntry]:
        """Call GetAuthorizationToken, scoped to registry_ids when given.

        Args:
            registry_ids: AWS account ids owning the registries; empty for the caller's default registry

        Returns:
            List of AuthorizationEntry, possibly empty

        Raises:
            UpstreamError: If the AWS call fails for any reason
        """
        ids = [registry_id for registry_id in registry_ids if registry_id]
        kwargs = {"registryIds": ids} if ids else {}

        try:
            response = self.client.get_authorization_token(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise create_upstream_error(ids, e) from e

        self.logger.info("Returned from AWS GetAuthorizationToken call successfully")

        entries = []
        for data in response.get("authorizationData") or []:
            entries.append(
                AuthorizationEntry(
                    authorization_token=data.get("authorizationToken", ""),
                    proxy_endpoint=data.get("proxyEndpoint", ""),
                    expires_at=data.get("expiresAt"),
                )
            )
        return entries
