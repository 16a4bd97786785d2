"""
Matching of ECR endpoints to configured Rancher registries by host identity.
"""

import urllib.parse
from typing import Iterable

from ecr_credentials.error_utils import RegistryNotFoundError
from ecr_credentials.logging_utils import get_logger
from ecr_credentials.models import RegistryRecord

logger = get_logger(__name__)


def derive_registry_host(server_address: str) -> str:
    """Derive the host identity of a registry server address.

    "https://host:443/path" gives "host:443". A bare "host" or "host/path" has
    no authority component, so the path is used as is. A "host:port" string
    parses as scheme "host" with opaque "port" and is used verbatim. Nothing
    else is normalized.

    Raises:
        ValueError: If the address cannot be parsed as a URL
    """
    parsed = urllib.parse.urlsplit(server_address)
    if parsed.netloc:
        return parsed.netloc.rpartition("@")[2]
    if parsed.scheme:
        return server_address
    return parsed.path


def find_registry_by_host(origin_host: str, records: Iterable[RegistryRecord]) -> RegistryRecord:
    """Return the first record, in listing order, whose host equals origin_host.

    Records whose address fails to parse are logged and skipped.

    Raises:
        RegistryNotFoundError: If no record matches
    """
    logger.info(f"Looking for configured registry for host {origin_host}")
    for record in records:
        try:
            registry_host = derive_registry_host(record.server_address)
        except ValueError as e:
            logger.warning(f"Failed to parse configured registry URL {record.server_address} ({record.id}): {e}")
            continue
        if registry_host == origin_host:
            return record

    raise RegistryNotFoundError(
        f"Failed to find configured registry to update for URL {origin_host}",
        suggestions=[f"Add a registry with server address {origin_host} in Rancher"],
        details={"origin_host": origin_host},
    )
