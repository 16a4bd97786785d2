from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class AuthorizationEntry:
    """One (token, endpoint) pair returned by GetAuthorizationToken"""

    authorization_token: str
    proxy_endpoint: str
    expires_at: Optional[datetime] = None


@dataclass
class DecodedCredential:
    username: str
    password: str = field(repr=False)
    origin_host: str = ""


@dataclass
class RegistryRecord:
    """Registry configured in the Rancher environment"""

    id: str
    server_address: str
    name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RegistryRecord":
        return cls(
            id=data["id"],
            server_address=data.get("serverAddress") or "",
            name=data.get("name"),
        )


@dataclass
class RegistryCredential:
    """Stored credential for a registry. public_value is the username."""

    id: str
    registry_id: str
    public_value: Optional[str] = None
    secret_value: Optional[str] = field(default=None, repr=False)
    links: Dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RegistryCredential":
        return cls(
            id=data["id"],
            registry_id=data.get("registryId") or "",
            public_value=data.get("publicValue"),
            secret_value=data.get("secretValue"),
            links=data.get("links") or {},
        )
