from ecr_credentials.error_utils import AmbiguousCredentialError, NoCredentialError
from ecr_credentials.logging_utils import get_logger
from ecr_credentials.models import RegistryCredential, RegistryRecord
from ecr_credentials.ports import RegistryDirectory


class CredentialUpdater:
    """Applies new username/password values to a registry's single stored credential"""

    def __init__(self, directory: RegistryDirectory):
        self.directory = directory
        self.logger = get_logger(self.__class__.__name__)

    def update_credential(self, registry: RegistryRecord, username: str, password: str) -> RegistryCredential:
        """Set publicValue/secretValue on the registry's only credential.

        Re-applying the same values is a successful no-op update.

        Args:
            registry: Matched registry record
            username: New public value
            password: New secret value

        Returns:
            The updated credential as returned by the directory

        Raises:
            DirectoryError: If listing credentials fails
            NoCredentialError: If the registry has no credential
            AmbiguousCredentialError: If the registry has more than one credential
            UpdateError: If the write fails
        """
        credentials = self.directory.list_credentials(registry.id)

        if not credentials:
            raise NoCredentialError(
                f"No credentials retrieved for registry: {registry.id}",
                suggestions=["Add a credential to the registry in Rancher; it is never created automatically"],
                details={"registry_id": registry.id, "server_address": registry.server_address},
            )
        if len(credentials) > 1:
            raise AmbiguousCredentialError(
                f"Registry {registry.id} has {len(credentials)} credentials; refusing to pick one",
                suggestions=["Remove the extra credentials so exactly one remains"],
                details={
                    "registry_id": registry.id,
                    "credential_ids": ",".join(c.id for c in credentials),
                },
            )

        credential = credentials[0]
        updated = self.directory.update_credential(credential, username, password)
        self.logger.info(
            f"Successfully updated credentials {credential.id} for registry {registry.id}; "
            f"registry address: {registry.server_address}"
        )
        return updated
