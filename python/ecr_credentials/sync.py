"""
Credential sync pass: ECR token -> decode -> match Rancher registry -> update credential.

One pass fetches authorization entries once and handles each entry on its
own. A failure is logged and recorded against the entry that caused it; the
pass then moves on to the next entry. Nothing is retried within a pass, the
next scheduled pass retries everything.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from ecr_credentials.auth.token_decoder import decode_authorization_entry
from ecr_credentials.credential_updater import CredentialUpdater
from ecr_credentials.error_utils import (
    AmbiguousCredentialError,
    CredentialSyncError,
    DecodeError,
    DirectoryError,
    FormatError,
    NoCredentialError,
    RegistryNotFoundError,
    UpdateError,
    UpstreamError,
)
from ecr_credentials.logging_utils import get_logger, log_exception
from ecr_credentials.models import AuthorizationEntry
from ecr_credentials.ports import RegistryDirectory, TokenSource
from ecr_credentials.registry_matcher import find_registry_by_host

DEFAULT_INTERVAL_SECONDS = 6 * 60 * 60


class EntryOutcome(Enum):
    UPDATED = "updated"
    DECODE_ERROR = "decode_error"
    FORMAT_ERROR = "format_error"
    NOT_FOUND = "not_found"
    DIRECTORY_ERROR = "directory_error"
    NO_CREDENTIAL = "no_credential"
    AMBIGUOUS_CREDENTIAL = "ambiguous_credential"
    UPDATE_ERROR = "update_error"


# Order matters: subclasses before their bases
_OUTCOME_BY_ERROR = (
    (DecodeError, EntryOutcome.DECODE_ERROR),
    (FormatError, EntryOutcome.FORMAT_ERROR),
    (RegistryNotFoundError, EntryOutcome.NOT_FOUND),
    (DirectoryError, EntryOutcome.DIRECTORY_ERROR),
    (NoCredentialError, EntryOutcome.NO_CREDENTIAL),
    (AmbiguousCredentialError, EntryOutcome.AMBIGUOUS_CREDENTIAL),
    (UpdateError, EntryOutcome.UPDATE_ERROR),
)


@dataclass
class EntryResult:
    endpoint: str
    outcome: EntryOutcome
    registry_id: Optional[str] = None
    credential_id: Optional[str] = None
    message: str = ""


@dataclass
class SyncReport:
    """Outcome of one sync pass"""

    entries_fetched: int = 0
    upstream_error: Optional[str] = None
    results: List[EntryResult] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return sum(1 for r in self.results if r.outcome is EntryOutcome.UPDATED)

    @property
    def failed(self) -> int:
        return len(self.results) - self.updated

    def outcomes(self) -> List[EntryOutcome]:
        return [r.outcome for r in self.results]


class SyncOrchestrator:
    """Runs credential sync passes against a token source and a registry directory"""

    def __init__(self, token_source: TokenSource, directory: RegistryDirectory, registry_ids: Iterable[str] = ()):
        """
        Args:
            token_source: Upstream issuer of authorization entries
            directory: Downstream registry directory; owned by the caller and reused across passes
            registry_ids: Optional registry ids to scope the token request to
        """
        self.token_source = token_source
        self.directory = directory
        self.registry_ids = [registry_id for registry_id in registry_ids if registry_id]
        self.updater = CredentialUpdater(directory)
        self.logger = get_logger(self.__class__.__name__)

    def run_once(self) -> SyncReport:
        """Execute one complete sync pass. Never raises for sync errors."""
        self.logger.info("Updating ECR Credentials")
        report = SyncReport()

        try:
            entries = self.token_source.fetch_authorization_entries(self.registry_ids)
        except UpstreamError as e:
            self.logger.error(e.format_message())
            report.upstream_error = e.message
            return report

        report.entries_fetched = len(entries)
        if not entries:
            self.logger.info("Request did not return authorization data")
            return report

        for entry in entries:
            report.results.append(self.process_entry(entry))

        self.logger.info(
            f"Sync pass finished: {report.entries_fetched} entries, "
            f"{report.updated} updated, {report.failed} failed"
        )
        return report

    def process_entry(self, entry: AuthorizationEntry) -> EntryResult:
        """Decode, match and update for a single authorization entry"""
        result = EntryResult(endpoint=entry.proxy_endpoint, outcome=EntryOutcome.UPDATED)
        try:
            decoded = decode_authorization_entry(entry)
            registry = find_registry_by_host(decoded.origin_host, self.directory.list_registries())
            result.registry_id = registry.id
            credential = self.updater.update_credential(registry, decoded.username, decoded.password)
            result.credential_id = credential.id
            result.message = f"Updated credential {credential.id}"
        except CredentialSyncError as e:
            result.outcome = self._outcome_for(e)
            result.message = e.message
            self.logger.warning(f"Skipping authorization entry for {entry.proxy_endpoint}: {e.format_message()}")
        return result

    @staticmethod
    def _outcome_for(error: CredentialSyncError) -> EntryOutcome:
        for error_type, outcome in _OUTCOME_BY_ERROR:
            if isinstance(error, error_type):
                return outcome
        raise error

    def run_forever(self, interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
                    stop_event: Optional[threading.Event] = None) -> None:
        """Run a pass now and then once every interval until stop_event is set.

        A pass in progress is always allowed to finish.
        """
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                # Unexpected bugs must not kill the scheduler
                log_exception(self.logger, "Unexpected error during sync pass", e)
            stop_event.wait(interval_seconds)
