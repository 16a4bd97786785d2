"""Unit and end-to-end tests for ecr_credentials/sync.py"""

import threading
from unittest.mock import MagicMock, patch

from ecr_credentials.rancher_client import RancherClient
from ecr_credentials.sync import EntryOutcome, SyncOrchestrator, SyncReport

ECR_ENDPOINT = "https://123.dkr.ecr.us-east-1.amazonaws.com"
OTHER_ENDPOINT = "https://456.dkr.ecr.eu-west-1.amazonaws.com"


class TestEndToEndScenarios:
    """The four reference scenarios for a sync pass"""

    def test_single_credential_is_updated(self, directory, ecr_entry, token_source_factory):
        directory.add_registry("1r1", ECR_ENDPOINT)
        directory.add_credential("1c1", "1r1")
        source = token_source_factory([ecr_entry("user1:pass1", ECR_ENDPOINT)])

        report = SyncOrchestrator(source, directory).run_once()

        assert report.outcomes() == [EntryOutcome.UPDATED]
        assert report.results[0].registry_id == "1r1"
        assert report.results[0].credential_id == "1c1"
        assert directory.credentials["1c1"].public_value == "user1"
        assert directory.credentials["1c1"].secret_value == "pass1"

    def test_two_credentials_is_ambiguous(self, directory, ecr_entry, token_source_factory):
        directory.add_registry("1r1", ECR_ENDPOINT)
        directory.add_credential("1c1", "1r1")
        directory.add_credential("1c2", "1r1")
        before = directory.snapshot()
        source = token_source_factory([ecr_entry("user1:pass1", ECR_ENDPOINT)])

        report = SyncOrchestrator(source, directory).run_once()

        assert report.outcomes() == [EntryOutcome.AMBIGUOUS_CREDENTIAL]
        assert directory.snapshot() == before

    def test_unmatched_entry_does_not_stop_the_pass(self, directory, ecr_entry, token_source_factory):
        directory.add_registry("1r1", ECR_ENDPOINT)
        directory.add_credential("1c1", "1r1")
        source = token_source_factory([
            ecr_entry("user0:pass0", OTHER_ENDPOINT),
            ecr_entry("user1:pass1", ECR_ENDPOINT),
        ])

        report = SyncOrchestrator(source, directory).run_once()

        assert report.outcomes() == [EntryOutcome.NOT_FOUND, EntryOutcome.UPDATED]
        assert directory.credentials["1c1"].secret_value == "pass1"

    def test_no_entries_makes_no_downstream_calls(self, directory, token_source_factory):
        source = token_source_factory([])

        report = SyncOrchestrator(source, directory).run_once()

        assert report.entries_fetched == 0
        assert report.results == []
        assert report.upstream_error is None
        assert directory.calls == []


class TestRunOnce:
    """Tests for per-entry isolation and upstream handling"""

    def test_upstream_error_aborts_pass(self, directory, token_source_factory, upstream_error):
        source = token_source_factory(error=upstream_error)

        report = SyncOrchestrator(source, directory).run_once()

        assert report.upstream_error == "Failed to fetch ECR authorization token"
        assert report.results == []
        assert directory.calls == []

    def test_passes_registry_ids_to_token_source(self, directory, token_source_factory):
        source = token_source_factory([])

        SyncOrchestrator(source, directory, ["123456789012", "", "210987654321"]).run_once()

        assert source.calls == [["123456789012", "210987654321"]]

    def test_each_failure_kind_is_isolated(self, directory, ecr_entry, token_source_factory):
        directory.add_registry("1r1", "https://ok.example.com")
        directory.add_credential("1c1", "1r1")
        directory.add_registry("1r2", "https://none.example.com")
        directory.add_registry("1r3", "https://broken.example.com")
        directory.add_credential("1c3", "1r3")
        directory.fail_update.add("1c3")
        directory.add_registry("1r4", "https://unlisted.example.com")
        directory.fail_list_credentials.add("1r4")

        bad_base64 = ecr_entry("x:y", "https://ok.example.com")
        bad_base64.authorization_token = "%%%"
        source = token_source_factory([
            bad_base64,
            ecr_entry("a:b:c", "https://ok.example.com"),
            ecr_entry("u:p", "https://none.example.com"),
            ecr_entry("u:p", "https://broken.example.com"),
            ecr_entry("u:p", "https://unlisted.example.com"),
            ecr_entry("user1:pass1", "https://ok.example.com"),
        ])

        report = SyncOrchestrator(source, directory).run_once()

        assert report.outcomes() == [
            EntryOutcome.DECODE_ERROR,
            EntryOutcome.FORMAT_ERROR,
            EntryOutcome.NO_CREDENTIAL,
            EntryOutcome.UPDATE_ERROR,
            EntryOutcome.DIRECTORY_ERROR,
            EntryOutcome.UPDATED,
        ]
        assert report.updated == 1
        assert report.failed == 5
        assert directory.credentials["1c1"].secret_value == "pass1"
        assert directory.credentials["1c3"].secret_value == "old"

    def test_registry_listing_failure_is_per_entry(self, directory, ecr_entry, token_source_factory):
        directory.fail_list_registries = True
        source = token_source_factory([ecr_entry(), ecr_entry()])

        report = SyncOrchestrator(source, directory).run_once()

        assert report.outcomes() == [EntryOutcome.DIRECTORY_ERROR, EntryOutcome.DIRECTORY_ERROR]

    def test_registries_are_listed_for_each_entry(self, directory, ecr_entry, token_source_factory):
        directory.add_registry("1r1", ECR_ENDPOINT)
        directory.add_credential("1c1", "1r1")
        source = token_source_factory([ecr_entry(), ecr_entry()])

        SyncOrchestrator(source, directory).run_once()

        assert [c for c in directory.calls if c[0] == "list_registries"] == [("list_registries",)] * 2

    def test_malformed_rancher_responses_stay_per_entry(self, ecr_entry, token_source_factory):
        """Test that bad API bodies become entry outcomes and later entries still run"""
        registries = MagicMock()
        registries.json.return_value = {"data": [{"id": "1sr1", "serverAddress": ECR_ENDPOINT}]}
        credentials = MagicMock()
        credentials.json.return_value = {"data": [{"id": "1c1", "registryId": "1sr1"}]}
        listing_not_an_object = MagicMock()
        listing_not_an_object.json.return_value = [{"id": "1sr1"}]
        put_without_id = MagicMock()
        put_without_id.json.return_value = {}
        put_ok = MagicMock()
        put_ok.json.return_value = {"id": "1c1", "registryId": "1sr1", "publicValue": "user3"}

        session = MagicMock()
        session.get.side_effect = [registries, credentials, listing_not_an_object, registries, credentials]
        session.put.side_effect = [put_without_id, put_ok]
        rancher = RancherClient("http://rancher:8080/v1", "ak", "sk", session=session)
        source = token_source_factory([
            ecr_entry("user1:pass1", ECR_ENDPOINT),
            ecr_entry("user2:pass2", ECR_ENDPOINT),
            ecr_entry("user3:pass3", ECR_ENDPOINT),
        ])

        report = SyncOrchestrator(source, rancher).run_once()

        assert report.outcomes() == [
            EntryOutcome.UPDATE_ERROR,
            EntryOutcome.DIRECTORY_ERROR,
            EntryOutcome.UPDATED,
        ]
        assert report.results[2].credential_id == "1c1"
        assert session.put.call_count == 2


class TestSyncReport:
    def test_counts(self):
        report = SyncReport(entries_fetched=0)
        assert report.updated == 0
        assert report.failed == 0


class TestRunForever:
    """Tests for the scheduling loop"""

    def test_runs_immediately_then_waits_interval(self, directory, token_source_factory):
        orchestrator = SyncOrchestrator(token_source_factory([]), directory)
        stop_event = MagicMock(spec=threading.Event)
        stop_event.is_set.side_effect = [False, False, True]

        with patch.object(orchestrator, "run_once") as mock_run_once:
            orchestrator.run_forever(interval_seconds=21600, stop_event=stop_event)

        assert mock_run_once.call_count == 2
        stop_event.wait.assert_called_with(21600)

    def test_unexpected_error_does_not_stop_loop(self, directory, token_source_factory):
        orchestrator = SyncOrchestrator(token_source_factory([]), directory)
        stop_event = MagicMock(spec=threading.Event)
        stop_event.is_set.side_effect = [False, False, True]

        with patch.object(orchestrator, "run_once", side_effect=[RuntimeError("boom"), SyncReport()]) as mock_run_once:
            orchestrator.run_forever(interval_seconds=1, stop_event=stop_event)

        assert mock_run_once.call_count == 2

    def test_stops_when_event_already_set(self, directory, token_source_factory):
        orchestrator = SyncOrchestrator(token_source_factory([]), directory)
        stop_event = threading.Event()
        stop_event.set()

        with patch.object(orchestrator, "run_once") as mock_run_once:
            orchestrator.run_forever(stop_event=stop_event)

        mock_run_once.assert_not_called()
