"""
Process entry point: load config, connect to Rancher, start the liveness
listener and run sync passes forever.

Only three conditions stop the process: invalid configuration, failure to
construct/connect the Rancher client, and failure to bind the liveness port.
"""

import argparse
import signal
import threading
from typing import List, Optional

from ecr_credentials.auth.ecr import EcrTokenSource
from ecr_credentials.config_manager import ConfigManager
from ecr_credentials.error_utils import ConfigValidationError, DirectoryError
from ecr_credentials.liveness import create_liveness_server, start_liveness_server
from ecr_credentials.logging_utils import get_logger, setup_logging
from ecr_credentials.rancher_client import RancherClient
from ecr_credentials.sync import SyncOrchestrator


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Refresh Rancher registry credentials from AWS ECR authorization tokens"
    )
    parser.add_argument("--config", help="Path to config.yaml (default: CONFIG_FILE env var or config.yaml)")
    parser.add_argument("--once", action="store_true", help="Run a single sync pass and exit")
    parser.add_argument("--print-config", action="store_true", help="Log the effective configuration and exit")
    return parser.parse_args(argv)


def build_orchestrator(config: ConfigManager) -> SyncOrchestrator:
    """Create the Rancher client and ECR token source.

    Raises:
        DirectoryError: If the Rancher API cannot be reached with the configured keys
    """
    rancher = RancherClient(
        url=config.get_rancher_url(),
        access_key=config.get_rancher_access_key(),
        secret_key=config.get_rancher_secret_key(),
        timeout=config.get_rancher_timeout(),
    )
    rancher.connect()
    token_source = EcrTokenSource(region=config.get_aws_region())
    return SyncOrchestrator(token_source, rancher, config.get_registry_ids())


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_logging()
    logger = get_logger("ecr_credentials")

    try:
        config = ConfigManager(config_file=args.config, validate=not args.print_config)
    except ConfigValidationError as e:
        logger.error(str(e))
        return 1
    setup_logging(config.get_log_level())

    if args.print_config:
        config.print_config()
        return 0

    try:
        orchestrator = build_orchestrator(config)
    except DirectoryError as e:
        logger.error(f"Unable to create Rancher API client: {e.format_message()}")
        return 1

    if args.once:
        report = orchestrator.run_once()
        logger.info(f"Single pass complete: {report.updated} updated, {report.failed} failed")
        return 0

    try:
        server = create_liveness_server(config.get_listen_port())
    except OSError as e:
        logger.error(f"Error creating health check listener: {e}")
        return 1
    start_liveness_server(server)

    stop_event = threading.Event()

    def _handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, stopping after the current pass")
        stop_event.set()

    signal.signal(signal.SIGTERM, _handle_signal)
    signal.signal(signal.SIGINT, _handle_signal)

    try:
        orchestrator.run_forever(config.get_sync_interval(), stop_event)
    finally:
        server.shutdown()
        server.server_close()
    return 0
