#!/usr/bin/env python3
"""
Configuration Manager for the ECR credential refresher

This module handles loading and managing configuration from config.yaml
and environment variables. Environment variables win over the file.
"""

import logging
import os
import re
from typing import Any, Dict, List, Optional

import yaml

from ecr_credentials.error_utils import ConfigValidationError
from ecr_credentials.logging_utils import redact

AWS_ACCOUNT_ID_RE = re.compile(r"^\d{12}$")


class ConfigManager:
    """Manages configuration for the ECR credential refresher"""

    def __init__(self, config_file: str = None, validate: bool = True):
        """Initialize ConfigManager

        Args:
            config_file: Path to configuration YAML file (defaults to CONFIG_FILE env var or config.yaml)
            validate: If True, validate configuration on initialization
        """
        if config_file is None:
            config_file = os.environ.get("CONFIG_FILE", "config.yaml")
        self.config_file = config_file
        self.config = self._load_config()

        if validate:
            self.validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file with defaults"""
        default_config = {
            "rancher": {"url": "", "access_key": "", "secret_key": "", "timeout": 30},
            "aws": {"region": None, "registry_ids": []},
            "liveness": {"port": 8080},
            "sync": {"interval_seconds": 6 * 60 * 60},
            "logging": {"level": "INFO"},
        }

        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, "r") as f:
                    user_config = yaml.safe_load(f) or {}
                if not isinstance(user_config, dict):
                    raise ConfigValidationError(
                        f"Config file {self.config_file} must contain a mapping, got {type(user_config).__name__}"
                    )
                return self._merge_config(default_config, user_config)
            else:
                logging.debug(f"Config file {self.config_file} not found, using defaults and environment")
                return default_config
        except (OSError, yaml.YAMLError) as e:
            logging.error(f"Error loading config file: {e}")
            return default_config

    def _merge_config(self, default: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge user config with defaults"""
        result = default.copy()
        for key, value in user.items():
            if key in result and isinstance(result[key], dict):
                if not isinstance(value, dict):
                    raise ConfigValidationError(f"Config section '{key}' must be a mapping, got {type(value).__name__}")
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    # Rancher configuration
    def get_rancher_url(self) -> str:
        """Get Rancher API URL from environment or config"""
        return os.environ.get("CATTLE_URL") or self.config["rancher"]["url"] or ""

    def get_rancher_access_key(self) -> str:
        return os.environ.get("CATTLE_ACCESS_KEY") or self.config["rancher"]["access_key"] or ""

    def get_rancher_secret_key(self) -> str:
        return os.environ.get("CATTLE_SECRET_KEY") or self.config["rancher"]["secret_key"] or ""

    def get_rancher_timeout(self) -> float:
        """Get Rancher request timeout from config, with type coercion"""
        timeout = self.config["rancher"]["timeout"]
        try:
            return float(timeout)
        except (ValueError, TypeError):
            raise ConfigValidationError(
                f"rancher.timeout must be a number, got: {timeout} (type: {type(timeout).__name__})"
            )

    # AWS configuration
    def get_aws_region(self) -> Optional[str]:
        """Get AWS region; None lets boto3 resolve it"""
        return (
            os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
            or self.config["aws"]["region"]
            or None
        )

    def get_registry_ids(self) -> List[str]:
        """Get ECR registry ids from AWS_ECR_REGISTRY_IDS (comma-separated) or config"""
        raw = os.environ.get("AWS_ECR_REGISTRY_IDS")
        if raw is None:
            raw = self.config["aws"]["registry_ids"] or []
        if isinstance(raw, str):
            raw = raw.split(",")
        return [str(registry_id).strip() for registry_id in raw if str(registry_id).strip()]

    # Liveness configuration
    def get_listen_port(self) -> int:
        """Get liveness port from environment or config, with type coercion"""
        port = os.environ.get("LISTEN_PORT") or self.config["liveness"]["port"]
        try:
            return int(port)
        except (ValueError, TypeError):
            raise ConfigValidationError(f"listen port must be an integer, got: {port} (type: {type(port).__name__})")

    # Sync configuration
    def get_sync_interval(self) -> float:
        interval = os.environ.get("SYNC_INTERVAL_SECONDS") or self.config["sync"]["interval_seconds"]
        try:
            return float(interval)
        except (ValueError, TypeError):
            raise ConfigValidationError(
                f"sync.interval_seconds must be a number, got: {interval} (type: {type(interval).__name__})"
            )

    def get_log_level(self) -> str:
        """Get log level name; unknown names fall back to INFO"""
        level = str(os.environ.get("LOG_LEVEL") or self.config["logging"]["level"] or "INFO").upper()
        if not isinstance(logging.getLevelName(level), int):
            logging.warning(f"Unknown log level '{level}', using INFO")
            return "INFO"
        return level

    def validate_config(self) -> None:
        """Validate configuration values

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        errors = []
        warnings = []

        url = self.get_rancher_url()
        if not url or not url.strip():
            errors.append("Rancher URL is required (CATTLE_URL or rancher.url)")
        elif not url.startswith(("http://", "https://")):
            errors.append(f"Rancher URL '{url}' must start with http:// or https://")

        if not self.get_rancher_access_key() or not self.get_rancher_secret_key():
            warnings.append("Rancher access key or secret key is empty; API calls will be unauthenticated")

        try:
            port = self.get_listen_port()
            if port < 1 or port > 65535:
                errors.append(f"Listen port must be an integer between 1 and 65535, got: {port}")
        except ConfigValidationError as e:
            errors.append(str(e))

        try:
            if self.get_sync_interval() <= 0:
                errors.append("sync.interval_seconds must be positive")
        except ConfigValidationError as e:
            errors.append(str(e))

        try:
            if self.get_rancher_timeout() <= 0:
                errors.append("rancher.timeout must be positive")
        except ConfigValidationError as e:
            errors.append(str(e))

        for registry_id in self.get_registry_ids():
            if not AWS_ACCOUNT_ID_RE.match(registry_id):
                warnings.append(f"Registry id '{registry_id}' does not look like a 12-digit AWS account id")

        for warning in warnings:
            logging.warning(f"Configuration warning: {warning}")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ConfigValidationError(error_msg)

    def print_config(self):
        """Log the effective configuration with secrets redacted"""
        registry_ids = self.get_registry_ids()
        logging.info("Effective configuration:")
        logging.info(f"  Rancher URL: {self.get_rancher_url() or '<unset>'}")
        logging.info(f"  Rancher access key: {self.get_rancher_access_key() or '<unset>'}")
        logging.info(f"  Rancher secret key: {redact(self.get_rancher_secret_key())}")
        logging.info(f"  Rancher timeout: {self.config['rancher']['timeout']}s")
        logging.info(f"  AWS region: {self.get_aws_region() or '<boto3 default>'}")
        logging.info(f"  ECR registry ids: {','.join(registry_ids) if registry_ids else '<default>'}")
        logging.info(f"  Liveness port: {os.environ.get('LISTEN_PORT') or self.config['liveness']['port']}")
        logging.info(f"  Sync interval: {os.environ.get('SYNC_INTERVAL_SECONDS') or self.config['sync']['interval_seconds']}s")
