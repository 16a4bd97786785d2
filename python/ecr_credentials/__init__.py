"""Refreshes Rancher registry credentials from AWS ECR authorization tokens."""

__version__ = "1.0.0"
