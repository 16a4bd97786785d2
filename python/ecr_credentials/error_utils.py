"""
Error taxonomy for the credential sync pass.

Every failure a sync pass can hit maps onto one of the exceptions below. They
carry actionable suggestions so the log line alone is enough to fix the
offending registry or entry.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCategory(Enum):
    """Categories of errors for better error handling"""
    UPSTREAM = "upstream"
    TOKEN = "token"
    DIRECTORY = "directory"
    MATCH = "match"
    CREDENTIAL_STATE = "credential_state"
    UPDATE = "update"
    CONFIGURATION = "configuration"


class CredentialSyncError(Exception):
    """Exception with actionable guidance for operators"""

    category = ErrorCategory.UPSTREAM

    def __init__(self, message: str, category: Optional[ErrorCategory] = None,
                 suggestions: Optional[List[str]] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize sync error

        Args:
            message: Primary error message
            category: Error category, defaults to the class category
            suggestions: List of suggested fixes
            details: Additional context information
        """
        self.message = message
        if category is not None:
            self.category = category
        self.suggestions = suggestions or []
        self.details = details or {}
        super().__init__(message)

    def format_message(self) -> str:
        """Format the complete error message with suggestions"""
        lines = [self.message]

        if self.suggestions:
            lines.append("Suggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        if self.details:
            lines.append("Additional details:")
            for key, value in self.details.items():
                lines.append(f"   {key}: {value}")

        return "\n".join(lines)


class UpstreamError(CredentialSyncError):
    """ECR GetAuthorizationToken failed"""
    category = ErrorCategory.UPSTREAM


class TokenError(CredentialSyncError):
    category = ErrorCategory.TOKEN


class DecodeError(TokenError):
    """Authorization token is not valid base64"""


class FormatError(TokenError):
    """Decoded token or endpoint does not have the expected shape"""


class DirectoryError(CredentialSyncError):
    """Listing registries or credentials from Rancher failed"""
    category = ErrorCategory.DIRECTORY


class RegistryNotFoundError(CredentialSyncError):
    """No configured registry matches the token's origin host"""
    category = ErrorCategory.MATCH


class CredentialStateError(CredentialSyncError):
    category = ErrorCategory.CREDENTIAL_STATE


class NoCredentialError(CredentialStateError):
    """Matched registry has no stored credential"""


class AmbiguousCredentialError(CredentialStateError):
    """Matched registry has more than one stored credential"""


class UpdateError(CredentialSyncError):
    """Writing the new credential values failed"""
    category = ErrorCategory.UPDATE


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""


def create_upstream_error(registry_ids: List[str], error: Exception) -> UpstreamError:
    """Create actionable error for ECR token fetch failures"""
    error_str = str(error).lower()

    suggestions = [
        "Verify AWS credentials are available (env vars, instance profile or IRSA)",
        "Check the IAM policy allows ecr:GetAuthorizationToken",
    ]

    if "throttl" in error_str or "rate exceeded" in error_str:
        suggestions.insert(0, "ECR is throttling requests; the next scheduled pass will retry")

    if registry_ids:
        suggestions.append(f"Verify AWS_ECR_REGISTRY_IDS contains valid account ids: {','.join(registry_ids)}")

    if "region" in error_str:
        suggestions.insert(0, "Set AWS_REGION or aws.region in config.yaml")

    return UpstreamError(
        message="Failed to fetch ECR authorization token",
        suggestions=suggestions,
        details={
            "registry_ids": ",".join(registry_ids) if registry_ids else "<default>",
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )


def create_directory_error(operation: str, url: str, error: Exception) -> DirectoryError:
    """Create actionable error for Rancher API read failures"""
    error_str = str(error).lower()

    suggestions = [
        f"Verify the Rancher API URL is reachable: {url}",
        "Check CATTLE_ACCESS_KEY and CATTLE_SECRET_KEY are valid for this environment",
    ]

    if "401" in error_str or "unauthorized" in error_str:
        suggestions.insert(0, "The API key was rejected; create a new environment API key")

    if "timeout" in error_str or "timed out" in error_str:
        suggestions.insert(0, "Rancher did not answer in time; check server load or raise rancher.timeout")

    return DirectoryError(
        message=f"Rancher API operation failed: {operation}",
        suggestions=suggestions,
        details={
            "operation": operation,
            "url": url,
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )


def create_update_error(credential_id: str, registry_id: str, error: Exception) -> UpdateError:
    """Create actionable error for credential update failures"""
    error_str = str(error).lower()

    suggestions = [
        "Check the API key has write access to registry credentials",
        "The next scheduled pass will retry the update",
    ]

    if "403" in error_str or "forbidden" in error_str:
        suggestions.insert(0, "Use an environment API key with owner or member role")

    return UpdateError(
        message=f"Failed to update registry credential {credential_id}",
        suggestions=suggestions,
        details={
            "credential_id": credential_id,
            "registry_id": registry_id,
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )
