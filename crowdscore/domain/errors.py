"""Exceptions raised by the domain and application layers."""


class CrowdScoreError(Exception):
    """Base exception. The message is user facing."""
    pass


class ValidationError(CrowdScoreError):
    """Rejected input. Nothing was written."""
    pass


class NotFoundError(CrowdScoreError):
    """Referenced record does not exist."""
    pass


class PermissionDeniedError(CrowdScoreError):
    """Current user may not perform this action."""
    pass


class MergeError(ValidationError):
    """Invalid duplicate merge request."""
    pass
