"""Error types raised by kb-curator."""


class CuratorError(Exception):
    """Base class for all kb-curator errors."""


class ValidationError(CuratorError):
    """Raised for malformed input such as an empty category or a path outside the workspace."""


class NotFoundError(CuratorError):
    """Raised when a note file does not exist."""


class WorkspaceIOError(CuratorError):
    """Raised for filesystem failures other than a missing file."""


class OracleError(CuratorError):
    """Raised when the categorization call fails or returns unusable output."""


class AgentStepLimitError(OracleError):
    """Raised when the categorization agent runs out of steps before finishing."""
