"""Exception types raised by toolflow."""

from __future__ import annotations


class ToolflowError(Exception):
    """Base class for toolflow errors."""


class ConfigurationError(ToolflowError):
    """Raised when configuration cannot be loaded or is inconsistent."""


class ToolNotFound(ToolflowError, LookupError):
    """A step referenced a tool id that is not registered."""

    def __init__(self, tool_id: str) -> None:
        super().__init__(f"Tool '{tool_id}' is not registered")
        self.tool_id = tool_id


class ToolExecutionError(ToolflowError):
    """A tool invocation failed or timed out."""

    def __init__(self, ordinal: int, tool_id: str, message: str) -> None:
        super().__init__(f"Step {ordinal} ({tool_id}) failed: {message}")
        self.ordinal = ordinal
        self.tool_id = tool_id
        self.message = message


class ToolInputError(ToolflowError, ValueError):
    """A tool was invoked without the input it requires."""


class PersistenceError(ToolflowError):
    """The repository failed to record or read state."""


class InvalidTransition(PersistenceError):
    """An execution status update would move backwards in its lifecycle."""


class WorkflowNotFound(ToolflowError, LookupError):
    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow '{workflow_id}' not found")
        self.workflow_id = workflow_id


class WorkflowAccessDenied(ToolflowError):
    def __init__(self, workflow_id: str, user_id: str) -> None:
        super().__init__(f"User '{user_id}' may not access workflow '{workflow_id}'")
        self.workflow_id = workflow_id
        self.user_id = user_id
