"""Toolflow: ordered tool-chaining workflows with a recorded execution ledger."""

from .compare import Comparison, compare_models
from .contracts import (
    Execution,
    ExecutionStatus,
    ExecutionSummary,
    FailureDetail,
    Step,
    StepOutcome,
    StepResult,
    Workflow,
)
from .engine import WorkflowEngine
from .execute import StepExecutor
from .persistence import get_repository
from .registry import FunctionTool, Tool, ToolRegistry
from .service import WorkflowService
from .tools import build_default_registry

__version__ = "0.1.0"
__all__ = [
    "Comparison",
    "Execution",
    "ExecutionStatus",
    "ExecutionSummary",
    "FailureDetail",
    "FunctionTool",
    "Step",
    "StepExecutor",
    "StepOutcome",
    "StepResult",
    "Tool",
    "ToolRegistry",
    "Workflow",
    "WorkflowEngine",
    "WorkflowService",
    "build_default_registry",
    "compare_models",
    "get_repository",
]
