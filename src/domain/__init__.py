"""Domain layer: constants, errors and schemas."""

from .errors import (
    ArtifactMissingError,
    BuildPipelineError,
    ClientInputError,
    ContentError,
    ErrorCodes,
    ExportError,
    IconError,
    ProvisionError,
    ToolError,
)
from .schemas import (
    BuildFailure,
    BuildRequest,
    BuildResult,
    BuildSubmission,
    BuildSuccess,
    InputKind,
    RunLog,
    Stage,
)

__all__ = [
    # errors
    "BuildPipelineError",
    "ClientInputError",
    "ProvisionError",
    "ContentError",
    "IconError",
    "ToolError",
    "ArtifactMissingError",
    "ExportError",
    "ErrorCodes",
    # schemas
    "InputKind",
    "Stage",
    "BuildSubmission",
    "BuildRequest",
    "BuildSuccess",
    "BuildFailure",
    "BuildResult",
    "RunLog",
]
