"""Image build orchestration.

``cib.build.native`` (docker SDK backend) is imported on demand by the CLI.
"""

from .compose import ComposeBackend, ComposeIntegrationStage
from .errors import BuildFailed, PrepareFailed, PushFailed, StageError, TestFailed
from .orchestrator import ImageBackend, IntegrationStage, Orchestrator
from .units import BuildUnit, expand_tags, plan_units

__all__ = [
    "BuildFailed",
    "BuildUnit",
    "ComposeBackend",
    "ComposeIntegrationStage",
    "ImageBackend",
    "IntegrationStage",
    "Orchestrator",
    "PrepareFailed",
    "PushFailed",
    "StageError",
    "TestFailed",
    "expand_tags",
    "plan_units",
]
