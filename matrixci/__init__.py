"""
Expand a job matrix, run every job fail-fast and deploy from the jobs that
are allowed to.
"""
from matrixci.definitions import (
    DeployOutcome,
    DeployRule,
    Job,
    JobOverride,
    NotificationPolicy,
    NotifyWhen,
    PipelineConfig,
    Status,
)
from matrixci.deploy import ScriptDeploy, UploadDeploy
from matrixci.matrix import env_matrix, expand, validate
from matrixci.orchestrator import Pipeline

__all__ = [
    "DeployOutcome",
    "DeployRule",
    "Job",
    "JobOverride",
    "NotificationPolicy",
    "NotifyWhen",
    "PipelineConfig",
    "Status",
    "ScriptDeploy",
    "UploadDeploy",
    "env_matrix",
    "expand",
    "validate",
    "Pipeline",
]
