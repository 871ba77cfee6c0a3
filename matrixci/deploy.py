"""
Deploy providers and the gate that decides whether a job's deploy runs.

Every provider is its own NamedTuple with an `execute(job, context)` method,
so the gate never has to look at provider names.
"""
from typing import NamedTuple, Tuple, Any, Dict

import requests

from matrixci.definitions import (
    DeployOutcome,
    DeployRule,
    ExecutionContext,
    Job,
    JobResult,
    Status,
)
from matrixci.exceptions import BadConfig
from matrixci.logging import logger
from matrixci.runner import run_script


class ActionResult(NamedTuple):
    passed: bool
    output: Tuple[str, ...]


class ScriptDeploy(NamedTuple):
    """
    Deploy by running one more command in the job's workspace.
    """

    script: str
    kind = "script"

    def execute(self, job: Job, context: ExecutionContext) -> ActionResult:
        workspace = context.executor.workspace(job)
        outcome = run_script(self.script, job, workspace, context)
        return ActionResult(passed=outcome.passed, output=outcome.output)


class UploadDeploy(NamedTuple):
    """
    Deploy by uploading a single artifact from the job workspace with an
    HTTP PUT.

    :param path:      File path relative to the job workspace.
    :param url:       Where to PUT the file.
    :param token_env: Name of the credential holding a bearer token.
    """

    path: str
    url: str
    token_env: str = None
    timeout: int = 60
    kind = "upload"

    def execute(self, job: Job, context: ExecutionContext) -> ActionResult:
        artifact = context.executor.workspace(job) / self.path
        headers = {}
        if self.token_env is not None:
            token = context.credential(self.token_env)
            if token is None:
                return ActionResult(False, (f"Missing credential: {self.token_env}",))
            headers["Authorization"] = f"Bearer {token}"
        try:
            with open(artifact, "rb") as fl:
                r = requests.put(
                    self.url, data=fl, headers=headers, timeout=self.timeout
                )
        except (OSError, requests.RequestException) as e:
            return ActionResult(False, (str(e),))
        logger.debug("Artifact uploaded", url=self.url, status_code=r.status_code)
        return ActionResult(
            200 <= r.status_code < 300, (f"PUT {self.url} -> {r.status_code}",)
        )


DeployProvider = ScriptDeploy | UploadDeploy

PROVIDERS = {provider.kind: provider for provider in (ScriptDeploy, UploadDeploy)}


def rule_from_dict(data: Dict[str, Any]) -> DeployRule:
    """
    Build a :class:`~matrixci.definitions.DeployRule` out of a plain dict:

        {"provider": "script", "script": "...", "branch": "master",
         "skip_cleanup": True}
    """
    data = dict(data)
    kind = data.pop("provider", "script")
    if kind not in PROVIDERS:
        raise BadConfig(f"Unknown deploy provider: {kind}")
    if "branch" not in data:
        raise BadConfig("A deploy needs a branch to run on")
    on_branch = str(data.pop("branch"))
    skip_cleanup = bool(data.pop("skip_cleanup", False))
    try:
        action = PROVIDERS[kind](**data)
    except TypeError as e:
        raise BadConfig(f"Bad options for deploy provider {kind}: {e}") from e
    return DeployRule(action=action, on_branch=on_branch, skip_cleanup=skip_cleanup)


def should_deploy(job: Job, result: JobResult, context: ExecutionContext) -> bool:
    return (
        result.status == Status.SUCCESS
        and job.deploy_rule is not None
        and context.branch == job.deploy_rule.on_branch
    )


def maybe_deploy(
    job: Job, result: JobResult, context: ExecutionContext
) -> JobResult:
    """
    Run the job's deploy if the job passed and the branch matches.

    The returned result carries the deploy outcome. A failed deploy never
    changes the job's own status.
    """
    if not should_deploy(job, result, context):
        return result._replace(deploy=DeployOutcome.NOT_TRIGGERED)
    rule = job.deploy_rule
    log = logger.bind(job_name=job.name, branch=context.branch, kind=rule.action.kind)
    log.info("Deploy triggered")
    action = rule.action.execute(job, context)
    outcome = DeployOutcome.SUCCESS if action.passed else DeployOutcome.FAILURE
    if action.passed:
        log.info("Deploy passed")
    else:
        log.error("Deploy failed", output=action.output[-5:])
    return result._replace(
        deploy=outcome,
        deploy_output=action.output,
        workspace_retained=rule.skip_cleanup,
    )
