"""
Runs the scripts of a single job.
"""
from pathlib import Path
from typing import List

import pendulum

from matrixci.definitions import (
    ExecutionContext,
    Job,
    JobResult,
    ScriptOutcome,
    Status,
)
from matrixci.exceptions import TriggerFailed
from matrixci.logging import logger
from matrixci.reporters import clean_logs

TZ = "UTC"


def run_script(
    cmd: str, job: Job, workspace: Path, context: ExecutionContext
) -> ScriptOutcome:
    """
    Run one command for a job and capture what it printed.

    A command that could not even be started is recorded as exit code -1.
    """
    started_at = pendulum.now(TZ)
    try:
        result = context.executor.run_command(cmd, job.get_env(), workspace)
        exit_code = result.exit_code
        output = "\n".join(part for part in (result.stdout, result.stderr) if part)
    except TriggerFailed as e:
        logger.error("Trigger failed", job_name=job.name, command=cmd, error=str(e))
        exit_code, output = -1, str(e)
    return ScriptOutcome(
        command=cmd,
        exit_code=exit_code,
        output=tuple(clean_logs(output, context.max_output)),
        started_at=started_at,
        finished_at=pendulum.now(TZ),
    )


def run(job: Job, context: ExecutionContext) -> JobResult:
    """
    Execute `job.scripts` strictly in order.

    The first failing script ends the job with FAILURE and nothing after it
    is run. If the pipeline asks for cancellation before a script starts the
    job ends as CANCELLED.
    """
    log = logger.bind(job_name=job.name, branch=context.branch)
    started_at = pendulum.now(TZ)
    outcomes: List[ScriptOutcome] = []
    status = Status.SUCCESS
    workspace = context.executor.workspace(job)
    for cmd in job.scripts:
        if context.cancel.is_set():
            log.info("Job cancelled", ran=len(outcomes), total=len(job.scripts))
            status = Status.CANCELLED
            break
        log.info("Run script", command=cmd)
        outcome = run_script(cmd, job, workspace, context)
        outcomes.append(outcome)
        if not outcome.passed:
            log.error("Script failed", command=cmd, exit_code=outcome.exit_code)
            status = Status.FAILURE
            break
    log.info("Job finished", status=status.value)
    return JobResult(
        job_name=job.name,
        outcomes=tuple(outcomes),
        status=status,
        started_at=started_at,
        finished_at=pendulum.now(TZ),
    )
