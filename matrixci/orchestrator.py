"""
Drives a whole pipeline run: expand, dispatch, aggregate, notify.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Tuple

import pendulum
import structlog

from matrixci import deploy, matrix, runner
from matrixci.config import const
from matrixci.definitions import (
    DeployOutcome,
    ExecutionContext,
    Executor,
    Job,
    JobResult,
    Notifier,
    PipelineConfig,
    PipelineState,
    Report,
    ReportEntry,
    Reporter,
    Repo,
    Status,
    TRANSITIONS,
)
from matrixci.exceptions import ConfigError
from matrixci.logging import logger


class Collector:
    """
    Gathers job results from any number of workers. Each job may only report
    once, and results always come back out in expansion order.
    """

    def __init__(self, jobs: Tuple[Job, ...]):
        self.jobs = jobs
        self.__results__: Dict[int, JobResult] = {}
        self.__lock__ = threading.Lock()

    def add(self, job: Job, result: JobResult) -> None:
        with self.__lock__:
            assert job.index not in self.__results__, f"Reported twice: {job.name}"
            self.__results__[job.index] = result

    def is_complete(self) -> bool:
        with self.__lock__:
            return len(self.__results__) == len(self.jobs)

    def results(self) -> Tuple[JobResult, ...]:
        with self.__lock__:
            return tuple(self.__results__[job.index] for job in self.jobs)


class Pipeline:  # pylint: disable=too-many-instance-attributes
    """
    A pipeline takes a :class:`~matrixci.definitions.PipelineConfig`, expands
    it into jobs and runs them.

    :param config:          What to run.
    :param executor:        Runs the commands of each job.
    :param repo:            Provides the branch/sha this run is for.
    :param notifier:        Told about the final status, subject to the
                            config's notification policy.
    :param reporter:        Renders the report that is handed to the notifier.
    :param concurrency:     How many jobs may run at the same time.
    :param fail_fast:       Cancel remaining jobs once one of them fails.
    :param previous_status: Status of the last run on this branch, used by
                            the `change` notification policy.
    :param credentials:     Secrets that deploy providers may ask for.
    :param branch:          Run as if on this branch instead of the repo's.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        config: PipelineConfig,
        *,
        executor: Executor,
        repo: Repo,
        notifier: Notifier,
        reporter: Reporter,
        concurrency: int = None,
        fail_fast: bool = None,
        previous_status: Status = None,
        credentials: Dict[str, str] = None,
        branch: str = None,
    ):
        self.config = config
        self.executor = executor
        self.repo = repo
        self.notifier = notifier
        self.reporter = reporter
        self.concurrency = max(
            1, concurrency if concurrency is not None else const.concurrency
        )
        self.fail_fast = (
            (fail_fast if fail_fast is not None else const.fail_fast)
            or config.fast_finish
        )
        self.previous_status = previous_status
        self.credentials = credentials if credentials is not None else {}
        self.branch = branch
        self.state = PipelineState.PENDING
        self.report: Report = None

    def logging(self):
        """
        Return a logger with information about the current pipeline bound to
        it.
        """
        return logger.bind(pipe_id=id(self), sha=f"{self.repo.sha}"[:8])

    def current_branch(self) -> str:
        "An explicit branch wins over MATRIXCI_BRANCH, which wins over the repo."
        return self.branch or const.branch or self.repo.branch

    def transition(self, state: PipelineState) -> None:
        assert state in TRANSITIONS[self.state], f"{self.state} -> {state}"
        self.logging().debug("Pipeline state", frm=self.state.value, to=state.value)
        self.state = state

    def __enter__(self) -> "Pipeline":
        self.executor.setup()
        self.notifier.setup()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.executor.teardown()
        self.notifier.teardown()
        return False

    def run(self) -> Report:
        """
        Run the pipeline to completion and return its report.

        A :class:`~matrixci.exceptions.ConfigError` ends the run before any
        job starts, with a failed report that has no entries.
        """
        self.transition(PipelineState.EXPANDING)
        try:
            jobs = matrix.validate(self.config)
        except ConfigError as e:
            self.logging().error("Bad config", error=str(e))
            self.transition(PipelineState.DONE)
            return self.finish(
                Report(entries=tuple(), status=Status.FAILURE, error=str(e))
            )
        self.transition(PipelineState.RUNNING)
        context = ExecutionContext(
            executor=self.executor,
            branch=self.current_branch(),
            cancel=threading.Event(),
            credentials=tuple(self.credentials.items()),
            max_output=const.max_output,
        )
        collector = Collector(jobs)
        self.logging().info(
            "Run jobs",
            jobs=len(jobs),
            concurrency=self.concurrency,
            fail_fast=self.fail_fast,
            branch=context.branch,
        )
        if self.concurrency == 1:
            for job in jobs:
                self.run_job(job, context, collector)
        else:
            with ThreadPoolExecutor(
                max_workers=self.concurrency, thread_name_prefix="matrixci"
            ) as pool:
                futures = [
                    pool.submit(self.run_job, job, context, collector) for job in jobs
                ]
                for future in futures:
                    future.result()
        assert collector.is_complete()
        self.transition(PipelineState.AGGREGATING)
        report = self.aggregate(collector.results())
        self.transition(PipelineState.DONE)
        return self.finish(report)

    def run_job(
        self, job: Job, context: ExecutionContext, collector: Collector
    ) -> None:
        """
        Run one job, its deploy gate and its workspace cleanup, then hand the
        result to the collector.
        """
        structlog.contextvars.bind_contextvars(job_name=job.name)
        try:
            if context.cancel.is_set():
                self.logging().info("Job cancelled before start")
                now = pendulum.now(runner.TZ)
                result = JobResult(
                    job_name=job.name,
                    outcomes=tuple(),
                    status=Status.CANCELLED,
                    started_at=now,
                    finished_at=now,
                )
            else:
                result = self.execute(job, context)
            if self.fail_fast and (
                result.status == Status.FAILURE
                or result.deploy == DeployOutcome.FAILURE
            ):
                self.logging().info("Fail fast, cancelling remaining jobs")
                context.cancel.set()
            collector.add(job, result)
        finally:
            structlog.contextvars.unbind_contextvars("job_name")

    def execute(self, job: Job, context: ExecutionContext) -> JobResult:
        """
        Run the job's scripts, its deploy gate and its workspace cleanup.

        Whatever the executor or a deploy provider raises ends up on this
        job's result so that the rest of the pipeline keeps going.
        """
        started_at = pendulum.now(runner.TZ)
        try:
            result = runner.run(job, context)
        except Exception as e:  # pylint: disable=broad-except
            self.logging().exception("Job crashed", error=str(e))
            result = JobResult(
                job_name=job.name,
                outcomes=tuple(),
                status=Status.FAILURE,
                started_at=started_at,
                finished_at=pendulum.now(runner.TZ),
                error=repr(e),
            )
        try:
            result = deploy.maybe_deploy(job, result, context)
        except Exception as e:  # pylint: disable=broad-except
            self.logging().exception("Deploy crashed", error=str(e))
            result = result._replace(
                deploy=DeployOutcome.FAILURE, deploy_output=(repr(e),)
            )
        if result.workspace_retained:
            self.logging().info("Workspace retained")
            return result
        try:
            self.executor.cleanup(job)
        except Exception as e:  # pylint: disable=broad-except
            self.logging().exception("Workspace cleanup failed", error=str(e))
        return result

    def aggregate(self, results: Tuple[JobResult, ...]) -> Report:
        entries = tuple(
            ReportEntry(
                job_name=result.job_name, status=result.status, deploy=result.deploy
            )
            for result in results
        )
        passed = all(
            result.status == Status.SUCCESS
            and result.deploy != DeployOutcome.FAILURE
            for result in results
        )
        return Report(
            entries=entries,
            status=Status.SUCCESS if passed else Status.FAILURE,
            results=results,
        )

    def finish(self, report: Report) -> Report:
        """
        Store the report and tell the notifier about it.
        """
        self.report = report
        suppressed = self.config.notification_policy.is_suppressed(
            report.status, self.previous_status
        )
        text = self.reporter.render(report, sha=self.repo.sha)
        self.logging().info(
            "Pipeline done", status=report.status.value, suppressed=suppressed
        )
        try:
            self.notifier.notify(report.status, text, suppressed)
        except Exception as e:  # pylint: disable=broad-except
            self.logging().exception("Notification failed", error=str(e))
        return report
