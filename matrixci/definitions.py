"""
This module holds definitions that are used throughout matrixci.

Everything that describes a pipeline is an immutable NamedTuple. The
collaborators that actually do work (executors, repos, notifiers, reporters)
are plain classes that implementations subclass.
"""
import threading
from enum import Enum
from pathlib import Path
from typing import NamedTuple, Any, Dict, Tuple, Mapping, Union
from pendulum import DateTime


# ================
# Statuses
# ================


class Status(Enum):
    """
    Used to define status of :class:`~matrixci.definitions.Job` runs and of
    the pipeline as a whole.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        return self in (Status.SUCCESS, Status.FAILURE, Status.CANCELLED)

    def get_dot(self) -> str:
        if self == Status.SUCCESS:
            return "🟢"
        if self == Status.FAILURE:
            return "🔴"
        if self == Status.CANCELLED:
            return "⚪"
        if self == Status.RUNNING:
            return "🔵"
        return "🟡"


class DeployOutcome(Enum):
    NOT_TRIGGERED = "none"
    SUCCESS = "success"
    FAILURE = "failure"

    def get_dot(self) -> str:
        if self == DeployOutcome.SUCCESS:
            return "🟢"
        if self == DeployOutcome.FAILURE:
            return "🔴"
        return "  "


class PipelineState(Enum):
    """
    The lifecycle of a single pipeline run.
    """

    PENDING = "pending"
    EXPANDING = "expanding"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    DONE = "done"


# Allowed transitions for PipelineState
TRANSITIONS = {
    PipelineState.PENDING: (PipelineState.EXPANDING,),
    PipelineState.EXPANDING: (PipelineState.RUNNING, PipelineState.DONE),
    PipelineState.RUNNING: (PipelineState.AGGREGATING,),
    PipelineState.AGGREGATING: (PipelineState.DONE,),
    PipelineState.DONE: (),
}


class NotifyWhen(Enum):
    ALWAYS = "always"
    ON_FAILURE = "on_failure"
    NEVER = "never"
    CHANGE = "change"

    @classmethod
    def parse(cls, value: Union[str, "NotifyWhen"]) -> "NotifyWhen":
        if isinstance(value, NotifyWhen):
            return value
        return cls(value.strip().lower().replace("-", "_"))


class NotificationPolicy(NamedTuple):
    """
    Decides, per event, whether a notification is suppressed.

    Policy only ever gates output; it has no say in the pipeline status.
    """

    on_success: NotifyWhen = NotifyWhen.ALWAYS
    on_failure: NotifyWhen = NotifyWhen.ALWAYS

    @classmethod
    def create(cls, **kwargs: Any) -> "NotificationPolicy":
        return cls(**{key: NotifyWhen.parse(val) for key, val in kwargs.items()})

    def is_suppressed(self, status: Status, previous: Status = None) -> bool:
        when = self.on_success if status == Status.SUCCESS else self.on_failure
        if when == NotifyWhen.NEVER:
            return True
        if when == NotifyWhen.ON_FAILURE:
            return status == Status.SUCCESS
        if when == NotifyWhen.CHANGE:
            return previous is not None and previous == status
        return False


# ================
# Configuration
# ================


class DeployRule(NamedTuple):
    """
    A deploy step attached to a job.

    :param action:       A deploy provider, see :mod:`matrixci.deploy`.
    :param on_branch:    The deploy only fires when the current branch is
                         exactly this.
    :param skip_cleanup: Ask the executor to keep the job's workspace around
                         after the deploy has run.
    """

    action: "DeployProvider"
    on_branch: str
    skip_cleanup: bool = False


class JobOverride(NamedTuple):
    """
    One entry of the matrix. Any field left as `None` is inherited from the
    :class:`~matrixci.definitions.PipelineConfig`.
    """

    name: str = None
    environment: Tuple[Tuple[str, str], ...] = None
    scripts: Tuple[str, ...] = None
    deploy: DeployRule = None

    @classmethod
    def create(cls, **kwargs: Any) -> "JobOverride":
        env = kwargs.pop("environment", None)
        scripts = kwargs.pop("scripts", None)
        return cls(
            environment=tuple(dict(env).items()) if env is not None else None,
            scripts=tuple(scripts) if scripts is not None else None,
            **kwargs,
        )


class PipelineConfig(NamedTuple):
    """
    Everything needed to expand and run a pipeline.
    """

    base_environment: Tuple[Tuple[str, str], ...] = tuple()
    matrix_includes: Tuple[JobOverride, ...] = tuple()
    default_scripts: Tuple[str, ...] = tuple()
    notification_policy: NotificationPolicy = NotificationPolicy()
    deploy: DeployRule = None
    fast_finish: bool = False

    @classmethod
    def create(cls, **kwargs: Any) -> "PipelineConfig":
        return cls(
            base_environment=tuple(dict(kwargs.pop("base_environment", {})).items()),
            matrix_includes=tuple(kwargs.pop("matrix_includes", tuple())),
            default_scripts=tuple(kwargs.pop("default_scripts", tuple())),
            **kwargs,
        )


class Job(NamedTuple):
    """
    A fully resolved job. It is created by
    :func:`~matrixci.matrix.expand` and never changes afterwards.
    """

    name: str
    environment: Tuple[Tuple[str, str], ...]
    scripts: Tuple[str, ...]
    deploy_rule: DeployRule = None
    index: int = 0

    def get_env(self) -> Dict[str, str]:
        return {key: str(value) for key, value in self.environment}


# ================
# Results
# ================


class CommandResult(NamedTuple):
    exit_code: int
    stdout: str
    stderr: str


class ScriptOutcome(NamedTuple):
    command: str
    exit_code: int
    output: Tuple[str, ...]
    started_at: DateTime
    finished_at: DateTime

    @property
    def passed(self) -> bool:
        return self.exit_code == 0


class JobResult(NamedTuple):
    job_name: str
    outcomes: Tuple[ScriptOutcome, ...]
    status: Status
    started_at: DateTime = None
    finished_at: DateTime = None
    deploy: DeployOutcome = DeployOutcome.NOT_TRIGGERED
    deploy_output: Tuple[str, ...] = tuple()
    workspace_retained: bool = False
    # Set when the executor blew up instead of reporting an exit code
    error: str = None


class ReportEntry(NamedTuple):
    job_name: str
    status: Status
    deploy: DeployOutcome


class ExecutionContext(NamedTuple):
    """
    Per run state handed to the runner and the deploy gate. It is built once
    by the pipeline and never stored globally.

    :param executor:    Where commands run.
    :param branch:      The branch this run is for.
    :param cancel:      Set when the pipeline wants remaining work abandoned.
    :param credentials: Opaque secrets for deploy targets, keyed by name.
    :param max_output:  How many trailing characters of output are kept.
    """

    executor: "Executor"
    branch: str
    cancel: threading.Event
    credentials: Tuple[Tuple[str, str], ...] = tuple()
    max_output: int = 4000

    def credential(self, key: str) -> str:
        return dict(self.credentials).get(key)


class Report(NamedTuple):
    """
    What a pipeline run produced, in the order jobs were expanded.
    """

    entries: Tuple[ReportEntry, ...]
    status: Status
    results: Tuple[JobResult, ...] = tuple()
    error: str = None

    @property
    def exit_code(self) -> int:
        return 0 if self.status == Status.SUCCESS else 1


# ---- ======================
# ---- supporting definitions
# ---- ======================


class Repo:
    """
    Contains information about the current VCS repo.
    """

    def __init__(self, sha: str, branch: str, remote: str, commit_message: str):
        self.sha: str = sha
        self.branch: str = branch
        self.remote: str = remote
        self.commit_message: str = commit_message

    def __repr__(self):
        sha = f"{self.sha}"[:8]
        return f"{self.__class__.__name__} <{sha}: {self.branch}>"

    @classmethod
    def from_env(cls) -> "Repo":
        """
        Creates a :class:`~matrixci.definitions.Repo` instance
        from the environment and repo on disk.
        """
        raise NotImplementedError()


class Executor:
    """
    An executor is something used to run the commands of a job.
    It could be docker / podman / shell etc.
    """

    def setup(self) -> None:
        """
        This function is meant to perform any work that should be done before
        running any jobs.
        """

    def teardown(self) -> None:
        """
        On exit the executor must clean up anything it still holds on to,
        except workspaces that were explicitly retained.
        """

    def workspace(self, job: Job) -> Path:
        """
        Returns the working directory for a job, creating it if needed.
        """
        raise NotImplementedError()

    def run_command(
        self, cmd: str, env: Mapping[str, str], workspace: Path
    ) -> CommandResult:
        """
        Run a single command to completion and return its exit code and
        output.
        """
        raise NotImplementedError()

    def cleanup(self, job: Job) -> None:
        """
        Remove the job's workspace.
        """


class Notifier:
    """
    Something that tells people how the pipeline went.
    It could be console / email / a webhook.
    """

    def notify(self, event: Status, report: str, suppressed: bool) -> None:
        """
        Send a notification. Implementations MUST NOT emit anything when
        `suppressed` is set.
        """
        raise NotImplementedError()

    def setup(self) -> None:
        """
        This function is meant to perform any work that should be done before
        running the pipeline.
        """

    def teardown(self) -> None:
        """
        This function will be called once the pipeline is finished.
        """


class Reporter:
    """
    Something that renders a :class:`~matrixci.definitions.Report`.

    It can be used to generate reports in markdown, plaintext, html etc.
    """

    def render(self, report: Report, sha: str = None) -> str:
        """
        Render a report for the pipeline.
        """
        raise NotImplementedError()
