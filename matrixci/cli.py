import os
import subprocess
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from matrixci import executors, loader, matrix, notifiers, repos
from matrixci.config import const
from matrixci.definitions import Repo, Status
from matrixci.exceptions import BadConfig
from matrixci.orchestrator import Pipeline
from matrixci.reporters import Text

__MAX_WIDTH__ = 75
SECRET_PREFIX = "MATRIXCI_SECRET_"


def tell(msg, detail=""):
    "Inform a user about something"
    FIRST_COL = 30
    SECOND_COL = __MAX_WIDTH__ - FIRST_COL
    msg = msg + (" " * FIRST_COL)
    detail = str(detail) + (" " * SECOND_COL)
    lines = [
        msg[:FIRST_COL],
        "|" if msg.strip() else "",
        detail[:SECOND_COL],
    ]
    click.echo(" ".join(lines)[:__MAX_WIDTH__].rstrip(), err=True)


def get_config(path):
    try:
        return loader.load(path)
    except BadConfig as e:
        raise click.ClickException(str(e)) from e


def get_repo(branch):
    """
    Read the repo from git. Outside of a git checkout a branch must be given.
    """
    try:
        return repos.Git.from_env()
    except subprocess.CalledProcessError as e:
        if branch is None:
            raise click.ClickException(
                "Not inside a git repo, please pass --branch"
            ) from e
        return Repo(sha="unknown", branch=branch, remote="", commit_message="")


def get_notifier(kind, repo):
    if kind == "console":
        return notifiers.Console()
    klass = notifiers.Email if kind == "email" else notifiers.Webhook
    try:
        return klass.from_env(repo=repo)
    except KeyError as e:
        raise click.ClickException(
            f"The {kind} notifier needs the environment variable {e.args[0]}"
        ) from e


def get_credentials():
    "Secrets for deploy providers, taken from MATRIXCI_SECRET_* variables."
    return {
        k[len(SECRET_PREFIX) :]: v
        for k, v in os.environ.items()
        if k.startswith(SECRET_PREFIX)
    }


config_argument = click.argument(
    "config", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)


@click.group()
@click.version_option(version=str(const.version), prog_name="matrixci")
def cli():
    "Run matrix pipelines"


@cli.command()
@config_argument
@click.option("--branch", default=None, help="Run as if on this branch.")
@click.option(
    "-j", "--concurrency", type=click.IntRange(min=1), default=None,
    help="How many jobs to run at once.",
)
@click.option("--fail-fast/--no-fail-fast", default=None)
@click.option(
    "--executor", "executor_kind", type=click.Choice(["shell", "docker"]),
    default="shell", show_default=True,
)
@click.option(
    "--notify", "notify_kind", type=click.Choice(["console", "email", "webhook"]),
    default="console", show_default=True,
)
@click.option(
    "--source", type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None, help="Directory copied into every job workspace.",
)
@click.option(
    "--previous", type=click.Choice([s.value for s in (Status.SUCCESS, Status.FAILURE)]),
    default=None, help="Status of the previous run, for `change` notifications.",
)
def run(  # pylint: disable=too-many-arguments
    config, branch, concurrency, fail_fast, executor_kind, notify_kind, source, previous
):
    """
    Expand the matrix in CONFIG and run every job.

    The exit code is 0 only when every job and every triggered deploy passed.
    """
    pipeline_config = get_config(config)
    repo = get_repo(branch)
    source = source if source is not None else Path.cwd()
    if executor_kind == "docker":
        executor = executors.Docker(source=source)
    else:
        executor = executors.Shell(source=source)
    notifier = get_notifier(notify_kind, repo)
    tell("Run pipeline", config)
    with Pipeline(
        pipeline_config,
        executor=executor,
        repo=repo,
        notifier=notifier,
        reporter=Text(),
        concurrency=concurrency,
        fail_fast=fail_fast,
        previous_status=Status(previous) if previous is not None else None,
        credentials=get_credentials(),
        branch=branch,
    ) as pipeline:
        report = pipeline.run()
    tell("Pipeline finished", report.status.value)
    sys.exit(report.exit_code)


@cli.command()
@config_argument
def plan(config):
    """
    Show the jobs CONFIG expands into without running anything.
    """
    pipeline_config = get_config(config)
    try:
        jobs = matrix.validate(pipeline_config)
    except BadConfig as e:
        raise click.ClickException(str(e)) from e
    table = Table(title="matrixci")
    for column in ("#", "Job", "Environment", "Scripts", "Deploy"):
        table.add_column(column)
    for job in jobs:
        rule = job.deploy_rule
        table.add_row(
            str(job.index),
            job.name,
            " ".join(f"{k}={v}" for k, v in job.environment),
            "\n".join(job.scripts),
            f"{rule.action.kind} on {rule.on_branch}" if rule is not None else "",
        )
    Console(width=__MAX_WIDTH__ * 2).print(table)


@cli.command()
@config_argument
def validate(config):
    """
    Check that CONFIG expands into a runnable set of jobs.
    """
    pipeline_config = get_config(config)
    try:
        jobs = matrix.validate(pipeline_config)
    except BadConfig as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"ok: {len(jobs)} jobs")


if __name__ == "__main__":
    cli()
