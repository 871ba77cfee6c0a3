import pytest

from matrixci import executors, notifiers, repos
from matrixci.definitions import (
    DeployRule,
    JobOverride,
    NotificationPolicy,
    PipelineConfig,
)
from matrixci.deploy import ScriptDeploy
from matrixci.orchestrator import Pipeline
from matrixci.reporters import Text


def ok():
    "Return a command that will run successfully"
    return "bash -c 'echo success'"


def ex(n=1):
    "Return a command that return the exit code that is provided."
    return f"bash -c 'exit {n}'"


def include(name=None, scripts=None, deploy=None, **env):
    return JobOverride.create(
        name=name,
        environment=env if env else None,
        scripts=scripts,
        deploy=deploy,
    )


def script_deploy(script="publish", branch="master", skip_cleanup=False):
    return DeployRule(
        action=ScriptDeploy(script=script), on_branch=branch, skip_cleanup=skip_cleanup
    )


@pytest.fixture
def executor():
    return executors.Mock()


@pytest.fixture
def notifier():
    return notifiers.Mock()


@pytest.fixture
def repo():
    return repos.Mock.from_env(branch="master")


@pytest.fixture
def pipeline(executor, notifier, repo):
    """
    Build a pipeline around mock collaborators. Any keyword given overrides
    the defaults.
    """

    def make(config: PipelineConfig, **kwargs) -> Pipeline:
        kwargs.setdefault("executor", executor)
        kwargs.setdefault("notifier", notifier)
        kwargs.setdefault("repo", repo)
        kwargs.setdefault("reporter", Text())
        kwargs.setdefault("concurrency", 1)
        kwargs.setdefault("fail_fast", False)
        return Pipeline(config, **kwargs)

    return make


@pytest.fixture
def travis_like():
    "Three toolchains plus a docs job that deploys from master."
    return PipelineConfig.create(
        base_environment={"language": "rust"},
        default_scripts=["cargo test", "cargo test --features preserve_order"],
        matrix_includes=[
            include(rust="stable"),
            include(rust="beta"),
            include(
                name="master doc to gh-pages",
                rust="nightly",
                scripts=["cargo doc --no-deps"],
                deploy=script_deploy("publish-docs", skip_cleanup=True),
            ),
        ],
        notification_policy=NotificationPolicy.create(on_success="never"),
    )
