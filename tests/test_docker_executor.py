import docker
import pytest
from docker_mock import Docker as FakeDocker

from matrixci import executors
from matrixci.definitions import Job
from matrixci.exceptions import TriggerFailed


@pytest.fixture
def client(monkeypatch):
    fake = FakeDocker()
    monkeypatch.setattr(docker, "from_env", lambda: fake)
    return fake


@pytest.fixture
def executor(client, tmp_path):
    ex = executors.Docker(image="python:3.11-slim", root=tmp_path)
    ex.setup()
    yield ex
    ex.teardown()


def make_job():
    return Job(name="rust=stable", environment=(), scripts=("cargo test",))


def test_setup_creates_network(client, executor):
    assert client.networks.list(names=[executor.get_net()])


def test_teardown_removes_network(client, tmp_path):
    ex = executors.Docker(root=tmp_path)
    ex.setup()
    ex.teardown()
    assert not client.networks.list(names=[ex.get_net()])


def test_run_command_mounts_workspace(client, executor):
    workspace = executor.workspace(make_job())
    result = executor.run_command("cargo test", {"RUST": "stable"}, workspace)
    assert result.exit_code == 0
    assert result.stdout.strip() == "cargo test"
    run = client.containers.runs[-1]
    assert run.volumes == [f"{workspace}:/matrixci/run"]
    assert run.environment == {"RUST": "stable"}
    assert run.network == executor.get_net()
    assert run.image == "python:3.11-slim"
    assert client.containers.boxes == {}


def test_exit_code_is_reported(client, executor):
    workspace = executor.workspace(make_job())
    assert executor.run_command("exit 3", {}, workspace).exit_code == 3


def test_job_can_choose_image(client, executor):
    workspace = executor.workspace(make_job())
    executor.run_command("true", {"MATRIXCI_IMAGE": "rust:1.75"}, workspace)
    assert client.containers.runs[-1].image == "rust:1.75"


def test_missing_image_is_a_trigger_failure(client, executor):
    workspace = executor.workspace(make_job())
    with pytest.raises(TriggerFailed):
        executor.run_command("true", {"MATRIXCI_IMAGE": "missing:latest"}, workspace)


def test_hanging_container_is_stopped(client, executor):
    workspace = executor.workspace(make_job())
    result = executor.run_command("hang", {}, workspace)
    assert result.exit_code == 124
    assert client.containers.runs[-1].stopped
    assert "Timed out" in result.stderr
