"""
A docker executor for matrixci.
"""
import uuid
from pathlib import Path
from typing import Mapping

import docker
import requests

from matrixci.config import const
from matrixci.definitions import CommandResult
from matrixci.exceptions import TriggerFailed
from matrixci.executors.shell import Shell


class Docker(Shell):
    """
    Run scripts inside containers. To communicate with docker we use the
    `Python docker sdk <https://docker-py.readthedocs.io/en/stable/client.html>`_.

    Workspaces live on the host exactly like with
    :class:`~matrixci.executors.shell.Shell` and are mounted into every
    container at `/matrixci/run`.

    Using this executor will:
        - Create a separate network for each run
        - Run every script as its own container on that network
        - Clean up the network when the pipeline exits.

    A job can pick its image by setting `MATRIXCI_IMAGE` in its environment.
    """

    mount = "/matrixci/run"

    def __init__(self, *, image: str = None, **kwargs):
        super().__init__(**kwargs)
        self.image = image if image is not None else const.image
        self.docker = docker.from_env()

    def get_net(self) -> str:
        return f"matrixci__net__{self.run_id}"

    def setup(self) -> None:
        super().setup()
        self.create_network()

    def teardown(self) -> None:
        self.delete_network()
        super().teardown()

    def create_network(self) -> None:
        """
        Will create a docker network.

        If it fails to do so in 3 attempts it will raise an
        exception and fail.
        """
        for _ in range(3):
            if len(self.docker.networks.list(names=[self.get_net()])) != 0:
                self.logging().info("Found network", network_name=self.get_net())
                return
            self.docker.networks.create(name=self.get_net(), driver="bridge")
            self.logging().info("Create network", network_name=self.get_net())
        raise TriggerFailed("Cannot create network")

    def delete_network(self) -> None:
        try:
            self.docker.networks.get(self.get_net()).remove()
        except docker.errors.NotFound:
            self.logging().error("Delete network: Not found", netid=self.get_net())

    def run_command(
        self, cmd: str, env: Mapping[str, str], workspace: Path
    ) -> CommandResult:
        image = env.get("MATRIXCI_IMAGE", self.image)
        try:
            container = self.docker.containers.run(
                image=image,
                command=["bash", "-c", cmd],
                environment=dict(env),
                volumes=[f"{workspace}:{self.mount}"],
                working_dir=self.mount,
                network=self.get_net(),
                name=f"matrixci__job__{self.run_id}__{uuid.uuid4().hex[:8]}",
                detach=True,
            )
        except docker.errors.DockerException as e:
            self.logging().exception(e)
            raise TriggerFailed(e) from e
        try:
            try:
                exit_code = int(container.wait(timeout=self.timeout)["StatusCode"])
                timed_out = ""
            except (requests.exceptions.ReadTimeout, requests.exceptions.ConnectionError):
                container.stop(timeout=1)
                exit_code = 124
                timed_out = f"Timed out after {self.timeout} seconds"
            stdout = container.logs(stdout=True, stderr=False).decode(errors="replace")
            stderr = container.logs(stdout=False, stderr=True).decode(errors="replace")
        finally:
            container.remove(v=True, force=True)
        return CommandResult(
            exit_code=exit_code,
            stdout=stdout,
            stderr="\n".join(part for part in (stderr, timed_out) if part),
        )
