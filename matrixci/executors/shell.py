"""
Run jobs as plain shell commands on the host.
"""
import os
import shutil
import subprocess
import threading
import uuid
from pathlib import Path
from typing import Mapping

from matrixci import clean
from matrixci.config import const
from matrixci.definitions import Executor, Job, CommandResult
from matrixci.exceptions import TriggerFailed
from matrixci.logging import logger


class Shell(Executor):
    """
    Run each script with `bash -c` inside a per job workspace.

    Using this executor will:
        - Create a separate directory for each run under `root`.
        - Copy `source` (usually the repo checkout) into every job's workspace.
        - Remove job workspaces once the pipeline is done with them.

    :param source:  Directory to copy into each workspace. Empty workspaces are
                    created when this is `None`.
    :param root:    Where run directories are created.
    :param timeout: Seconds a single script may take before it is killed.
    """

    def __init__(self, *, source: Path = None, root: Path = None, timeout: int = None):
        self.run_id = uuid.uuid4().hex[:12]
        self.source = Path(source) if source is not None else None
        self.root = Path(root if root is not None else const.workspace_root)
        self.timeout = timeout if timeout is not None else const.timeout
        self.__lock__ = threading.Lock()

    def logging(self):
        """
        Returns a logging instance that has executor specific
        information bound to it.
        """
        return logger.bind(run_id=self.run_id, root=str(self.root))

    def get_run_dir(self) -> Path:
        return self.root / f"matrixci__run__{self.run_id}"

    def setup(self) -> None:
        self.get_run_dir().mkdir(parents=True, exist_ok=True)
        self.logging().debug("Run directory created")

    def teardown(self) -> None:
        run_dir = self.get_run_dir()
        if run_dir.exists() and not any(run_dir.iterdir()):
            run_dir.rmdir()
        self.logging().debug("Executor teardown done")

    def workspace_name(self, job: Job) -> str:
        "Cleaned names can collide, the expansion index keeps them apart."
        return f"{job.index:03d}-{clean.name(job.name)}"

    def workspace(self, job: Job) -> Path:
        path = self.get_run_dir() / self.workspace_name(job)
        with self.__lock__:
            if not path.exists():
                if self.source is not None:
                    shutil.copytree(self.source, path, symlinks=True)
                else:
                    path.mkdir(parents=True)
                self.logging().debug("Workspace created", job_name=job.name)
        return path

    def run_command(
        self, cmd: str, env: Mapping[str, str], workspace: Path
    ) -> CommandResult:
        full_env = dict(os.environ)
        full_env.update(env)
        try:
            proc = subprocess.run(
                ["bash", "-c", cmd],
                cwd=str(workspace),
                env=full_env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            stdout = e.stdout.decode() if isinstance(e.stdout, bytes) else e.stdout
            return CommandResult(
                exit_code=124,
                stdout=stdout or "",
                stderr=f"Timed out after {self.timeout} seconds",
            )
        except OSError as e:
            raise TriggerFailed(e) from e
        return CommandResult(
            exit_code=proc.returncode, stdout=proc.stdout, stderr=proc.stderr
        )

    def cleanup(self, job: Job) -> None:
        path = self.get_run_dir() / self.workspace_name(job)
        shutil.rmtree(path, ignore_errors=True)
        self.logging().debug("Workspace removed", job_name=job.name)
