"""
A mock executor that actually does not run anything.
"""
import threading
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from matrixci.definitions import Executor, Job, CommandResult
from matrixci.exceptions import TriggerFailed
from matrixci.logging import logger


class Mock(Executor):
    """
    Pretend to run commands.

    Every command passes unless it is listed in `exit_codes`. Commands listed
    in `untriggerable` raise :class:`~matrixci.exceptions.TriggerFailed`.
    Whatever was run is remembered in order so tests can look at it.
    """

    def __init__(
        self,
        *,
        exit_codes: Dict[str, int] = None,
        outputs: Dict[str, str] = None,
        untriggerable: List[str] = None,
        on_run=None,
        root: Path = None,
    ):
        self.exit_codes = exit_codes if exit_codes is not None else {}
        self.outputs = outputs if outputs is not None else {}
        self.untriggerable = untriggerable if untriggerable is not None else []
        self.on_run = on_run
        self.root = Path(root) if root is not None else Path("/nonexistent/matrixci")
        self.__log__: List[Tuple[str, str, Dict[str, str]]] = []
        self.cleaned: List[str] = []
        self.is_setup = False
        self.is_torn_down = False
        self.__lock__ = threading.Lock()

    def logging(self):
        return logger.bind(executor="mock")

    def setup(self) -> None:
        self.is_setup = True

    def teardown(self) -> None:
        self.is_torn_down = True

    def workspace(self, job: Job) -> Path:
        return self.root / job.name

    def run_command(
        self, cmd: str, env: Mapping[str, str], workspace: Path
    ) -> CommandResult:
        with self.__lock__:
            self.__log__.append((workspace.name, cmd, dict(env)))
        self.logging().debug("Run command", command=cmd, workspace=str(workspace))
        if self.on_run is not None:
            self.on_run(cmd, env, workspace)
        if cmd in self.untriggerable:
            raise TriggerFailed(f"Cannot start: {cmd}")
        return CommandResult(
            exit_code=self.exit_codes.get(cmd, 0),
            stdout=self.outputs.get(cmd, "fake logs"),
            stderr="",
        )

    def cleanup(self, job: Job) -> None:
        with self.__lock__:
            self.cleaned.append(job.name)

    def commands(self, job_name: str = None) -> List[str]:
        "Commands that were run, optionally only for one job."
        return [
            cmd for name, cmd, _ in self.__log__ if job_name is None or name == job_name
        ]

    def get_env(self, job_name: str) -> Dict[str, str]:
        for name, _, env in self.__log__:
            if name == job_name:
                return env
        return {}
