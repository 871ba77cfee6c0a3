import os
import tomllib
from typing import NamedTuple
import importlib.metadata
from pathlib import Path


class Version(NamedTuple):
    major: int
    minor: int
    patch: int
    trail: str = None

    def __repr__(self):
        if self.trail:
            return f"{self.major}.{self.minor}.{self.patch}-{self.trail}"
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self):
        return self.__repr__()

    @classmethod
    def parse(cls, inp: str) -> "Version":
        if inp is None or inp == "":
            return None
        trail = None
        major, minor, patch = inp.split(".")
        major = major[1:] if major[0].lower() == "v" else major
        assert major.isdigit()
        assert minor.isdigit()
        if "-" in patch:
            patch, trail = patch.split("-", 1)
            assert patch.isdigit()
        return cls(major=int(major), minor=int(minor), patch=int(patch), trail=trail)


def get_version() -> Version:
    try:
        return Version.parse(importlib.metadata.version("matrixci"))
    except importlib.metadata.PackageNotFoundError:
        try:
            with open(
                (Path(__file__) / "../../pyproject.toml").resolve(),
                "rb",
            ) as fl:
                data = tomllib.load(fl)
            return Version.parse(data["project"]["version"])
        except FileNotFoundError:
            return None


def env_flag(name: str, default: bool = False) -> bool:
    "Read a yes/no style flag from the environment."
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Const(NamedTuple):
    """
    Run wide settings, read once from `MATRIXCI_*` environment variables.
    """

    version: Version = get_version()
    # Overrides whatever branch the repo reports
    branch: str = os.environ.get("MATRIXCI_BRANCH")
    concurrency: int = int(os.environ.get("MATRIXCI_CONCURRENCY", 1))
    fail_fast: bool = env_flag("MATRIXCI_FAIL_FAST")
    # Only the tail of each script's output is kept on the result
    max_output: int = int(os.environ.get("MATRIXCI_MAX_OUTPUT", 4000))
    timeout: int = int(os.environ.get("MATRIXCI_TIMEOUT", 15 * 60))
    workspace_root: str = os.environ.get(
        "MATRIXCI_WORKSPACE_ROOT", "/tmp/matrixci__workspaces"
    )
    log_level: str = os.environ.get("MATRIXCI_LOG_LEVEL", "INFO")
    image: str = os.environ.get("MATRIXCI_IMAGE", "python:3.11-slim")


const = Const()
