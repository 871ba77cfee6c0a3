"""
Read a :class:`~matrixci.definitions.PipelineConfig` from a TOML file or a
plain dictionary.
"""
import tomllib
from pathlib import Path
from typing import Any, Dict

from matrixci.definitions import JobOverride, NotificationPolicy, PipelineConfig
from matrixci.deploy import rule_from_dict
from matrixci.exceptions import BadConfig

TOP_LEVEL_KEYS = {"env", "include", "scripts", "notifications", "deploy", "fast_finish"}
INCLUDE_KEYS = {"name", "env", "scripts", "deploy"}


def __scripts__(value: Any, where: str):
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise BadConfig(f"{where}: scripts must be a list of strings")
    return tuple(value)


def __env__(value: Any, where: str) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise BadConfig(f"{where}: env must be a table")
    return {str(key): str(val) for key, val in value.items()}


def override_from_dict(data: Dict[str, Any], where: str = "include") -> JobOverride:
    unknown = set(data) - INCLUDE_KEYS
    if unknown:
        raise BadConfig(f"{where}: unknown keys {sorted(unknown)}")
    return JobOverride.create(
        name=str(data["name"]) if "name" in data else None,
        environment=__env__(data["env"], where) if "env" in data else None,
        scripts=__scripts__(data["scripts"], where) if "scripts" in data else None,
        deploy=rule_from_dict(data["deploy"]) if "deploy" in data else None,
    )


def from_dict(data: Dict[str, Any]) -> PipelineConfig:
    """
    Build a config from a dictionary shaped like the TOML layout.
    """
    unknown = set(data) - TOP_LEVEL_KEYS
    if unknown:
        raise BadConfig(f"Unknown keys {sorted(unknown)}")
    includes = data.get("include", [])
    if not isinstance(includes, list):
        raise BadConfig("include must be a list of tables")
    try:
        policy = NotificationPolicy.create(**data.get("notifications", {}))
    except (TypeError, ValueError, AttributeError) as e:
        raise BadConfig(f"Bad notifications: {e}") from e
    return PipelineConfig.create(
        base_environment=__env__(data.get("env", {}), "env"),
        matrix_includes=[
            override_from_dict(include, f"include[{i}]")
            for i, include in enumerate(includes)
        ],
        default_scripts=__scripts__(data.get("scripts", []), "scripts"),
        notification_policy=policy,
        deploy=rule_from_dict(data["deploy"]) if "deploy" in data else None,
        fast_finish=bool(data.get("fast_finish", False)),
    )


def load(path: Path) -> PipelineConfig:
    "Load a config from a TOML file on disk."
    with open(path, "rb") as fl:
        try:
            data = tomllib.load(fl)
        except tomllib.TOMLDecodeError as e:
            raise BadConfig(f"{path}: {e}") from e
    return from_dict(data)
