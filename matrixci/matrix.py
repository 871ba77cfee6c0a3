"""
Turns a :class:`~matrixci.definitions.PipelineConfig` into concrete jobs.
"""
from itertools import product
from typing import Dict, List, Mapping, Tuple

from matrixci.definitions import Job, JobOverride, PipelineConfig
from matrixci.exceptions import DuplicateJobName, EmptyScripts

DEFAULT_NAME = "default"


def synthesize_name(environment: Mapping[str, str], base: Mapping[str, str]) -> str:
    """
    Build a job name out of the environment values that differ from the base
    environment. Keys are sorted so that the name is stable across runs.
    """
    pairs = [
        f"{key}={environment[key]}"
        for key in sorted(environment)
        if key not in base or base[key] != environment[key]
    ]
    return " ".join(pairs) if pairs else DEFAULT_NAME


def resolve(
    config: PipelineConfig, override: JobOverride, index: int
) -> Job:
    "Merge a single override over the pipeline defaults."
    base = dict(config.base_environment)
    env = dict(base)
    if override.environment is not None:
        env.update(dict(override.environment))
    scripts = (
        config.default_scripts if override.scripts is None else override.scripts
    )
    deploy = config.deploy if override.deploy is None else override.deploy
    name = override.name if override.name is not None else synthesize_name(env, base)
    return Job(
        name=name,
        environment=tuple(env.items()),
        scripts=tuple(scripts),
        deploy_rule=deploy,
        index=index,
    )


def expand(config: PipelineConfig) -> Tuple[Job, ...]:
    """
    Expand the matrix into jobs, keeping the order of `matrix_includes`.

    An empty matrix still yields a single job built from the base
    configuration.
    """
    overrides = config.matrix_includes or (JobOverride(),)
    return tuple(
        resolve(config, override, index) for index, override in enumerate(overrides)
    )


def validate(config: PipelineConfig) -> Tuple[Job, ...]:
    """
    Expand the config and make sure the result can be run.

    Returns the expanded jobs. Raises
    :class:`~matrixci.exceptions.EmptyScripts` or
    :class:`~matrixci.exceptions.DuplicateJobName`.
    """
    jobs = expand(config)
    seen = set()
    for job in jobs:
        if not job.scripts:
            raise EmptyScripts(job.name)
        if job.name in seen:
            raise DuplicateJobName(job.name)
        seen.add(job.name)
    return jobs


def env_matrix(**kwargs: List[str]) -> List[JobOverride]:
    """
    Return a cartesian product of all the provided kwargs as overrides.

        env_matrix(rust=["stable", "beta"], os=["linux"])
    """
    keys = list(sorted(kwargs.keys()))
    overrides = []
    for values in product(*[kwargs[key] for key in keys]):
        env: Dict[str, str] = dict(zip(keys, values))
        overrides.append(JobOverride.create(environment=env))
    return overrides
