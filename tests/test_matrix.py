import pytest
from conftest import include, script_deploy

from matrixci.definitions import PipelineConfig
from matrixci.exceptions import ConfigError, DuplicateJobName, EmptyScripts
from matrixci.matrix import env_matrix, expand, synthesize_name, validate


def test_empty_matrix_gives_one_job():
    config = PipelineConfig.create(
        base_environment={"rust": "stable"}, default_scripts=["cargo test"]
    )
    jobs = expand(config)
    assert len(jobs) == 1
    assert jobs[0].name == "default"
    assert jobs[0].get_env() == {"rust": "stable"}
    assert jobs[0].scripts == ("cargo test",)


def test_one_job_per_include_in_order(travis_like):
    jobs = expand(travis_like)
    assert [job.name for job in jobs] == [
        "rust=stable",
        "rust=beta",
        "master doc to gh-pages",
    ]
    assert [job.index for job in jobs] == [0, 1, 2]


def test_overrides_inherit_unspecified_fields(travis_like):
    stable, _, docs = expand(travis_like)
    assert stable.get_env() == {"language": "rust", "rust": "stable"}
    assert stable.scripts == travis_like.default_scripts
    assert stable.deploy_rule is None
    assert docs.deploy_rule is not None


def test_scripts_override_replaces_defaults(travis_like):
    docs = expand(travis_like)[-1]
    assert docs.scripts == ("cargo doc --no-deps",)


def test_pipeline_deploy_is_inherited_unless_overridden():
    pipeline_rule = script_deploy("everyone")
    own_rule = script_deploy("mine")
    config = PipelineConfig.create(
        default_scripts=["make"],
        deploy=pipeline_rule,
        matrix_includes=[include(os="linux"), include(os="mac", deploy=own_rule)],
    )
    linux, mac = expand(config)
    assert linux.deploy_rule == pipeline_rule
    assert mac.deploy_rule == own_rule


def test_explicit_name_is_used_verbatim():
    config = PipelineConfig.create(
        default_scripts=["make"],
        matrix_includes=[include(name="  Docs: to gh-pages  ", os="linux")],
    )
    assert expand(config)[0].name == "  Docs: to gh-pages  "


def test_synthesized_names_skip_base_values_and_sort_keys():
    base = {"language": "rust", "os": "linux"}
    env = {"os": "linux", "rust": "beta", "language": "rust", "arch": "arm"}
    assert synthesize_name(env, base) == "arch=arm rust=beta"


def test_synthesized_name_includes_changed_base_values():
    assert synthesize_name({"os": "mac"}, {"os": "linux"}) == "os=mac"


def test_expansion_is_deterministic(travis_like):
    first = [job.name for job in expand(travis_like)]
    second = [job.name for job in expand(travis_like)]
    assert first == second
    assert expand(travis_like) == expand(travis_like)


def test_duplicate_synthesized_names_fail_validation():
    config = PipelineConfig.create(
        default_scripts=["make"],
        matrix_includes=[include(rust="stable"), include(rust="stable")],
    )
    with pytest.raises(DuplicateJobName) as e:
        validate(config)
    assert e.value.job_name == "rust=stable"


def test_includes_without_env_collide_on_default_name():
    config = PipelineConfig.create(
        default_scripts=["make"], matrix_includes=[include(), include()]
    )
    with pytest.raises(DuplicateJobName):
        validate(config)


def test_no_scripts_anywhere_fails_validation():
    config = PipelineConfig.create(matrix_includes=[include(rust="stable")])
    with pytest.raises(EmptyScripts):
        validate(config)


def test_empty_defaults_are_fine_when_every_override_has_scripts():
    config = PipelineConfig.create(
        matrix_includes=[
            include(rust="stable", scripts=["cargo test"]),
            include(rust="beta", scripts=["cargo test"]),
        ]
    )
    assert len(validate(config)) == 2


def test_explicit_empty_scripts_fail_validation():
    config = PipelineConfig.create(
        default_scripts=["make"], matrix_includes=[include(rust="beta", scripts=[])]
    )
    with pytest.raises(ConfigError):
        validate(config)


def test_validate_returns_the_expanded_jobs(travis_like):
    assert validate(travis_like) == expand(travis_like)


def test_env_matrix_is_easy_to_make():
    overrides = env_matrix(A=[1, 2, 3], B=[5, 6, 7])
    assert len(overrides) == 9
    config = PipelineConfig.create(default_scripts=["make"], matrix_includes=overrides)
    names = [job.name for job in validate(config)]
    assert names[0] == "A=1 B=5"
    assert names[-1] == "A=3 B=7"
