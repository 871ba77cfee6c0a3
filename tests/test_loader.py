from pathlib import Path

import pytest

from matrixci import loader
from matrixci.definitions import NotifyWhen
from matrixci.deploy import ScriptDeploy
from matrixci.exceptions import BadConfig
from matrixci.matrix import validate

EXAMPLE = Path(__file__).parent.parent / "examples" / "matrixci.toml"


def test_example_config_loads():
    config = loader.load(EXAMPLE)
    assert dict(config.base_environment) == {"language": "rust"}
    assert len(config.default_scripts) == 4
    assert config.notification_policy.on_success == NotifyWhen.NEVER
    assert config.notification_policy.on_failure == NotifyWhen.ALWAYS
    jobs = validate(config)
    assert [job.name for job in jobs] == [
        "rust=stable",
        "rust=beta",
        "rust=nightly",
        "master doc to gh-pages",
    ]
    docs = jobs[-1]
    assert docs.scripts == ("cargo doc --no-deps",)
    assert docs.deploy_rule.on_branch == "master"
    assert docs.deploy_rule.skip_cleanup is True
    assert isinstance(docs.deploy_rule.action, ScriptDeploy)


def test_single_script_string_is_allowed():
    config = loader.from_dict({"scripts": "make"})
    assert config.default_scripts == ("make",)


def test_env_values_become_strings():
    config = loader.from_dict({"scripts": ["make"], "include": [{"env": {"N": 1}}]})
    assert validate(config)[0].get_env() == {"N": "1"}


def test_pipeline_wide_deploy():
    config = loader.from_dict(
        {"scripts": ["make"], "deploy": {"script": "ship", "branch": "main"}}
    )
    assert config.deploy.action == ScriptDeploy("ship")


@pytest.mark.parametrize(
    "data",
    [
        {"language": "rust"},
        {"include": {"env": {}}},
        {"include": [{"os": "linux"}]},
        {"scripts": [1, 2]},
        {"env": ["a"]},
        {"notifications": {"on_success": "sometimes"}},
        {"notifications": {"email": "me@example.com"}},
        {"deploy": {"provider": "heroku", "branch": "master"}},
    ],
)
def test_bad_configs_are_rejected(data):
    with pytest.raises(BadConfig):
        loader.from_dict(data)


def test_bad_toml_is_rejected(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("scripts = [", encoding="utf-8")
    with pytest.raises(BadConfig):
        loader.load(path)
