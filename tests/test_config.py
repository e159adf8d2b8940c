import pytest

from leadgen.config import load_sender_profile, load_settings
from leadgen.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LEADGEN_CONFIG", "LEADGEN_MODEL", "LEADGEN_DB_PATH", "LEADGEN_AUDIT_LOG_URL"):
        monkeypatch.delenv(name, raising=False)


def test_load_settings_from_yaml(tmp_path):
    path = tmp_path / "pipeline.yaml"
    path.write_text(
        "model: gemini-test\n"
        "retry:\n"
        "  semantic_retries: 5\n"
        "research:\n"
        "  stagger_delay: 0.5\n"
    )

    settings = load_settings(path)

    assert settings.model == "gemini-test"
    assert settings.retry.semantic_retries == 5
    assert settings.retry.transport_retries == 3
    assert settings.research.stagger_delay == 0.5
    assert settings.research.progress_end == 95


def test_environment_overrides(tmp_path, monkeypatch):
    path = tmp_path / "pipeline.yaml"
    path.write_text("model: gemini-test\n")
    monkeypatch.setenv("LEADGEN_MODEL", "gemini-override")
    monkeypatch.setenv("LEADGEN_AUDIT_LOG_URL", "https://example.com/log")

    settings = load_settings(path)

    assert settings.model == "gemini-override"
    assert settings.audit_log_url == "https://example.com/log"


@pytest.mark.parametrize("content", ["model: [unclosed", "- just\n- a list\n", "retry:\n  transport_retries: -1\n"])
def test_bad_config_raises(tmp_path, content):
    path = tmp_path / "pipeline.yaml"
    path.write_text(content)

    with pytest.raises(ConfigurationError):
        load_settings(path)


def test_missing_explicit_config_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "nope.yaml")


def test_sender_profile(tmp_path):
    path = tmp_path / "sender.yaml"
    path.write_text('name: Harris\ntitle: ""\ncompany_name: RICE AI\n')

    sender = load_sender_profile(path)

    assert sender.supplied_fields() == [("Name", "Harris"), ("Company", "RICE AI")]
