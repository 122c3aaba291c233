"""
Tests for configuration management.
"""
import pytest
from pathlib import Path
from pydantic import ValidationError
from handover_engine.utils.config import (
    load_config,
    EngineConfig,
    RepositoryConfig,
    LearnedParams,
    LoaderParams,
    get_default_config,
)
from handover_engine.utils.exceptions import ConfigurationError

CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


def test_load_distance_config(monkeypatch):
    """Test loading the shipped distance configuration."""
    monkeypatch.setenv("HANDOVER_DATA_DIR", "/data/run1")
    config = load_config(CONFIG_DIR / "distance_handover.yaml")

    assert config.name == "distance-handover"
    assert config.strategy == "distance"
    assert config.repository.source_type == "csv"
    assert config.repository.base_path == Path("/data/run1")
    assert config.repository.get_file_path("cells") == Path("/data/run1/cells.csv")
    assert config.loader.max_record_age_seconds is None


def test_load_learned_config(monkeypatch):
    """Test loading the shipped learned configuration."""
    monkeypatch.setenv("HANDOVER_DATA_DIR", "/data/run1")
    monkeypatch.setenv("HANDOVER_MODEL_PATH", "/models/handover.onnx")
    config = load_config(CONFIG_DIR / "learned_handover.yaml")

    assert config.strategy == "learned"
    assert config.learned.model_path == Path("/models/handover.onnx")
    assert config.learned.decode_policy == "argmax"
    assert config.learned.inference_timeout_seconds == 5.0
    assert config.loader.max_record_age_seconds == 10.0


def test_learned_config_without_model_path(monkeypatch):
    """Test that an unset model path env var fails validation."""
    monkeypatch.setenv("HANDOVER_DATA_DIR", "/data/run1")
    monkeypatch.delenv("HANDOVER_MODEL_PATH", raising=False)

    with pytest.raises(ValidationError):
        load_config(CONFIG_DIR / "learned_handover.yaml")


def test_config_file_not_found():
    """Test error handling when config file doesn't exist."""
    with pytest.raises(FileNotFoundError):
        load_config(CONFIG_DIR / "nonexistent.yaml")


def test_empty_config_file(tmp_path):
    """Test that an empty file yields the defaults."""
    path = tmp_path / "empty.yaml"
    path.write_text("")

    config = load_config(path)
    assert config.strategy == "distance"
    assert config.repository.source_type == "memory"


def test_csv_repository_requires_base_path():
    """Test CSV repository validation."""
    with pytest.raises(ValidationError):
        RepositoryConfig(source_type="csv")

    with pytest.raises(ValidationError):
        RepositoryConfig(source_type="csv", base_path="data", files={"terminals": "t.csv"})


def test_get_file_path_unknown_key():
    """Test unknown file keys are rejected."""
    config = RepositoryConfig(source_type="csv", base_path="data")
    with pytest.raises(KeyError):
        config.get_file_path("measurements")


def test_learned_params_validation():
    """Test validation of learned strategy parameters."""
    params = LearnedParams(model_path="models/m.pt", decode_policy="argmax_with_hold")
    assert params.model_path == Path("models/m.pt")

    # Invalid: unknown decode policy
    with pytest.raises(ValidationError):
        LearnedParams(decode_policy="softmax")

    # Invalid: non-positive timeout
    with pytest.raises(ValidationError):
        LearnedParams(inference_timeout_seconds=0)


def test_loader_params_validation():
    """Test the staleness bound must be positive."""
    assert LoaderParams(max_record_age_seconds=2.5).max_record_age_seconds == 2.5

    with pytest.raises(ValidationError):
        LoaderParams(max_record_age_seconds=-1)


def test_strategy_must_be_enabled():
    """Test the selected strategy must be enabled and configured."""
    with pytest.raises(ValidationError):
        EngineConfig(strategy="learned")

    with pytest.raises(ValidationError):
        EngineConfig(strategy="learned", learned={"enabled": False, "model_path": "m.pt"})

    with pytest.raises(ValidationError):
        EngineConfig(strategy="distance", distance={"enabled": False})

    with pytest.raises(ValidationError):
        EngineConfig(strategy="nearest")


def test_get_default_config():
    """Test default configuration generation."""
    config = get_default_config()

    assert config.name == "distance-handover"
    assert config.strategy == "distance"
    assert config.repository.source_type == "memory"
    assert config.learned.enabled is False


def test_malformed_yaml(tmp_path):
    """Test that unparsable YAML is a configuration error."""
    path = tmp_path / "engine.yaml"
    path.write_text("name: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Malformed YAML"):
        load_config(path)


def test_non_mapping_yaml(tmp_path):
    """Test that a top-level list or scalar is a configuration error."""
    path = tmp_path / "engine.yaml"
    path.write_text("- name: distance-handover\n- strategy: distance\n")

    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(path)

    path.write_text("distance\n")
    with pytest.raises(ConfigurationError):
        load_config(path)
