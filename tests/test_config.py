"""Tests for configuration loading."""

import pytest

from wandcast.config import CONFIG_ENV_VAR, WandConfig, load_config, save_config


class TestWandConfig:
    def test_defaults(self):
        config = WandConfig()
        assert config.sample_count == 64
        assert config.threshold == 20.0
        assert config.target_size == 100.0
        assert config.drain_batch == 3

    def test_from_dict_ignores_unknown(self):
        config = WandConfig.from_dict({"threshold": 15.0, "camera_index": 2})
        assert config.threshold == 15.0
        assert not hasattr(config, "camera_index")

    def test_validate_ok(self):
        assert WandConfig().validate() == []

    def test_validate_tuning_warnings(self):
        warnings = WandConfig(sensitivity=-1.0, smoothing=1.0).validate()
        assert len(warnings) == 2

    @pytest.mark.parametrize("kwargs", [
        {"sample_count": 1},
        {"target_size": 0.0},
        {"drain_batch": 0},
    ])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ValueError):
            WandConfig(**kwargs).validate()


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.yml") == WandConfig()

    def test_no_path_no_env(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert load_config() == WandConfig()

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "wand.yml"
        path.write_text("threshold: 12.5\nsensitivity: 0.9\ngestures_file: spells.yml\n")
        config = load_config(path)
        assert config.threshold == 12.5
        assert config.sensitivity == 0.9
        assert config.gestures_file == "spells.yml"
        assert config.sample_count == 64

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "wand.yml"
        path.write_text("")
        assert load_config(path) == WandConfig()

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yml"
        path.write_text("drain_batch: 5\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().drain_batch == 5

    def test_save_and_load(self, tmp_path):
        config = WandConfig(threshold=18.0, smoothing=0.25)
        path = tmp_path / "sub" / "wand.yml"
        save_config(config, path)
        assert load_config(path) == config
