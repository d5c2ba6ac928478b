"""Tests for BoardConfig and load_config."""

import pytest

from fluxr.config import BoardConfig, expand_env_vars, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in ("FLUXR_SUPABASE_URL", "FLUXR_SUPABASE_KEY", "FLUXR_MAX_RETRIES",
                 "FLUXR_VERSIONED_WRITES", "FLUXR_SYNC_STRATEGY", "FLUXR_RETRY_DELAY_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestBoardConfig:
    def test_defaults(self):
        config = BoardConfig()
        assert config.max_retries == 2
        assert config.retry_delay_seconds == 1.0
        assert config.sync_strategy == "local_patch"
        assert config.image_bucket == "screenshots"

    def test_retry_delay_backs_off_and_caps(self):
        config = BoardConfig()
        assert [config.retry_delay(n) for n in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown sync_strategy"):
            BoardConfig(sync_strategy="per_kind")

    def test_negative_retries(self):
        with pytest.raises(ValueError, match="max_retries"):
            BoardConfig(max_retries=-1)


class TestLoadConfig:
    def test_no_file_uses_defaults(self):
        assert load_config() == BoardConfig()

    def test_yaml_with_env_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUPA_KEY", "secret-key")
        path = tmp_path / "board.yaml"
        path.write_text(
            "supabase_url: https://abc.supabase.co\n"
            "supabase_key: ${SUPA_KEY}\n"
            "sync_strategy: resync_bucket\n"
            "max_retries: 4\n"
            "unknown_key: ignored\n"
        )
        config = load_config(path)
        assert config.supabase_url == "https://abc.supabase.co"
        assert config.supabase_key == "secret-key"
        assert config.sync_strategy == "resync_bucket"
        assert config.max_retries == 4

    def test_default_file_in_cwd(self, tmp_path):
        (tmp_path / "fluxr.yaml").write_text("image_bucket: shots\n")
        assert load_config().image_bucket == "shots"

    def test_env_values_are_typed(self, monkeypatch):
        monkeypatch.setenv("FLUXR_MAX_RETRIES", "5")
        monkeypatch.setenv("FLUXR_VERSIONED_WRITES", "true")
        monkeypatch.setenv("FLUXR_RETRY_DELAY_SECONDS", "0.5")
        config = load_config()
        assert config.max_retries == 5
        assert config.versioned_writes is True
        assert config.retry_delay_seconds == 0.5

    def test_file_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FLUXR_MAX_RETRIES", "5")
        path = tmp_path / "board.yaml"
        path.write_text("max_retries: 1\n")
        assert load_config(path).max_retries == 1

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "board.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(path)


class TestExpandEnvVars:
    def test_nested(self, monkeypatch):
        monkeypatch.setenv("HOST", "db.local")
        assert expand_env_vars({"a": ["$HOST", {"b": "${HOST}:5432"}]}) == {
            "a": ["db.local", {"b": "db.local:5432"}]
        }

    def test_missing_var_becomes_empty(self, monkeypatch):
        monkeypatch.delenv("NOPE_NOT_SET", raising=False)
        assert expand_env_vars("x${NOPE_NOT_SET}y") == "xy"

    def test_non_strings_untouched(self):
        assert expand_env_vars(3) == 3
