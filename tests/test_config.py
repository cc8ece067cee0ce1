from pathlib import Path
from typing import Any

import pytest

from stackoverflow_auth.config import DEFAULTS, load_config, resolve_config
from stackoverflow_auth.contracts import ConfigError


@pytest.mark.parametrize("missing", ["api_key", "client_id", "client_secret"])
def test_missing_required_key_is_fatal(stored_config: dict[str, Any], missing: str) -> None:
    del stored_config[missing]
    with pytest.raises(ConfigError) as exc:
        resolve_config(stored_config, environ={})
    assert missing in str(exc.value)


def test_empty_required_value_counts_as_missing(stored_config: dict[str, Any]) -> None:
    stored_config["api_key"] = ""
    with pytest.raises(ConfigError):
        resolve_config(stored_config, environ={})


@pytest.mark.parametrize("stored", [["client_id", "cid"], "client_id=cid", 42])
def test_non_mapping_config_is_rejected(stored: Any) -> None:
    with pytest.raises(ConfigError, match="not a key-value mapping"):
        resolve_config(stored, environ={})


def test_defaults_are_applied(stored_config: dict[str, Any]) -> None:
    config = resolve_config(stored_config, environ={})
    assert config.stackexchange_site == "stackoverflow"
    assert config.filter == "!9YdnSA07B"
    assert config.server_url == "https://api.stackexchange.com"
    assert config.authorize_url == "https://stackexchange.com/oauth"
    assert config.token_url == "https://stackexchange.com/oauth/access_token"
    assert config.redirect_uri == DEFAULTS["redirect_uri"]
    assert config.send_redirect_uri is True
    assert config.uid_field == "account_id"


def test_client_credentials_from_environment() -> None:
    environ = {
        "STACKOVERFLOW_CLIENT_ID": "env-id",
        "STACKOVERFLOW_CLIENT_SECRET": "env-secret",
        "STACKOVERFLOW_API_KEY": "env-key",
    }
    config = resolve_config(None, environ=environ)
    assert config.client_id == "env-id"
    assert config.client_secret == "env-secret"
    assert config.api_key == "env-key"


def test_precedence_environment_then_stored_then_overrides(
    stored_config: dict[str, Any],
) -> None:
    environ = {"STACKOVERFLOW_CLIENT_ID": "env-id"}
    stored_config["filter"] = "stored-filter"
    stored_config["default_scope"] = "read_inbox"

    config = resolve_config(stored_config, {"filter": "override-filter"}, environ=environ)

    # stored beats environment
    assert config.client_id == "cid"
    # overrides beat stored
    assert config.filter == "override-filter"
    assert config.default_scope == "read_inbox"


def test_env_references_are_interpolated() -> None:
    stored = {
        "client_id": "${MY_ID}",
        "client_secret": "${MY_SECRET}",
        "api_key": "plain-key",
    }
    config = resolve_config(stored, environ={"MY_ID": "id-1", "MY_SECRET": "s-1"})
    assert config.client_id == "id-1"
    assert config.client_secret == "s-1"
    assert config.api_key == "plain-key"


def test_unset_env_reference_is_fatal(stored_config: dict[str, Any]) -> None:
    stored_config["client_secret"] = "${NOT_SET}"
    with pytest.raises(ConfigError, match="NOT_SET"):
        resolve_config(stored_config, environ={})


def test_unknown_key_is_rejected(stored_config: dict[str, Any]) -> None:
    stored_config["client_idd"] = "typo"
    with pytest.raises(ConfigError, match="Invalid"):
        resolve_config(stored_config, environ={})


def test_uid_field_must_be_account_id(stored_config: dict[str, Any]) -> None:
    with pytest.raises(ConfigError):
        resolve_config(stored_config, {"uid_field": "user_id"}, environ={})


def test_masked_hides_secrets(stored_config: dict[str, Any]) -> None:
    masked = resolve_config(stored_config, environ={}).masked()
    assert masked["client_secret"] == "****"
    assert masked["api_key"] == "****"
    assert masked["client_id"] == "cid"


class TestLoadConfig:
    def test_loads_section(self, tmp_path: Path) -> None:
        path = tmp_path / "auth.yml"
        path.write_text(
            "stackoverflow:\n"
            "  client_id: ${STACKOVERFLOW_CLIENT_ID}\n"
            "  send_redirect_uri: false\n"
        )
        assert load_config(path) == {
            "client_id": "${STACKOVERFLOW_CLIENT_ID}",
            "send_redirect_uri": False,
        }

    def test_loads_flat_file(self, tmp_path: Path) -> None:
        path = tmp_path / "auth.yml"
        path.write_text("client_id: abc\napi_key: k\n")
        assert load_config(path) == {"client_id": "abc", "api_key": "k"}

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "auth.yml"
        path.write_text("")
        assert load_config(path) == {}

    def test_list_file_is_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "auth.yml"
        path.write_text("- client_id\n- api_key\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_yaml_is_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "auth.yml"
        path.write_text("client_id: [unclosed\n")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(path)

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_path_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "elsewhere.yml"
        path.write_text("client_id: from-env-path\n")
        monkeypatch.setenv("STACKOVERFLOW_AUTH_CONFIG", str(path))
        assert load_config() == {"client_id": "from-env-path"}

    def test_cwd_file_is_optional(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert load_config() == {}

        (tmp_path / "stackoverflow-auth.yml").write_text("client_id: from-cwd\n")
        assert load_config() == {"client_id": "from-cwd"}

    def test_round_trips_through_resolve(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "auth.yml"
        path.write_text(
            "stackoverflow:\n"
            "  client_id: ${STACKOVERFLOW_CLIENT_ID}\n"
            "  client_secret: shh\n"
            "  api_key: k\n"
        )
        monkeypatch.setenv("STACKOVERFLOW_CLIENT_ID", "from-env")
        config = resolve_config(load_config(path))
        assert config.client_id == "from-env"
