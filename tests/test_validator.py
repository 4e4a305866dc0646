import pytest

from cra_client.core.config_model import RawConfig, ResolvedSetting
from cra_client.core.errors import ConfigError, ConfigErrorKind
from cra_client.core.validator import ConfigValidator, parse_allowed_hosts, parse_bool
from cra_client.platform_utils import BuildProfile


def _raw(**values):
    return RawConfig(settings={k: ResolvedSetting(v, f"test {k}") for k, v in values.items()})


def _validate(profile=BuildProfile.RELEASE, **values):
    return ConfigValidator(profile).validate(_raw(**values))


def _kind(profile=BuildProfile.RELEASE, **values):
    with pytest.raises(ConfigError) as excinfo:
        _validate(profile, **values)
    return excinfo.value.kind


def test_valid_config_gets_defaults():
    config = _validate(APP_URL="http://192.168.50.55:3000", ALLOWED_HOSTS="192.168.50.55")

    assert config.app_url == "http://192.168.50.55:3000"
    assert config.app_host == "192.168.50.55"
    assert config.allowed_hosts == frozenset({"192.168.50.55"})
    assert config.window_title == "CRA Client"
    assert (config.window_width, config.window_height) == (1280, 800)
    assert config.min_web_build_hash is None
    assert config.allow_localhost_release is False


def test_enforce_web_build_defaults_follow_profile():
    values = dict(APP_URL="http://192.168.50.55:3000", ALLOWED_HOSTS="192.168.50.55")
    assert _validate(BuildProfile.RELEASE, **values).enforce_web_build is True
    assert _validate(BuildProfile.DEBUG, **values).enforce_web_build is False
    assert _validate(BuildProfile.RELEASE, ENFORCE_WEB_BUILD="false", **values).enforce_web_build is False


def test_missing_app_url_is_rejected():
    assert _kind(ALLOWED_HOSTS="192.168.50.55") is ConfigErrorKind.MISSING_APP_URL


@pytest.mark.parametrize("url", ["ftp://192.168.50.55/", "not a url", "192.168.50.55:3000", "http://"])
def test_invalid_app_url_is_rejected(url):
    assert _kind(APP_URL=url, ALLOWED_HOSTS="192.168.50.55") is ConfigErrorKind.INVALID_APP_URL


@pytest.mark.parametrize("hosts", [None, "", " , ,"])
def test_missing_allowed_hosts_is_rejected(hosts):
    values = {"APP_URL": "http://192.168.50.55:3000"}
    if hosts is not None:
        values["ALLOWED_HOSTS"] = hosts
    assert _kind(**values) is ConfigErrorKind.MISSING_ALLOWED_HOSTS


def test_app_host_must_be_allowlisted_regardless_of_other_fields():
    kind = _kind(
        APP_URL="https://portal.example.com",
        ALLOWED_HOSTS="192.168.50.55",
        WINDOW_TITLE="Portal",
        MIN_WEB_BUILD_HASH="abc123",
    )
    assert kind is ConfigErrorKind.APP_HOST_NOT_ALLOWLISTED


def test_allowlist_error_message_names_url_and_hosts():
    with pytest.raises(ConfigError) as excinfo:
        _validate(APP_URL="https://portal.example.com", ALLOWED_HOSTS="192.168.50.55")
    message = str(excinfo.value)
    assert "https://portal.example.com" in message
    assert "192.168.50.55" in message


def test_allowlist_match_ignores_case_and_port():
    config = _validate(APP_URL="https://Portal.Example.com:8443/app", ALLOWED_HOSTS=" PORTAL.example.com ,other")
    assert config.app_host == "portal.example.com"
    assert config.allowed_hosts == frozenset({"portal.example.com", "other"})


def test_localhost_rejected_in_release_unless_allowed():
    values = dict(APP_URL="http://localhost:3000", ALLOWED_HOSTS="localhost")
    assert _kind(**values) is ConfigErrorKind.LOCALHOST_NOT_ALLOWED_IN_RELEASE

    config = _validate(ALLOW_LOCALHOST_RELEASE="true", **values)
    assert config.app_host == "localhost"
    assert config.allow_localhost_release is True


@pytest.mark.parametrize(
    "url,host",
    [
        ("http://127.0.0.1:3000", "127.0.0.1"),
        ("http://[::1]:3000", "::1"),
        ("http://LOCALHOST", "localhost"),
        ("http://tauri.localhost", "tauri.localhost"),
    ],
)
def test_loopback_forms_are_all_guarded(url, host):
    assert _kind(APP_URL=url, ALLOWED_HOSTS=host) is ConfigErrorKind.LOCALHOST_NOT_ALLOWED_IN_RELEASE


def test_localhost_allowed_in_debug_profile():
    config = _validate(BuildProfile.DEBUG, APP_URL="http://localhost:3000", ALLOWED_HOSTS="localhost")
    assert config.app_url == "http://localhost:3000"


def test_checks_run_in_order():
    # Missing allowlist is reported before the localhost guard
    assert _kind(APP_URL="http://localhost:3000") is ConfigErrorKind.MISSING_ALLOWED_HOSTS
    # Localhost guard is reported before the allowlist membership check
    assert _kind(APP_URL="http://localhost:3000", ALLOWED_HOSTS="other") is (
        ConfigErrorKind.LOCALHOST_NOT_ALLOWED_IN_RELEASE
    )


def test_min_hash_is_lower_cased():
    config = _validate(
        APP_URL="http://192.168.50.55:3000",
        ALLOWED_HOSTS="192.168.50.55",
        MIN_WEB_BUILD_HASH="AACB669",
    )
    assert config.min_web_build_hash == "aacb669"


@pytest.mark.parametrize(
    "key,value",
    [
        ("MIN_WEB_BUILD_HASH", "not-hex"),
        ("WINDOW_WIDTH", "wide"),
        ("WINDOW_HEIGHT", "-5"),
        ("ENFORCE_WEB_BUILD", "maybe"),
        ("ALLOW_LOCALHOST_RELEASE", "sure"),
    ],
)
def test_invalid_typed_settings_are_rejected(key, value):
    values = {"APP_URL": "http://192.168.50.55:3000", "ALLOWED_HOSTS": "192.168.50.55", key: value}
    with pytest.raises(ConfigError) as excinfo:
        _validate(**values)
    assert excinfo.value.kind is ConfigErrorKind.INVALID_SETTING
    assert key in str(excinfo.value)
    assert value in str(excinfo.value)


def test_numeric_window_size_is_truncated():
    config = _validate(
        APP_URL="http://192.168.50.55:3000",
        ALLOWED_HOSTS="192.168.50.55",
        WINDOW_WIDTH="1440.0",
        WINDOW_HEIGHT="900",
    )
    assert (config.window_width, config.window_height) == (1440, 900)


def test_validation_diagnostics_are_recorded():
    notes = []
    ConfigValidator(BuildProfile.DEBUG).validate(
        _raw(APP_URL="http://192.168.50.55:3000", ALLOWED_HOSTS="b.example,192.168.50.55"), notes
    )
    assert "release_localhost_guard=debug-skip" in notes
    assert "resolved_allowed_hosts=192.168.50.55,b.example" in notes


def test_parse_helpers():
    assert parse_bool("Yes") is True
    assert parse_bool("0") is False
    assert parse_bool("nope") is None
    assert parse_allowed_hosts("A.example, ,b.example,") == frozenset({"a.example", "b.example"})


def test_allowlist_entries_with_ports_match_app_host():
    config = _validate(APP_URL="http://192.168.50.55:3000", ALLOWED_HOSTS="192.168.50.55:3000, [FD00::5]:8443, ::1")
    assert config.app_host == "192.168.50.55"
    assert config.allowed_hosts == frozenset({"192.168.50.55", "fd00::5", "::1"})
