import pytest

from rtlink.config import DEFAULT_LOCAL_SOCKET_PATH, ClientConfig, load_config

ENV_VARS = [
    "RTLINK_CONFIG",
    "RTLINK_LOCAL_SOCKET",
    "RTLINK_PING_INTERVAL",
    "RTLINK_PING_TIMEOUT",
    "RTLINK_OPEN_TIMEOUT",
    "RTLINK_LOG_LEVEL",
    "RTLINK_FAIL_PENDING_ON_CLOSE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_file_or_env():
    config = load_config()

    assert config == ClientConfig()
    assert config.local_socket_path == DEFAULT_LOCAL_SOCKET_PATH
    assert config.fail_pending_on_close is False


def test_yaml_file_overrides_defaults(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "local_socket_path: /run/rtlink.sock\n"
        "ping_interval: 5\n"
        "ping_timeout: null\n"
        "fail_pending_on_close: true\n"
    )

    config = load_config(path)

    assert config.local_socket_path == "/run/rtlink.sock"
    assert config.ping_interval == 5.0
    assert config.ping_timeout is None
    assert config.fail_pending_on_close is True


def test_default_file_in_working_directory_is_picked_up(tmp_path):
    (tmp_path / "rtlink.yaml").write_text("log_level: DEBUG\n")

    assert load_config().log_level == "DEBUG"


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "elsewhere.yaml"
    path.write_text("open_timeout: 2.5\n")
    monkeypatch.setenv("RTLINK_CONFIG", str(path))

    assert load_config().open_timeout == 2.5


def test_environment_beats_file(tmp_path, monkeypatch):
    path = tmp_path / "rtlink.yaml"
    path.write_text("ping_interval: 5\nfail_pending_on_close: false\n")
    monkeypatch.setenv("RTLINK_PING_INTERVAL", "off")
    monkeypatch.setenv("RTLINK_FAIL_PENDING_ON_CLOSE", "yes")
    monkeypatch.setenv("RTLINK_LOCAL_SOCKET", "/tmp/other.sock")

    config = load_config(path)

    assert config.ping_interval is None
    assert config.fail_pending_on_close is True
    assert config.local_socket_path == "/tmp/other.sock"


def test_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "rtlink.yaml"
    path.write_text("colour: blue\nping_timeout: 30\n")

    config = load_config(path)

    assert config.ping_timeout == 30.0
    assert not hasattr(config, "colour")


@pytest.mark.parametrize("body", [
    "ping_interval: soon\n",
    "fail_pending_on_close: maybe\n",
    "local_socket_path: 12\n",
    "- just\n- a list\n",
])
def test_bad_values_raise(tmp_path, body):
    path = tmp_path / "rtlink.yaml"
    path.write_text(body)

    with pytest.raises(ValueError):
        load_config(path)


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
