from __future__ import annotations

import logging
from pathlib import Path

import httpx

from rimehost import main
from rimehost.utils.logging import configure_logging
from rimehost.utils.paths import ENV_USER_DATA_DIR, default_user_data_dir, distribution_version, ensure_directory


def test_parse_args_defaults_to_serve() -> None:
    args = main.parse_args([])

    assert args.command == "serve"
    assert args.port == 8765
    assert args.full_check is False


def test_parse_args_reload_and_serve_options(tmp_path: Path) -> None:
    assert main.parse_args(["--port", "9000", "reload"]).command == "reload"

    args = main.parse_args(["serve", "--user-data-dir", str(tmp_path), "--full-check", "--no-logind"])
    config = main.config_from_args(args)

    assert config.user_data_dir == tmp_path
    assert config.build_dir == tmp_path / "build"
    assert args.full_check is True
    assert args.no_logind is True


def test_send_reload_posts_notification(monkeypatch) -> None:
    seen = {}

    def fake_post(url, timeout):
        seen["url"] = url
        return httpx.Response(202, json={"delivered": 1})

    monkeypatch.setattr(main.httpx, "post", fake_post)

    assert main.send_reload("127.0.0.1", 8765) is True
    assert seen["url"] == "http://127.0.0.1:8765/notifications/RimeHostReloadNotification"


def test_send_reload_reports_failures(monkeypatch) -> None:
    def refused(url, timeout):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(main.httpx, "post", refused)
    assert main.send_reload("127.0.0.1", 8765) is False

    monkeypatch.setattr(main.httpx, "post", lambda url, timeout: httpx.Response(404, text="nope"))
    assert main.send_reload("127.0.0.1", 8765) is False


def test_run_reload_exit_codes(monkeypatch) -> None:
    monkeypatch.setattr(main, "send_reload", lambda host, port: True)
    assert main.run(["reload"]) == 0

    monkeypatch.setattr(main, "send_reload", lambda host, port: False)
    assert main.run(["reload"]) == 1


def test_ensure_directory(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b"
    assert ensure_directory(target) is True
    assert target.is_dir()
    assert ensure_directory(target) is True

    blocker = tmp_path / "file"
    blocker.write_text("x")
    assert ensure_directory(blocker / "child") is False


def test_default_user_data_dir_honours_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv(ENV_USER_DATA_DIR, str(tmp_path))
    assert default_user_data_dir() == tmp_path

    monkeypatch.delenv(ENV_USER_DATA_DIR)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert default_user_data_dir() == tmp_path / "xdg" / "rimehost" / "rime"


def test_distribution_version_is_a_string() -> None:
    assert isinstance(distribution_version(), str)
    assert distribution_version()


def test_configure_logging_respects_existing_handlers() -> None:
    root = logging.getLogger()
    handler = logging.NullHandler()
    root.addHandler(handler)
    try:
        before = list(root.handlers)
        configure_logging()
        assert root.handlers == before
    finally:
        root.removeHandler(handler)
