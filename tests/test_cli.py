import logging
import os

import yaml

from conftest import make_item
from rssnix import __version__, cli, engine
from rssnix.errors import FetchError


def _write_config(tmp_path, feeds):
    path = tmp_path / "config.yml"
    path.write_text(
        yaml.safe_dump({"settings": {"feed_directory": str(tmp_path / "feeds")}, "feeds": feeds}),
        encoding="utf-8",
    )
    return str(path)


def _quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda name: logging.getLogger("rssnix.test"))
    monkeypatch.setattr(cli, "set_umask_from_env", lambda: None)


def test_update_all_writes_articles_and_inbox(tmp_path, monkeypatch):
    _quiet_logging(monkeypatch)
    config_path = _write_config(tmp_path, {"hn": "https://hn.example/rss"})
    monkeypatch.setattr(engine, "fetch_feed", lambda url, http: [make_item("Story")])

    assert cli.main(["--config", config_path, "update"]) == 0

    feeds_dir = tmp_path / "feeds"
    assert (feeds_dir / "hn" / "Story").exists()
    assert os.readlink(feeds_dir / "new" / "Story") == str(feeds_dir / "hn" / "Story")


def test_refetch_named_feed_with_alias(tmp_path, monkeypatch):
    _quiet_logging(monkeypatch)
    config_path = _write_config(tmp_path, {"hn": "https://hn.example/rss"})
    stale = tmp_path / "feeds" / "hn" / "Stale"
    stale.parent.mkdir(parents=True)
    stale.write_text("old", encoding="utf-8")
    monkeypatch.setattr(engine, "fetch_feed", lambda url, http: [make_item("Fresh")])

    assert cli.main(["--config", config_path, "r", "hn", "missing"]) == 0

    assert sorted(os.listdir(tmp_path / "feeds" / "hn")) == ["Fresh"]


def test_update_tolerates_fetch_failure(tmp_path, monkeypatch):
    _quiet_logging(monkeypatch)
    config_path = _write_config(tmp_path, {"down": "https://down.example/rss"})

    def _fail(url, http):
        raise FetchError(url, "timed out")

    monkeypatch.setattr(engine, "fetch_feed", _fail)

    assert cli.main(["--config", config_path, "update", "down"]) == 0
    assert os.listdir(tmp_path / "feeds" / "new") == []


def test_add_command_persists_feed(tmp_path, monkeypatch):
    _quiet_logging(monkeypatch)
    config_path = _write_config(tmp_path, {})

    assert cli.main(["--config", config_path, "add", "lwn", "https://lwn.net/headlines/rss"]) == 0
    assert cli.main(["--config", config_path, "a", "lwn", "https://lwn.net/headlines/rss"]) == 1

    with open(config_path, encoding="utf-8") as handle:
        assert yaml.safe_load(handle)["feeds"] == {"lwn": "https://lwn.net/headlines/rss"}


def test_invalid_config_exits_nonzero(tmp_path, monkeypatch):
    _quiet_logging(monkeypatch)
    path = tmp_path / "config.yml"
    path.write_text("feeds: [not, a, mapping]\n", encoding="utf-8")

    assert cli.main(["--config", str(path), "update"]) == 1


def test_config_command_requires_editor(tmp_path, monkeypatch):
    _quiet_logging(monkeypatch)
    monkeypatch.delenv("EDITOR", raising=False)
    assert cli.main(["--config", str(tmp_path / "config.yml"), "config"]) == 1


def test_open_runs_viewer(tmp_path, monkeypatch):
    _quiet_logging(monkeypatch)
    config_path = _write_config(tmp_path, {})
    calls = []

    class _Completed:
        returncode = 0

    def _fake_run(command, check):
        calls.append(command)
        return _Completed()

    monkeypatch.setattr(cli.subprocess, "run", _fake_run)

    assert cli.main(["--config", config_path, "open", "hn"]) == 0
    assert calls == [["vim", str(tmp_path / "feeds" / "hn")]]


def test_version(capsys, monkeypatch):
    _quiet_logging(monkeypatch)
    assert cli.main(["version"]) == 0
    assert capsys.readouterr().out.strip() == __version__
