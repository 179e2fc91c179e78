from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from horizonsave import cli
from horizonsave.aggregate import SaveAggregate

from conftest import TABLE


@pytest.fixture()
def settings_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("HORIZON_CONFIG_DIR", str(tmp_path / "config"))
    rev = tmp_path / "revisions.yaml"
    rev.write_text(yaml.safe_dump(TABLE), encoding="utf-8")
    fp = tmp_path / "settings.yaml"
    fp.write_text(
        yaml.safe_dump({"revisions_path": str(rev), "backup_dir": str(tmp_path / "backups")}),
        encoding="utf-8",
    )
    return fp


def run(settings_file: Path, *args: str) -> int:
    return cli.main(["--settings", str(settings_file), *args])


def test_info(tmp_path, save_factory, settings_file, capsys):
    folder = save_factory.build(tmp_path / "slot", revision=1, players=2, player_names=["Ann", "Bo"])
    assert run(settings_file, "info", str(folder)) == 0
    out = capsys.readouterr().out
    assert f"Primary: {folder}" in out
    assert "Revision: new" in out
    assert "Player:  Bo (Villager1)" in out


def test_verify_reports_bad_hashes(tmp_path, save_factory, settings_file, revisions, capsys):
    folder = save_factory.build(tmp_path / "slot")
    assert run(settings_file, "verify", str(folder)) == 0
    assert "Sizes: ok" in capsys.readouterr().out

    save = SaveAggregate(folder, revisions)
    save.main.data[0x50] ^= 0xFF
    save.main.save(5)
    assert run(settings_file, "verify", str(folder)) == 2
    assert "Invalid hash: 00000044" in capsys.readouterr().out


def test_save_fixes_hashes_and_mirrors(tmp_path, save_factory, settings_file, revisions, capsys):
    root = tmp_path / "device"
    save_factory.build(root / "slot")
    save_factory.build(root / "copy", seed=9)
    save = SaveAggregate(root / "slot", revisions)
    save.main.data[0x50] ^= 0xFF
    save.main.save(5)

    assert run(settings_file, "save", str(root / "slot"), "--seed", "0x1234") == 0
    assert "0x00001234" in capsys.readouterr().out
    assert SaveAggregate(root / "slot", revisions).invalid_hashes() == []
    assert (root / "copy" / "main.dat").read_bytes() == (root / "slot" / "main.dat").read_bytes()


def test_patch_replaces_identity(tmp_path, save_factory, settings_file, revisions, capsys):
    folder = save_factory.build(tmp_path / "slot")
    original = SaveAggregate(folder, revisions).players[0].personal.get_personal_id()
    updated = bytes(b ^ 1 for b in original)

    code = run(settings_file, "patch", str(folder), "--original", original.hex(), "--updated", updated.hex())

    assert code == 0
    assert "Replaced 1 occurrences" in capsys.readouterr().out
    reloaded = SaveAggregate(folder, revisions)
    assert reloaded.players[0].personal.get_personal_id() == updated
    assert reloaded.invalid_hashes() == []


def test_backup_uses_settings_root(tmp_path, save_factory, settings_file):
    folder = save_factory.build(tmp_path / "slot", town="Isle")
    assert run(settings_file, "backup", str(folder)) == 0
    assert (tmp_path / "backups" / "Isle - 2021-03-14 09.26" / "main.dat").exists()


def test_missing_save_is_reported_not_crashed(tmp_path, settings_file):
    (tmp_path / "empty").mkdir()
    assert run(settings_file, "info", str(tmp_path / "empty")) == 1
    assert not (tmp_path / "config" / cli.CRASH_LOG).exists()


def test_unexpected_error_writes_crash_log_to_config_dir(tmp_path, save_factory, settings_file, monkeypatch):
    folder = save_factory.build(tmp_path / "slot")
    monkeypatch.chdir(tmp_path)

    def boom(*_args, **_kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(cli, "run", boom)
    assert run(settings_file, "info", str(folder)) == 1
    assert "kaboom" in (tmp_path / "config" / cli.CRASH_LOG).read_text(encoding="utf-8")
    assert not (tmp_path / cli.CRASH_LOG).exists()


def test_init_writes_settings_and_creates_folders(tmp_path, settings_file, monkeypatch, capsys):
    monkeypatch.setenv("HORIZON_PERSIST_MODE", "atomic")
    monkeypatch.setenv("HORIZON_BACKUP_DIR", str(tmp_path / "backups"))
    assert run(settings_file, "init") == 0

    written = tmp_path / "config" / "settings.yaml"
    assert f"Settings: {written}" in capsys.readouterr().out
    data = yaml.safe_load(written.read_text(encoding="utf-8"))
    assert data["persist_mode"] == "atomic"
    assert data["backup_dir"] == str(tmp_path / "backups")
    assert (tmp_path / "backups").is_dir()
