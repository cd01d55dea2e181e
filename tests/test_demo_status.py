from pathlib import Path

from installer_core import config, demo_status, duffle


def test_cli_reports_blocked_install_without_duffle(tmp_path: Path, write_bundle, monkeypatch, capsys) -> None:
    write_bundle(signed=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(duffle.shutil, "which", lambda name: None)
    cfg = tmp_path / "cfg.json"
    config.save_installer_config({"bundle_dir": str(tmp_path)}, cfg)

    code = demo_status.main(["--config", str(cfg)])

    out = capsys.readouterr().out
    assert code == 1
    assert "[status] pending: Verifying signature..." in out
    assert "[status] error: Unable to check digital signature: Duffle binary not found" in out
    assert "[bundle] Version 0.1.2" in out
    assert "[install] blocked: Duffle not found - cannot install bundle" in out
