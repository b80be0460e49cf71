import sys

import pytest

from test_data import TINY_TTP
from ttp_cosolver import cli


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["ttp-cosolver", *argv])
    cli.main()


def test_info(tmp_path, monkeypatch, capsys):
    (tmp_path / "tiny.ttp").write_text(TINY_TTP)
    run_cli(monkeypatch, "info", str(tmp_path))
    out = capsys.readouterr().out
    assert "tiny-TTP: cities=4 items=3 capacity=10" in out
    assert "trials/step=3000" in out


def test_solve_with_time_limit(tmp_path, monkeypatch, capsys):
    path = tmp_path / "tiny.ttp"
    path.write_text(TINY_TTP)
    run_cli(monkeypatch, "solve", str(path), "--time-limit", "1", "--seed", "3")
    out = capsys.readouterr().out
    assert "loaded 1 instances" in out
    assert "tiny-TTP: ob=" in out
    assert "length=" in out


def test_empty_directory_raises(tmp_path, monkeypatch):
    with pytest.raises(RuntimeError, match="No TTP instances"):
        run_cli(monkeypatch, "info", str(tmp_path))


def test_max_items_skips_large_directory_instances(tmp_path, monkeypatch, capsys):
    (tmp_path / "tiny.ttp").write_text(TINY_TTP)
    (tmp_path / "other.ttp").write_text(TINY_TTP.replace("tiny-TTP", "other-TTP"))
    run_cli(monkeypatch, "info", str(tmp_path), "--max-items", "3")
    out = capsys.readouterr().out
    assert "tiny-TTP" in out and "other-TTP" in out
    with pytest.raises(RuntimeError, match="No TTP instances"):
        run_cli(monkeypatch, "info", str(tmp_path), "--max-items", "2")


def test_unknown_construct_strategy_is_rejected(tmp_path, monkeypatch, capsys):
    path = tmp_path / "tiny.ttp"
    path.write_text(TINY_TTP)
    with pytest.raises(SystemExit):
        run_cli(monkeypatch, "solve", str(path), "--construct", "nearest-neighbour")
    assert "invalid choice" in capsys.readouterr().err
