"""Tests for the command line entry point."""

from gloss_annote import __version__
from gloss_annote.__main__ import build_parser, main


def test_default_runs_client():
    args = build_parser().parse_args(["--api-url", "http://store:1"])
    assert args.command is None
    assert args.api_url == "http://store:1"


def test_serve_arguments():
    args = build_parser().parse_args(["serve", "--data-dir", "/tmp/d", "--port", "5000"])
    assert args.command == "serve"
    assert args.data_dir == "/tmp/d"
    assert args.port == 5000


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_serve_without_secrets_fails(monkeypatch, capsys, tmp_path):
    monkeypatch.delenv("GLOSS_ANNOTE_PASSWORD", raising=False)
    monkeypatch.delenv("GLOSS_ANNOTE_SECRET_KEY", raising=False)
    assert main(["serve", "--data-dir", str(tmp_path)]) == 1
    assert "GLOSS_ANNOTE_PASSWORD" in capsys.readouterr().err
