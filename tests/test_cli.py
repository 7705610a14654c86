"""Tests for CLI argument parsing and commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from honeycomb.cli import build_parser, main
from honeycomb.db import Database
from honeycomb.seed import load_seed_data


@pytest.fixture()
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
	for key in ("HOST", "PORT", "DATABASE_PATH", "LOG_LEVEL"):
		monkeypatch.delenv(key, raising=False)
	config = tmp_path / "honeycomb.toml"
	config.write_text('[database]\npath = "test.db"\n[server]\ncors_origins = ["http://localhost"]\n')
	return config


class TestArgParsing:
	def test_no_command_returns_0(self) -> None:
		assert main([]) == 0

	def test_serve_overrides(self) -> None:
		args = build_parser().parse_args(["serve", "--host", "127.0.0.1", "--port", "4000"])
		assert args.command == "serve"
		assert args.host == "127.0.0.1"
		assert args.port == 4000
		assert args.config is None

	def test_init_db_flags(self) -> None:
		args = build_parser().parse_args(["init-db", "--force", "--no-seed"])
		assert args.force is True
		assert args.no_seed is True


class TestInitDb:
	def test_creates_seeded_database(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
		assert main(["init-db", "--config", str(config_file)]) == 0
		db_path = config_file.parent / "test.db"
		with Database(db_path) as db:
			assert len(db.list_configs()) == len(load_seed_data())
		assert "Initialized" in capsys.readouterr().out

	def test_existing_requires_force(self, config_file: Path) -> None:
		assert main(["init-db", "--config", str(config_file)]) == 0
		assert main(["init-db", "--config", str(config_file)]) == 1
		assert main(["init-db", "--config", str(config_file), "--force", "--no-seed"]) == 0
		with Database(config_file.parent / "test.db") as db:
			assert db.list_configs() == []


class TestList:
	def test_no_database(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
		assert main(["list", "--config", str(config_file)]) == 1
		assert "init-db" in capsys.readouterr().out

	def test_lists_configs(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
		main(["init-db", "--config", str(config_file)])
		capsys.readouterr()
		assert main(["list", "--config", str(config_file)]) == 0
		out = capsys.readouterr().out
		first = load_seed_data()[0]
		assert first["name"] in out
		assert "运行中" in out or "已停止" in out


class TestValidateConfig:
	def test_ok(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
		assert main(["validate-config", "--config", str(config_file)]) == 0
		assert "Config OK" in capsys.readouterr().out

	def test_errors_exit_1(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		config = tmp_path / "bad.toml"
		config.write_text('[server]\nport = 0\n[database]\npath = "x.db"\n')
		assert main(["validate-config", "--config", str(config)]) == 1
		assert "[ERROR]" in capsys.readouterr().out

	def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
		assert main(["validate-config", "--config", str(tmp_path / "none.toml")]) == 1
		assert "not found" in capsys.readouterr().out


class TestServe:
	def test_runs_uvicorn_with_config(self, config_file: Path) -> None:
		with patch("uvicorn.run") as run:
			assert main(["serve", "--config", str(config_file), "--port", "4321"]) == 0
		run.assert_called_once()
		_, kwargs = run.call_args
		assert kwargs["port"] == 4321
		assert kwargs["host"] == "0.0.0.0"
