"""
Tests for the command line entry point and remote factory.
"""

import json

import pytest

from logmirror.main import main, parse_args
from logmirror.remote.factory import create_store
from logmirror.remote.http_store import HttpRangeStore
from logmirror.remote.local_store import LocalFileStore
from logmirror.utils.config import Config


@pytest.fixture
def local_setup(tmp_path):
    """Config file mirroring a local source log into tmp_path/data."""
    source = tmp_path / "source.log"
    source.write_bytes(b"alpha\nbeta\ngamma\n")
    data_dir = tmp_path / "data"

    config_path = tmp_path / "mirror.yaml"
    config_path.write_text(
        "remote:\n"
        "  backend: local\n"
        f"  path: {source}\n"
        "mirror:\n"
        f"  local_log_file: {data_dir / 'live_log.txt'}\n"
        f"  reversed_log_file: {data_dir / 'live_log_reversed.txt'}\n"
    )
    return config_path, source, data_dir


class TestParseArgs:
    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_serve_options(self):
        args = parse_args(["--log-level", "DEBUG", "serve", "--port", "8080", "--interval", "5"])

        assert args.command == "serve"
        assert args.port == 8080
        assert args.interval == 5.0
        assert args.log_level == "DEBUG"


class TestMain:
    """Test main() subcommands against a local source."""

    def test_sync_then_tail(self, local_setup, capsys):
        config_path, _, data_dir = local_setup

        assert main(["--config", str(config_path), "sync"]) == 0
        result = json.loads(capsys.readouterr().out)

        assert result["changed"] is True
        assert result["bytesMoved"] == 17
        assert (data_dir / "live_log.txt").read_bytes() == b"alpha\nbeta\ngamma\n"

        assert main(["--config", str(config_path), "tail", "--page-size", "2"]) == 0
        assert capsys.readouterr().out.splitlines() == ["gamma", "beta"]

    def test_sync_failure_exit_code(self, local_setup, capsys):
        config_path, source, _ = local_setup
        source.unlink()

        assert main(["--config", str(config_path), "sync"]) == 1
        assert json.loads(capsys.readouterr().err.splitlines()[-1])["error"] == "RemoteUnavailable"

    def test_tail_invalid_page(self, local_setup):
        config_path, _, _ = local_setup

        assert main(["--config", str(config_path), "tail", "--page", "0"]) == 2

    def test_bad_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        assert main(["sync"]) == 2

    def test_missing_config_file(self, tmp_path):
        assert main(["--config", str(tmp_path / "absent.yaml"), "sync"]) == 2

    def test_bad_backend(self, tmp_path):
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("remote:\n  backend: ftp\n")

        assert main(["--config", str(config_path), "sync"]) == 2


class TestCreateStore:
    """Test create_store."""

    def test_http_backend(self):
        config = Config()
        config.set("remote.backend", "http")
        config.set("remote.url", "https://logs.example/log.txt")

        store, ref = create_store(config)

        assert isinstance(store, HttpRangeStore)
        assert ref.object_id == "https://logs.example/log.txt"
        store.close()

    def test_http_backend_requires_url(self, monkeypatch):
        monkeypatch.delenv("LOGMIRROR_REMOTE_URL", raising=False)
        config = Config()
        config.set("remote.url", None)

        with pytest.raises(ValueError):
            create_store(config)

    def test_local_backend(self, tmp_path):
        config = Config()
        config.set("remote.backend", "local")
        config.set("remote.path", str(tmp_path / "source.log"))

        store, ref = create_store(config)

        assert isinstance(store, LocalFileStore)
        assert ref.object_id == str(tmp_path / "source.log")

    def test_drive_backend_requires_file_or_folder(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_DRIVE_FILE_ID", raising=False)
        monkeypatch.delenv("GOOGLE_DRIVE_FOLDER_ID", raising=False)
        config = Config()
        config.set("remote.backend", "drive")
        config.set("remote.token", "t")

        with pytest.raises(ValueError):
            create_store(config)

    def test_unknown_backend(self):
        config = Config()
        config.set("remote.backend", "ftp")

        with pytest.raises(ValueError):
            create_store(config)


class TestIntervalOption:
    """Test --interval validation."""

    @pytest.mark.parametrize("value", ["-1", "0", "nan", "soon"])
    def test_rejected_before_running(self, value, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["watch", "--interval", value])

        assert exc_info.value.code == 2
        assert "--interval" in capsys.readouterr().err

    def test_accepted(self):
        assert parse_args(["watch", "--interval", "0.5"]).interval == 0.5

    def test_page_size_zero_is_not_defaulted(self, local_setup):
        config_path, _, _ = local_setup

        assert main(["--config", str(config_path), "tail", "--page-size", "0"]) == 2
