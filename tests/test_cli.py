#!/usr/bin/env python3
"""
Test suite for CLI functionality
"""

import pytest
from unittest.mock import patch, MagicMock

from src.binary_update.cli import create_parser, main
from conftest import PLATFORM, script


@pytest.fixture
def run_cli(remote, install_path, tmp_path):
    """Run main() against the fake remote and temporary paths"""
    def _run(*argv):
        args = [
            'binary-update',
            '--install-path', str(install_path),
            '--stash-dir', str(tmp_path / "stash"),
            '--api-url', '',
            *argv,
        ]
        with patch('src.binary_update.cli.HttpTransport', return_value=remote), \
                patch('src.binary_update.fetcher.detect_platform', return_value=PLATFORM), \
                patch('sys.argv', args):
            with pytest.raises(SystemExit) as exc_info:
                main()
        return exc_info.value.code
    return _run


class TestCLIParser:
    """Test argument parser creation and configuration"""

    def test_subcommands(self):
        parser = create_parser()

        for argv in (["versions"], ["version"], ["install", "latest"], ["stash"],
                     ["revert"], ["stashes"], ["fetch"]):
            args = parser.parse_args(argv)
            assert args.command == argv[0]

    def test_install_flags(self):
        args = create_parser().parse_args(["install", "v0.4.1", "--no-check", "--tag", "old"])

        assert args.version == "v0.4.1"
        assert args.no_check is True
        assert args.tag == "old"

    def test_fetch_defaults(self):
        args = create_parser().parse_args(["fetch"])

        assert args.version == "latest"
        assert args.output is None

    def test_install_requires_version(self):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["install"])

        assert exc_info.value.code == 2

    def test_command_required(self):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args([])

        assert exc_info.value.code == 2


class TestCLIMain:
    """Test main CLI functionality"""

    def test_versions(self, run_cli, remote, capsys):
        remote.set_index(["0.3.0", "0.4.0", "0.4.1"])

        assert run_cli('versions') == 0
        assert capsys.readouterr().out.split() == ["0.3.0", "0.4.0", "0.4.1"]

    def test_versions_unreachable(self, run_cli, remote, capsys):
        remote.unreachable = True

        assert run_cli('versions') == 1
        assert "✗" in capsys.readouterr().out

    def test_version(self, run_cli, installed, capsys):
        installed("0.3.0")

        assert run_cli('version') == 0
        assert capsys.readouterr().out.strip() == "0.3.0"

    def test_install_latest_and_revert(self, run_cli, remote, installed, install_path, capsys):
        remote.set_index(["0.3.0", "0.4.0", "0.4.1"])
        remote.publish("0.4.1")
        installed("0.3.0")

        assert run_cli('install', 'latest') == 0
        out = capsys.readouterr().out
        assert "stashed as '0.3.0'" in out
        assert "Installation of 0.4.1 complete" in out
        assert install_path.read_bytes() == script("0.4.1")

        assert run_cli('revert') == 0
        assert install_path.read_bytes() == script("0.3.0")

    def test_install_latest_empty_index(self, run_cli, remote, installed, install_path, capsys):
        remote.set_index([])
        installed("0.3.0")

        assert run_cli('install', 'latest') == 1
        assert "No versions" in capsys.readouterr().out
        assert remote.downloads == []
        assert install_path.read_bytes() == script("0.3.0")

    def test_install_unpublished_version(self, run_cli, remote, installed, capsys):
        remote.set_index(["0.3.0"])
        installed("0.3.0")

        assert run_cli('install', '0.9.0') == 1
        assert "not published" in capsys.readouterr().out

    def test_install_failed_check(self, run_cli, remote, installed, install_path, capsys):
        remote.set_index(["0.4.1"])
        remote.publish("0.4.1", binary=script("0.4.1", exit_code=1))
        installed("0.3.0")

        assert run_cli('install', '0.4.1') == 1
        assert "Self-check" in capsys.readouterr().out
        assert install_path.read_bytes() == script("0.3.0")

    def test_install_no_check(self, run_cli, remote, installed, install_path):
        remote.set_index(["0.4.1"])
        remote.publish("0.4.1", binary=script("0.4.1", exit_code=1))
        installed("0.3.0")

        assert run_cli('install', '0.4.1', '--no-check') == 0
        assert install_path.read_bytes() == script("0.4.1", exit_code=1)

    def test_revert_empty_stash(self, run_cli, installed, install_path, capsys):
        installed("0.3.0")

        assert run_cli('revert') == 1
        assert "No stashed binary" in capsys.readouterr().out
        assert install_path.read_bytes() == script("0.3.0")

    def test_stash_and_list(self, run_cli, installed, capsys):
        installed("0.3.0")

        assert run_cli('stash') == 0
        assert run_cli('stash', '--tag', 'known-good') == 0
        capsys.readouterr()

        assert run_cli('stashes') == 0
        lines = capsys.readouterr().out.splitlines()
        assert any(line.startswith("* known-good") for line in lines)
        assert any(line.startswith("  0.3.0") for line in lines)

    def test_stashes_empty(self, run_cli, capsys):
        assert run_cli('stashes') == 0
        assert "No stashed binaries" in capsys.readouterr().out

    def test_fetch_default_output(self, run_cli, remote, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        remote.set_index(["0.4.0", "0.4.1"])
        remote.publish("0.4.1")

        assert run_cli('fetch') == 0
        assert (tmp_path / "ipfs-0.4.1").read_bytes() == script("0.4.1")

    def test_fetch_refuses_existing_output(self, run_cli, remote, tmp_path, capsys):
        remote.set_index(["0.4.1"])
        remote.publish("0.4.1")
        output = tmp_path / "taken"
        output.write_bytes(b"mine")

        assert run_cli('fetch', '0.4.1', '--output', str(output)) == 1
        assert "already exists" in capsys.readouterr().out
        assert output.read_bytes() == b"mine"

    def test_restart_reminder(self, run_cli, remote, installed, capsys):
        remote.set_index(["0.4.1"])
        remote.publish("0.4.1")
        installed("0.3.0")

        with patch('src.binary_update.cli.LocalBinary.daemon_running', return_value=True):
            assert run_cli('install', 'latest', '--tag', 'pre') == 0

        assert "restart your daemon" in capsys.readouterr().out

    @patch('src.binary_update.cli.Commands')
    def test_verbose_logging(self, mock_commands_class):
        mock_commands_class.return_value = MagicMock()

        with patch('sys.argv', ['binary-update', '-v', 'versions']), \
                patch('src.binary_update.cli.configure_logging') as mock_logging:
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        mock_logging.assert_called_once_with(True)
        mock_commands_class.return_value.versions.assert_called_once()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
