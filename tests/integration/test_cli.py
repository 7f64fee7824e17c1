"""CLI-level tests for inky-deploy.

main() runs with the real DI wiring; only subprocess is patched, so the
staging directory is really created under a temporary working directory.
"""
import subprocess
import pytest
from unittest.mock import patch, MagicMock

from inky_deploy import build_parser, main
from inky_deploy.commands.deploy import parse_args
from inky_deploy.deploy import InvalidOptionError
from inky_deploy.driver import DeployOptions

TRIPLE = 'arm-unknown-linux-gnueabi'


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Working directory with a fake debug and release build of the binary."""
    monkeypatch.chdir(tmp_path)
    for profile in ('debug', 'release'):
        out = tmp_path / 'target' / TRIPLE / profile
        out.mkdir(parents=True)
        (out / 'inky-gotchi').write_text(f'{profile} binary')
    return tmp_path


@pytest.fixture
def mock_subprocess():
    """Patch subprocess.run/Popen; pidof reports no gdbserver by default."""
    with patch('inky_deploy.core.implementations.subprocess.run') as mock_run, \
         patch('inky_deploy.core.implementations.subprocess.Popen') as mock_popen:

        def fake_run(cmd, **kwargs):
            if 'pidof' in cmd:
                return MagicMock(returncode=1, stdout='', stderr='')
            return MagicMock(returncode=0, stdout=None, stderr=None)

        mock_run.side_effect = fake_run
        mock_popen.return_value = MagicMock(pid=999)
        yield mock_run, mock_popen


def commands(mock_run):
    return [c.args[0] for c in mock_run.call_args_list]


def run_main(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestOptionParsing:
    """Short and long spellings, unknown tokens."""

    @pytest.mark.parametrize("short, long, field", [
        ('-r', '--release', 'release'),
        ('-c', '--clean', 'clean'),
        ('-d', '--deploy', 'deploy'),
        ('-u', '--run', 'run'),
        ('-g', '--gdbserver', 'gdbserver'),
    ])
    def test_short_and_long_are_equivalent(self, short, long, field):
        parser = build_parser()
        _, from_short = parse_args(parser, [short])
        _, from_long = parse_args(parser, [long])

        assert from_short == from_long
        assert getattr(from_short, field) is True

    def test_no_flags(self):
        _, options = parse_args(build_parser(), [])
        assert options == DeployOptions()

    def test_repeated_flags_are_idempotent(self):
        parser = build_parser()
        _, once = parse_args(parser, ['-d'])
        _, twice = parse_args(parser, ['-d', '--deploy', '-d'])
        assert once == twice

    def test_order_does_not_matter(self):
        parser = build_parser()
        _, a = parse_args(parser, ['-u', '-r', '-d'])
        _, b = parse_args(parser, ['-d', '-r', '-u'])
        assert a == b

    @pytest.mark.parametrize("token", [
        '--bogus', '-x', 'deploy', '--rel', '-rd', '-rx', '--release=1', '--'
    ])
    def test_unknown_token(self, token):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_args(build_parser(), ['-d', token])
        assert exc_info.value.token == token

    def test_first_bad_token_is_reported(self):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_args(build_parser(), ['-rd', '--bogus'])
        assert exc_info.value.token == '-rd'

    @pytest.mark.parametrize("argv", [
        ['--config', 'board.yaml'],
        ['--config=board.yaml'],
    ])
    def test_config_path(self, argv):
        args, _ = parse_args(build_parser(), argv + ['-d'])
        assert args.config == 'board.yaml'

    @pytest.mark.parametrize("argv", [['--config'], ['--config', '-d']])
    def test_config_without_path(self, argv):
        with pytest.raises(InvalidOptionError) as exc_info:
            parse_args(build_parser(), argv)
        assert exc_info.value.token == '--config'

    def test_ambient_flags_accepted(self):
        args, options = parse_args(build_parser(), ['--strict', '-v', '-d'])
        assert args.strict is True
        assert args.verbose is True
        assert options.deploy is True


class TestMain:
    """End-to-end scenarios through main()."""

    def test_invalid_option_stops_before_build(self, workdir, mock_subprocess, capsys):
        mock_run, mock_popen = mock_subprocess

        code = run_main(['-d', '--bogus'])

        assert code == 1
        assert 'Invalid option: --bogus' in capsys.readouterr().out
        mock_run.assert_not_called()
        mock_popen.assert_not_called()

    @pytest.mark.parametrize("token", ['-rd', '-rx', '--release=1', '--'])
    def test_malformed_flag_runs_nothing(self, token, workdir, mock_subprocess, capsys):
        mock_run, mock_popen = mock_subprocess

        code = run_main([token])

        assert code == 1
        out, err = capsys.readouterr()
        assert f'Invalid option: {token}' in out
        assert 'usage:' not in out + err
        mock_run.assert_not_called()
        mock_popen.assert_not_called()
        assert not (workdir / 'inky-gotchi-deploy').exists()

    def test_no_flags_builds_only(self, workdir, mock_subprocess):
        mock_run, mock_popen = mock_subprocess

        assert run_main([]) == 0
        assert commands(mock_run) == [['cross', 'build', f'--target={TRIPLE}']]
        mock_popen.assert_not_called()
        assert not (workdir / 'inky-gotchi-deploy').exists()

    def test_release_build(self, workdir, mock_subprocess):
        mock_run, _ = mock_subprocess

        run_main(['--release'])
        assert commands(mock_run) == [['cross', 'build', f'--target={TRIPLE}', '--release']]

    def test_clean_removes_target_before_build(self, workdir, mock_subprocess):
        mock_run, _ = mock_subprocess
        seen = []

        def fake_run(cmd, **kwargs):
            seen.append((cmd[0], (workdir / 'target').exists()))
            return MagicMock(returncode=0, stdout=None, stderr=None)

        mock_run.side_effect = fake_run
        run_main(['-c'])

        assert seen == [('cross', False)]

    def test_deploy(self, workdir, mock_subprocess):
        mock_run, mock_popen = mock_subprocess
        stale = workdir / 'inky-gotchi-deploy'
        stale.mkdir()
        (stale / 'old-file').write_text('stale')

        assert run_main(['-d']) == 0

        assert commands(mock_run) == [
            ['cross', 'build', f'--target={TRIPLE}'],
            ['ssh', 'pizw', 'pidof', 'gdbserver'],
            ['scp', '-r', 'inky-gotchi-deploy', 'pizw:~'],
        ]
        staged = sorted(p.name for p in stale.iterdir())
        assert staged == ['inky-gotchi']
        assert (stale / 'inky-gotchi').read_text() == 'debug binary'
        mock_popen.assert_not_called()

    def test_deploy_replaces_file_at_staging_path(self, workdir, mock_subprocess):
        mock_run, _ = mock_subprocess
        (workdir / 'inky-gotchi-deploy').write_text('not a directory')

        assert run_main(['-d']) == 0

        staging = workdir / 'inky-gotchi-deploy'
        assert staging.is_dir()
        assert [p.name for p in staging.iterdir()] == ['inky-gotchi']
        assert ['scp', '-r', 'inky-gotchi-deploy', 'pizw:~'] in commands(mock_run)

    def test_release_deploy_stages_release_binary(self, workdir, mock_subprocess):
        run_main(['-r', '-d'])
        assert (workdir / 'inky-gotchi-deploy' / 'inky-gotchi').read_text() == 'release binary'

    def test_deploy_kills_running_gdbserver(self, workdir, mock_subprocess, capsys):
        mock_run, _ = mock_subprocess

        def fake_run(cmd, **kwargs):
            if 'pidof' in cmd:
                return MagicMock(returncode=0, stdout='1717\n', stderr='')
            return MagicMock(returncode=0, stdout=None, stderr=None)

        mock_run.side_effect = fake_run
        run_main(['--deploy'])

        cmds = commands(mock_run)
        kill_index = cmds.index(['ssh', 'pizw', 'kill', '-9', '1717'])
        scp_index = cmds.index(['scp', '-r', 'inky-gotchi-deploy', 'pizw:~'])
        assert kill_index < scp_index
        assert 'Killing gdb server process: 1717' in capsys.readouterr().out

    def test_gdbserver_forces_deploy_and_detaches(self, workdir, mock_subprocess):
        mock_run, mock_popen = mock_subprocess

        assert run_main(['-g']) == 0

        assert ['scp', '-r', 'inky-gotchi-deploy', 'pizw:~'] in commands(mock_run)
        mock_popen.assert_called_once()
        args, kwargs = mock_popen.call_args
        assert args[0] == ['ssh', 'pizw', 'gdbserver', 'localhost:1234', 'inky-gotchi-deploy/inky-gotchi']
        assert kwargs['stdin'] is subprocess.DEVNULL
        assert kwargs['stdout'] is subprocess.DEVNULL
        assert kwargs['stderr'] is subprocess.DEVNULL
        assert kwargs['start_new_session'] is True
        mock_popen.return_value.wait.assert_not_called()

    def test_run_returns_remote_exit_code(self, workdir, mock_subprocess):
        mock_run, _ = mock_subprocess

        def fake_run(cmd, **kwargs):
            if cmd[-1] == '/home/pi/inky-gotchi-deploy/inky-gotchi':
                return MagicMock(returncode=42, stdout=None, stderr=None)
            if 'pidof' in cmd:
                return MagicMock(returncode=1, stdout='', stderr='')
            return MagicMock(returncode=0, stdout=None, stderr=None)

        mock_run.side_effect = fake_run

        assert run_main(['-d', '-u']) == 42
        run_call = mock_run.call_args_list[-1]
        assert run_call.args[0] == ['ssh', 'pizw', '/home/pi/inky-gotchi-deploy/inky-gotchi']
        assert run_call.kwargs['capture_output'] is False

    def test_failed_build_continues_by_default(self, workdir, mock_subprocess, capsys):
        mock_run, _ = mock_subprocess

        def fake_run(cmd, **kwargs):
            if cmd[0] == 'cross':
                return MagicMock(returncode=101, stdout=None, stderr=None)
            if 'pidof' in cmd:
                return MagicMock(returncode=1, stdout='', stderr='')
            return MagicMock(returncode=0, stdout=None, stderr=None)

        mock_run.side_effect = fake_run

        assert run_main(['-d']) == 0
        assert commands(mock_run)[-1][0] == 'scp'
        assert 'Warning: build step failed' in capsys.readouterr().out

    def test_failed_build_aborts_in_strict_mode(self, workdir, mock_subprocess, capsys):
        mock_run, _ = mock_subprocess
        mock_run.side_effect = lambda cmd, **kwargs: MagicMock(returncode=101, stdout=None, stderr=None)

        assert run_main(['-d', '--strict']) == 101
        assert len(mock_run.call_args_list) == 1
        assert 'build step failed' in capsys.readouterr().err

    def test_missing_build_tool(self, workdir, mock_subprocess):
        mock_run, _ = mock_subprocess
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory", 'cross')

        assert run_main([]) == 127

    def test_config_file_overrides_host(self, workdir, mock_subprocess):
        mock_run, _ = mock_subprocess
        (workdir / 'inky-deploy.yaml').write_text('host: zero2w\ngdb_port: 4321\n')

        run_main(['-d'])

        assert ['scp', '-r', 'inky-gotchi-deploy', 'zero2w:~'] in commands(mock_run)

    def test_bad_config_file(self, workdir, mock_subprocess, capsys):
        mock_run, _ = mock_subprocess

        assert run_main(['--config', 'missing.yaml']) == 1
        assert 'Config file not found' in capsys.readouterr().err
        mock_run.assert_not_called()
