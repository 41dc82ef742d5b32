"""
Tests for the command-line interface.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from shaws.cli import create_parser, main
from shaws.exceptions import ConfigurationMissingError, CredentialServiceError
from shaws.session import MfaDevice, Session


@pytest.fixture
def env(config_file):
    return {
        "PATH": "/usr/bin:/bin",
        "SHELL": "/bin/bash",
        "AWS_CONFIG_FILE": str(config_file),
    }


@pytest.fixture
def session():
    return Session(
        access_key_id="ASIAEXAMPLEKEY",
        secret_access_key="secret/example",
        session_token="token-example",
        expiration=datetime(2030, 1, 1, tzinfo=timezone.utc),
        profile="default",
    )


@pytest.fixture
def mock_manager(session):
    """Patch the session manager used by the CLI."""
    with patch('shaws.cli.build_manager') as mock_build:
        manager = MagicMock()
        manager.resolve_session.return_value = session
        mock_build.return_value = manager
        yield manager


@pytest.fixture
def mock_spawn():
    """Patch the shell capability check and spawner."""
    with patch('shaws.cli.require_shell') as mock_require, patch('shaws.cli.spawn') as mock_run:
        mock_require.side_effect = lambda shell: shell
        mock_run.return_value = 0
        yield mock_run


class TestCreateParser:
    """Tests for create_parser()."""

    def test_prog(self):
        assert create_parser().prog == "shaws"

    def test_version(self):
        with pytest.raises(SystemExit) as excinfo:
            create_parser().parse_args(["--version"])
        assert excinfo.value.code == 0

    def test_list_devices_alias(self):
        args = create_parser().parse_args(["list-devices", "dev"])
        assert args.profile == "dev"

    def test_run_keeps_remaining_arguments(self):
        args = create_parser().parse_args(["run", "dev", "123456", "echo $0", "-x", "y"])
        assert args.values == ["dev", "123456", "echo $0", "-x", "y"]

    def test_unknown_command(self):
        with pytest.raises(SystemExit) as excinfo:
            create_parser().parse_args(["launch"])
        assert excinfo.value.code == 2


class TestStatus:
    """Tests for the no-argument status check."""

    def test_no_session(self, env, capsys):
        assert main([], env) == 20
        assert "No active session" in capsys.readouterr().out

    def test_expired(self, env, capsys):
        env["SHAWS_SESSION"] = "2001-01-01T00:00:00Z"

        assert main([], env) == 10
        assert "expired" in capsys.readouterr().out

    def test_active(self, env, capsys):
        env.update({
            "SHAWS_SESSION": "2999-01-01T00:00:00Z",
            "SHAWS_PROFILE": "dev",
            "AWS_ACCESS_KEY_ID": "ASIAEXAMPLEKEY",
        })

        assert main([], env) == 0
        out = capsys.readouterr().out
        assert "Session active for profile dev" in out
        assert "AWS_ACCESS_KEY_ID=ASIAEXAMPLEKEY" in out

    def test_malformed_is_no_session(self, env):
        env["SHAWS_SESSION"] = "soon"
        assert main([], env) == 20

    def test_out_of_range_is_no_session(self, env):
        env["SHAWS_SESSION"] = "9999-12-31T23:59:59-01:00"
        assert main([], env) == 20


def test_help(env, capsys):
    assert main(["help"], env) == 0
    assert "usage: shaws" in capsys.readouterr().out


class TestAttach:
    """Tests for the attach command."""

    def test_attach_default_profile(self, env, config_file, capsys):
        code = main(["attach", "arn:aws:iam::111122223333:mfa/bob"], env)

        assert code == 0
        assert "mfa/bob" in config_file.read_text()
        assert "✅" in capsys.readouterr().out

    def test_attach_named_profile(self, env, config_file):
        assert main(["attach", "no-mfa", "arn:aws:iam::111122223333:mfa/bob"], env) == 0

        text = config_file.read_text()
        section = text.split("[profile no-mfa]")[1].split("[")[0]
        assert "mfa_serial = arn:aws:iam::111122223333:mfa/bob" in section

    def test_attach_uses_aws_profile(self, env, config_file):
        env["AWS_PROFILE"] = "fresh"

        assert main(["attach", "arn:aws:iam::111122223333:mfa/dave"], env) == 0
        assert "[profile fresh]" in config_file.read_text()

    def test_attach_too_many_arguments(self, env, capsys):
        assert main(["attach", "a", "b", "c"], env) == 2
        assert "usage" in capsys.readouterr().err

    def test_attach_blank_serial(self, env):
        assert main(["attach", "dev", " "], env) == 2


class TestListDevices:
    """Tests for the ls-devices command."""

    def test_list_devices(self, env, mock_manager, capsys):
        mock_manager.list_devices.return_value = [
            MfaDevice("arn:aws:iam::111122223333:mfa/alice", "alice"),
        ]

        assert main(["ls-devices", "dev"], env) == 0
        mock_manager.list_devices.assert_called_once_with("dev")
        assert "arn:aws:iam::111122223333:mfa/alice" in capsys.readouterr().out

    def test_list_devices_current_profile(self, env, mock_manager):
        mock_manager.list_devices.return_value = []
        env["AWS_DEFAULT_PROFILE"] = "ops"

        assert main(["list-devices"], env) == 0
        mock_manager.list_devices.assert_called_once_with("ops")

    def test_list_devices_failure(self, env, mock_manager, capsys):
        mock_manager.list_devices.side_effect = CredentialServiceError("ListMFADevices failed")

        assert main(["ls-devices"], env) == 2
        assert "ListMFADevices failed" in capsys.readouterr().err


class TestEnter:
    """Tests for the enter command."""

    def test_enter(self, env, mock_manager, mock_spawn):
        mock_spawn.return_value = 4

        assert main(["enter", "123456"], env) == 4

        mock_manager.resolve_session.assert_called_once_with("default", "123456")
        argv, child_env = mock_spawn.call_args.args
        assert argv == ["/bin/bash", "-i"]
        assert child_env["AWS_SESSION_TOKEN"] == "token-example"
        assert child_env["SHAWS_SESSION"] == "2030-01-01T00:00:00Z"
        assert "AWS_SESSION_TOKEN" not in env

    def test_enter_named_profile(self, env, mock_manager, mock_spawn):
        main(["enter", "assumed-role", "654321"], env)

        mock_manager.resolve_session.assert_called_once_with("assumed-role", "654321")

    def test_enter_failure_never_spawns(self, env, mock_manager, mock_spawn, capsys):
        mock_manager.resolve_session.side_effect = ConfigurationMissingError("No MFA device attached")

        assert main(["enter", "123456"], env) == 2
        mock_spawn.assert_not_called()
        assert capsys.readouterr().err.startswith("❌ No MFA device attached")

    def test_enter_invalid_code_real_manager(self, env, mock_spawn):
        assert main(["enter", "12345x"], env) == 2
        mock_spawn.assert_not_called()

    def test_enter_unparsable_config(self, env, config_file, mock_spawn, capsys):
        config_file.write_text("mfa_serial = x\n[default]\n")

        assert main(["enter", "123456"], env) == 2
        mock_spawn.assert_not_called()
        assert "Cannot parse AWS config file" in capsys.readouterr().err

    def test_enter_missing_shell(self, env, mock_manager):
        env["SHELL"] = "/definitely/not/a/shell"

        assert main(["enter", "123456"], env) == 1
        mock_manager.resolve_session.assert_not_called()

    def test_enter_interrupted(self, env, mock_manager, mock_spawn, capsys):
        mock_manager.resolve_session.side_effect = KeyboardInterrupt

        assert main(["enter", "123456"], env) == 130
        mock_spawn.assert_not_called()


class TestRun:
    """Tests for the run command."""

    def test_run_command_string(self, env, mock_manager, mock_spawn):
        assert main(["run", "123456", "aws s3 ls \"$0\"", "s3://bucket"], env) == 0

        mock_manager.resolve_session.assert_called_once_with("default", "123456")
        argv = mock_spawn.call_args.args[0]
        assert argv == ["/bin/bash", "-c", "aws s3 ls \"$0\"", "s3://bucket"]

    def test_run_stdin(self, env, mock_manager, mock_spawn):
        main(["run", "dev", "123456", "-", "a", "b"], env)

        mock_manager.resolve_session.assert_called_once_with("dev", "123456")
        assert mock_spawn.call_args.args[0] == ["/bin/bash", "-s", "--", "a", "b"]

    def test_run_propagates_exit_code(self, env, mock_manager, mock_spawn):
        mock_spawn.return_value = 42
        assert main(["run", "123456", "exit 42"], env) == 42

    @pytest.mark.parametrize("values", [[], ["123456"], ["dev", "123456"], ["dev"]])
    def test_run_usage_errors(self, env, mock_manager, mock_spawn, values):
        assert main(["run"] + values, env) == 2
        mock_manager.resolve_session.assert_not_called()
        mock_spawn.assert_not_called()

    def test_run_service_failure(self, env, mock_manager, mock_spawn):
        mock_manager.resolve_session.side_effect = CredentialServiceError("AssumeRole failed")

        assert main(["run", "123456", "true"], env) == 2
        mock_spawn.assert_not_called()


def test_profiles(env, capsys):
    env["AWS_PROFILE"] = "short"

    assert main(["profiles"], env) == 0
    out = capsys.readouterr().out
    assert "→ short" in out
    assert "  assumed-role [mfa: arn:aws:iam::111122223333:mfa/alice, role:" in out


@patch('shaws.cli.setup_logging')
def test_debug_flag(mock_logging, env):
    main(["--debug"], env)
    mock_logging.assert_called_once_with(True)


@patch('shaws.cli.setup_logging')
def test_debug_environment(mock_logging, env):
    env["SHAWS_DEBUG"] = "1"
    main([], env)
    mock_logging.assert_called_once_with(True)
