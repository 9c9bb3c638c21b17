import asyncio
import subprocess
import sys

import pytest

from tdocker.backend import CommandDispatcher, extract_port, validate_action
from tdocker.config import DockerConfig
from tdocker.exceptions import PortNotFoundError
from tdocker.model import ActionKind, Failure, Record, Success
from tdocker.parser import PS_FORMAT

RUNNING = Record("abc123", "nginx", "nginx -g daemon", "2024-01-01", "Up 2 hours", "0.0.0.0:8080->80/tcp", "web")
EXITED = Record("def456", "redis", "redis-server", "2024-01-02", "Exited (1) 5 minutes ago", "", "cache")


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def mock_run(mocker):
    return mocker.patch("tdocker.backend.subprocess.run", return_value=completed())


class TestExtractPort:
    def test_first_host_port(self):
        assert extract_port("0.0.0.0:8080->80/tcp") == "8080"

    def test_multiple_mappings(self):
        assert extract_port("0.0.0.0:5432->5432/tcp, :::5432->5432/tcp, 0.0.0.0:9000->9000/tcp") == "5432"

    def test_udp_only_is_rejected(self):
        with pytest.raises(PortNotFoundError):
            extract_port("0.0.0.0:53->53/udp")

    def test_empty_is_rejected(self):
        with pytest.raises(PortNotFoundError):
            extract_port("")


class TestValidateAction:
    def test_attach_on_exited_is_rejected(self):
        rejection = validate_action(ActionKind.ATTACH, EXITED)
        assert isinstance(rejection, Failure)
        assert "stopped" in rejection.error

    def test_attach_on_running_is_allowed(self):
        assert validate_action(ActionKind.ATTACH, RUNNING) is None

    def test_open_without_port_is_rejected(self):
        assert isinstance(validate_action(ActionKind.OPEN, EXITED), Failure)

    def test_stop_is_always_allowed(self):
        assert validate_action(ActionKind.STOP, EXITED) is None


class TestCapturedActions:
    def test_list_units(self, mock_run):
        mock_run.return_value = completed(stdout="abc\n")

        result = asyncio.run(CommandDispatcher().list_units())

        assert result == Success("abc\n")
        argv = mock_run.call_args.args[0]
        assert argv == ["docker", "ps", "--all", "--format", PS_FORMAT]

    def test_list_units_empty_is_success(self, mock_run):
        result = asyncio.run(CommandDispatcher().list_units())
        assert result == Success("")

    def test_list_units_failure_reports_stderr(self, mock_run):
        mock_run.return_value = completed(returncode=1, stderr="Cannot connect to the Docker daemon")

        result = asyncio.run(CommandDispatcher().list_units())

        assert isinstance(result, Failure)
        assert "Cannot connect to the Docker daemon" in result.error

    def test_stop(self, mock_run):
        result = asyncio.run(CommandDispatcher().invoke(ActionKind.STOP, RUNNING))

        assert result.ok
        assert mock_run.call_args.args[0] == ["docker", "stop", "abc123"]
        assert mock_run.call_args.kwargs["stderr"] == subprocess.STDOUT

    def test_restart(self, mock_run):
        asyncio.run(CommandDispatcher().invoke(ActionKind.RESTART, EXITED))
        assert mock_run.call_args.args[0] == ["docker", "restart", "def456"]

    def test_delete_removes_volumes(self, mock_run):
        asyncio.run(CommandDispatcher().invoke(ActionKind.DELETE, EXITED))
        assert mock_run.call_args.args[0] == ["docker", "rm", "--volumes", "def456"]

    def test_delete_without_volumes(self, mock_run):
        dispatcher = CommandDispatcher(DockerConfig(remove_volumes=False))
        asyncio.run(dispatcher.invoke(ActionKind.DELETE, EXITED))
        assert mock_run.call_args.args[0] == ["docker", "rm", "def456"]

    def test_non_zero_exit_carries_output(self, mock_run):
        mock_run.return_value = completed(returncode=1, stdout="Error: No such container: abc123")

        result = asyncio.run(CommandDispatcher().invoke(ActionKind.STOP, RUNNING))

        assert isinstance(result, Failure)
        assert "exit 1" in result.error
        assert "No such container" in result.error

    def test_launch_failure(self, mock_run):
        mock_run.side_effect = FileNotFoundError("docker")

        result = asyncio.run(CommandDispatcher().invoke(ActionKind.STOP, RUNNING))

        assert isinstance(result, Failure)
        assert result.error.startswith("failed to launch")

    def test_custom_binary(self, mock_run):
        dispatcher = CommandDispatcher(DockerConfig(binary="podman"))
        asyncio.run(dispatcher.invoke(ActionKind.STOP, RUNNING))
        assert mock_run.call_args.args[0][0] == "podman"

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell script")
    def test_undecodable_output_is_replaced(self, tmp_path):
        fake = tmp_path / "docker"
        fake.write_text("#!/bin/sh\nprintf 'abc\\377\\tweb\\n'\n")
        fake.chmod(0o755)

        result = CommandDispatcher(DockerConfig(binary=str(fake))).list_units_sync()

        assert result == Success("abc�\tweb\n")

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell script")
    def test_undecodable_error_output_is_replaced(self, tmp_path):
        fake = tmp_path / "docker"
        fake.write_text("#!/bin/sh\nprintf 'bad \\377 id\\n'\nexit 1\n")
        fake.chmod(0o755)

        result = asyncio.run(CommandDispatcher(DockerConfig(binary=str(fake))).invoke(ActionKind.STOP, RUNNING))

        assert isinstance(result, Failure)
        assert "bad � id" in result.error


class TestOpenEndpoint:
    def test_opens_first_host_port(self, mocker):
        popen = mocker.patch("tdocker.backend.subprocess.Popen")

        result = asyncio.run(CommandDispatcher().invoke(ActionKind.OPEN, RUNNING))

        assert result == Success("Opened http://localhost:8080")
        assert popen.call_args.args[0] == ["xdg-open", "http://localhost:8080"]

    def test_no_port_spawns_nothing(self, mocker):
        popen = mocker.patch("tdocker.backend.subprocess.Popen")

        result = asyncio.run(CommandDispatcher().invoke(ActionKind.OPEN, EXITED))

        assert isinstance(result, Failure)
        assert "no port found" in result.error
        popen.assert_not_called()

    def test_missing_opener(self, mocker):
        mocker.patch("tdocker.backend.subprocess.Popen", side_effect=FileNotFoundError("xdg-open"))

        result = CommandDispatcher().open_endpoint(RUNNING)

        assert isinstance(result, Failure)


class TestInteractiveHandoff:
    def test_attach_command(self):
        argv = CommandDispatcher().attach_command(RUNNING)
        assert argv == ["docker", "exec", "-it", "abc123", "bash"]

    def test_attach_stopped_is_rejected_before_spawn(self, mocker):
        call = mocker.patch("tdocker.backend.subprocess.call")

        result = CommandDispatcher().attach_command(EXITED)

        assert isinstance(result, Failure)
        assert "Exited (1) 5 minutes ago" in result.error
        call.assert_not_called()

    def test_run_interactive_non_zero(self, mocker):
        mocker.patch("tdocker.backend.subprocess.call", return_value=126)

        result = CommandDispatcher().run_interactive(["docker", "exec", "-it", "abc123", "bash"])

        assert isinstance(result, Failure)
        assert "exit 126" in result.error

    def test_invoke_refuses_attach(self, mocker):
        call = mocker.patch("tdocker.backend.subprocess.call")

        result = asyncio.run(CommandDispatcher().invoke(ActionKind.ATTACH, RUNNING))

        assert isinstance(result, Failure)
        assert "needs the terminal" in result.error
        call.assert_not_called()
