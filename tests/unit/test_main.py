"""Unit tests for the command-line entry point."""

from unittest.mock import MagicMock, patch

import pytest

from ric.main import EXIT_INTERRUPTED, exit_status, main, split_command
from ric.models.errors import EngineUnreachableError
from ric.models.invocation import ExistingContainer, NewContainer
from ric.models.run import RunResult, RunState


@pytest.fixture
def engine():
    """Patch out the engine so no Docker calls can happen."""
    with patch("ric.main.DockerClientFactory") as factory_cls, patch(
        "ric.main.LifecycleCoordinator"
    ) as coordinator_cls:
        coordinator = coordinator_cls.return_value
        coordinator.run.return_value = RunResult(
            state=RunState.CLEANED_UP, exit_code=0, owns_container=True
        )
        yield MagicMock(factory_cls=factory_cls, coordinator_cls=coordinator_cls, coordinator=coordinator)


def spec_of(engine):
    return engine.coordinator.run.call_args.args[0]


class TestSplitCommand:
    """Tests for separating flags from the command."""

    def test_split_at_first_separator(self):
        assert split_command(["--image", "debian", "--", "ls", "--", "-l"]) == (
            ["--image", "debian"],
            ["ls", "--", "-l"],
        )

    def test_no_separator(self):
        assert split_command(["--image", "debian"]) == (["--image", "debian"], [])


class TestPreflight:
    """Tests for checks that happen before any engine call."""

    def test_empty_command_is_a_no_op(self, engine):
        assert main(["--image", "debian"]) == 0
        engine.factory_cls.assert_not_called()
        engine.coordinator.run.assert_not_called()

    def test_empty_command_without_target_is_a_no_op(self, engine):
        assert main([]) == 0
        engine.factory_cls.assert_not_called()

    def test_no_image_or_container(self, engine, capsys):
        assert main(["--", "ls"]) == 2
        engine.factory_cls.assert_not_called()
        assert "image or a container" in capsys.readouterr().err

    def test_both_image_and_container(self, engine):
        assert main(["--image", "debian", "--container", "sandbox", "--", "ls"]) == 2
        engine.factory_cls.assert_not_called()

    def test_invalid_environment(self, engine, monkeypatch, capsys):
        monkeypatch.setenv("RIC_LOG_FORMAT", "xml")

        assert main(["--image", "debian", "--", "ls"]) == 2
        engine.factory_cls.assert_not_called()
        assert "invalid configuration" in capsys.readouterr().err

    def test_invalid_mount(self, engine):
        assert main(["--image", "debian", "--mounts", "nocolon", "--", "ls"]) == 2
        engine.factory_cls.assert_not_called()


class TestInvocation:
    """Tests for building the invocation from flags and environment."""

    def test_image_run(self, engine, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert main(["--image", "debian", "--", "ls", "-la"]) == 0

        spec = spec_of(engine)
        assert isinstance(spec, NewContainer)
        assert spec.image == "debian"
        assert spec.command == ("ls", "-la")
        assert spec.volumes == [f"{tmp_path}:/tmp"]
        engine.factory_cls.return_value.close.assert_called_once()

    def test_mounts_in_order_before_workdir(self, engine, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        main(["-i", "debian", "-m", "/a:/a", "-m", "/b:/b", "--", "ls"])

        assert spec_of(engine).volumes == ["/a:/a", "/b:/b", f"{tmp_path}:/tmp"]

    def test_root_flag(self, engine):
        main(["--image", "debian", "--root", "--", "whoami"])
        assert str(spec_of(engine).user) == "0:0"

    def test_image_from_environment(self, engine, monkeypatch):
        monkeypatch.setenv("RIC_IMAGE", "debian")

        assert main(["--", "cat", ".gitignore"]) == 0
        assert spec_of(engine).image == "debian"

    def test_flag_overrides_environment(self, engine, monkeypatch):
        monkeypatch.setenv("RIC_IMAGE", "debian")

        main(["--image", "alpine", "--", "ls"])

        assert spec_of(engine).image == "alpine"

    def test_mounts_from_environment(self, engine, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RIC_MOUNTS", "/a:/a,/b:/b")

        main(["--image", "debian", "--", "ls"])

        assert spec_of(engine).volumes == ["/a:/a", "/b:/b", f"{tmp_path}:/tmp"]

    def test_container_run(self, engine):
        main(["--container", "run_in_container", "--", "ls", "/"])

        spec = spec_of(engine)
        assert isinstance(spec, ExistingContainer)
        assert spec.name == "run_in_container"
        assert spec.command == ("ls", "/")


class TestExitStatus:
    """Tests for the process exit status."""

    def test_command_status_not_propagated_by_default(self, engine):
        engine.coordinator.run.return_value = RunResult(exit_code=5)
        assert main(["--image", "debian", "--", "false"]) == 0

    def test_propagate_exit_code(self, engine):
        engine.coordinator.run.return_value = RunResult(exit_code=5)
        assert main(["--image", "debian", "--propagate-exit-code", "--", "false"]) == 5

    def test_propagate_from_environment(self, engine, monkeypatch):
        monkeypatch.setenv("RIC_PROPAGATE_EXIT_CODE", "true")
        engine.coordinator.run.return_value = RunResult(exit_code=5)
        assert main(["--image", "debian", "--", "false"]) == 5

    def test_interrupted(self, engine):
        engine.coordinator.run.return_value = RunResult(interrupted=True, exit_code=137)
        assert main(["--image", "debian", "--propagate-exit-code", "--", "sleep", "60"]) == EXIT_INTERRUPTED

    def test_fatal_error(self, engine, capsys):
        engine.coordinator.run.side_effect = EngineUnreachableError("Docker socket not found")

        assert main(["--image", "debian", "--", "ls"]) == 1
        assert "Docker socket not found" in capsys.readouterr().err
        engine.factory_cls.return_value.close.assert_called_once()

    def test_keyboard_interrupt_before_container(self, engine):
        engine.coordinator.run.side_effect = KeyboardInterrupt

        assert main(["--image", "debian", "--", "ls"]) == EXIT_INTERRUPTED

    @pytest.mark.parametrize(
        "result,propagate,expected",
        [
            (RunResult(exit_code=0), False, 0),
            (RunResult(exit_code=1), False, 0),
            (RunResult(exit_code=1), True, 1),
            (RunResult(exit_code=None), True, 0),
            (RunResult(exit_code=1, interrupted=True), True, EXIT_INTERRUPTED),
        ],
    )
    def test_exit_status(self, result, propagate, expected):
        assert exit_status(result, propagate) == expected
