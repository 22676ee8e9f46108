"""Command-line entry point.

Usage:
  ric --image IMAGE [--mounts HOST:CONTAINER]... [--root] -- COMMAND [ARGS...]
  ric --container NAME [--root] -- COMMAND [ARGS...]

Environment:
  RIC_IMAGE, RIC_CONTAINER, RIC_MOUNTS (comma-separated), RIC_ROOT,
  RIC_PROPAGATE_EXIT_CODE, RIC_LOG_LEVEL, RIC_LOG_FORMAT, RIC_DOCKER_BASE_URL.
  Flags take precedence over the environment.

Examples:
  # List the current directory from inside a fresh debian container
  ric --image debian -- ls

  # Run as root with an extra mount
  ric --image debian --root --mounts /data:/data -- ls /data

  # Exec into a running container
  ric --container dev-sandbox -- ls /
"""

import argparse
import sys
from typing import List, Optional, Sequence, Tuple

import structlog
from pydantic import ValidationError

from ._version import __version__
from .config import Settings, get_settings
from .models.errors import RicException
from .models.invocation import InvocationRequest, build_invocation
from .models.run import RunResult
from .services.container.client import DockerClientFactory
from .services.lifecycle import LifecycleCoordinator
from .utils.logging import setup_logging

logger = structlog.get_logger(__name__)

EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ric",
        description="Run a command inside a Docker container as if it ran locally.",
        epilog="Everything after -- is the command to run.",
    )
    target = parser.add_argument_group("target")
    target.add_argument("-i", "--image", help="Image to create a fresh container from")
    target.add_argument("-c", "--container", help="Running container to exec into")
    parser.add_argument(
        "-m",
        "--mounts",
        action="append",
        metavar="HOST:CONTAINER",
        help="Extra volume binding (repeatable); the working directory is always mounted at /tmp",
    )
    parser.add_argument(
        "--root",
        action="store_true",
        default=None,
        help="Run as 0:0 instead of the invoking user",
    )
    parser.add_argument(
        "--propagate-exit-code",
        action="store_true",
        default=None,
        help="Exit with the contained command's exit status",
    )
    parser.add_argument("--log-level", help="Log level (default: WARNING)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def split_command(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split arguments at the first ``--`` into (options, command)."""
    argv = list(argv)
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1 :]
    return argv, []


def load_settings(options: argparse.Namespace) -> Settings:
    """Environment settings with command-line flags layered on top."""
    return get_settings().with_overrides(
        image=options.image,
        container=options.container,
        mounts=options.mounts,
        root=options.root,
        propagate_exit_code=options.propagate_exit_code,
        log_level=options.log_level,
    )


def exit_status(result: RunResult, propagate_exit_code: bool) -> int:
    """Process exit status for a finished run."""
    if result.interrupted:
        return EXIT_INTERRUPTED
    if propagate_exit_code and result.exit_code is not None:
        return result.exit_code
    return 0


def run(settings: Settings, command: Sequence[str]) -> int:
    """Validate the invocation, then drive it through the coordinator."""
    spec = build_invocation(InvocationRequest.from_settings(settings, command))

    client_factory = DockerClientFactory(settings.docker)
    try:
        result = LifecycleCoordinator(client_factory).run(spec)
    finally:
        client_factory.close()

    logger.debug(
        "Run finished",
        state=result.state.value,
        exit_code=result.exit_code,
        interrupted=result.interrupted,
    )
    return exit_status(result, settings.propagate_exit_code)


def main(argv: Optional[Sequence[str]] = None) -> int:
    option_args, command = split_command(sys.argv[1:] if argv is None else argv)
    options = build_parser().parse_args(option_args)

    try:
        settings = load_settings(options)
    except ValidationError as e:
        print(f"ric: invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(settings.logging)

    if not command:
        logger.warning("No command was specified, finishing early")
        return 0

    try:
        return run(settings, command)
    except RicException as e:
        logger.error("Run failed", **e.to_log())
        print(f"ric: {e.message}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
