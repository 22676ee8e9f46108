"""Interrupt handling for a running container.

A signal handler runs on the main thread in between whatever blocking call
the main flow is making, so it does no engine work itself. It takes the
container id out of its slot and hands the kill and remove to a private
single-thread executor that owns its own Docker client. The main flow keeps
its in-flight call; it ends once the engine kills the container.
"""

import signal
import socket
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, Optional

import structlog
from docker import DockerClient

from ..services.container.cleanup import kill_container, remove_container

logger = structlog.get_logger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class InterruptHandler:
    """Handler that stops and removes the bound container on interrupt."""

    def __init__(
        self,
        client_factory: Callable[[], DockerClient],
        signals: Iterable[int] = DEFAULT_SIGNALS,
    ):
        self._client_factory = client_factory
        self._signals = tuple(signals)
        self._previous_handlers = {}
        # Re-entrant: the signal handler runs on the main thread and may fire
        # while the main flow holds the lock.
        self._lock = threading.RLock()
        self._container_id: Optional[str] = None
        self._socket = None
        self._client: Optional[DockerClient] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._future: Optional[Future] = None
        self.interrupted = threading.Event()

    @property
    def installed(self) -> bool:
        return bool(self._previous_handlers)

    def install(self) -> None:
        """Route the handled signals to :meth:`handle`."""
        for signum in self._signals:
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)
        logger.debug("Interrupt handler installed")

    def uninstall(self) -> None:
        """Restore the signal handlers that were active before :meth:`install`."""
        for signum, previous in self._previous_handlers.items():
            signal.signal(signum, previous)
        self._previous_handlers = {}

    def bind_container(self, container_id: str) -> None:
        """Arm the handler for ``container_id``.

        The private client is connected here, while nothing is being
        interrupted. An interrupt that arrived before binding is acted on
        immediately.
        """
        if self._executor is None:
            self._client = self._client_factory()
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="ric-interrupt"
            )
        with self._lock:
            self._container_id = container_id
        if self.interrupted.is_set():
            self.handle()

    def bind_socket(self, sock) -> None:
        """Arm the handler to detach from ``sock`` without touching the container.

        An interrupt that arrived before binding shuts the socket down at once.
        """
        with self._lock:
            self._socket = sock
        if self.interrupted.is_set():
            self.handle()

    def disarm(self) -> Optional[str]:
        """Take the container id so a later interrupt no longer acts on it."""
        with self._lock:
            container_id, self._container_id = self._container_id, None
            self._socket = None
        return container_id

    def _on_signal(self, signum, frame) -> None:
        logger.info("Received interrupt", signal=signal.Signals(signum).name)
        self.handle()

    def handle(self) -> None:
        """React to an interrupt. Safe to call repeatedly."""
        self.interrupted.set()
        with self._lock:
            container_id, self._container_id = self._container_id, None
            sock, self._socket = self._socket, None

        if container_id is not None:
            logger.info("Stopping container", container_id=container_id[:12])
            self._future = self._executor.submit(self._kill_and_remove, container_id)
        elif sock is not None:
            logger.info("Detaching from exec output")
            _shutdown_socket(sock)
        else:
            logger.debug("Interrupt received with nothing to stop")

    def _kill_and_remove(self, container_id: str) -> None:
        kill_container(self._client, container_id)
        remove_container(self._client, container_id)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until a kill/remove started by an interrupt has finished."""
        future = self._future
        if future is None:
            return
        try:
            future.result(timeout=timeout)
        except Exception as e:
            logger.error("Interrupt cleanup failed", error=str(e))

    def close(self) -> None:
        """Finish in-flight work, release the private client and restore signals."""
        self.uninstall()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.error(f"Error closing interrupt Docker client: {e}")
            self._client = None


def _shutdown_socket(sock) -> None:
    raw = getattr(sock, "_sock", sock)
    try:
        raw.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug("Socket already closed", error=str(e))
