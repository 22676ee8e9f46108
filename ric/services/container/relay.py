"""Forward a container's multiplexed output to the local standard streams."""

import codecs
import sys
from typing import Dict, Iterable, Iterator, Optional, TextIO, Tuple

import structlog
from docker.errors import DockerException
from docker.utils.socket import frames_iter

from ...models.errors import StreamError
from ...models.events import LogEvent, StreamKind

logger = structlog.get_logger(__name__)


def raw_socket(sock):
    """The underlying socket of an attach/exec response."""
    return getattr(sock, "_sock", sock)


class LogRelay:
    """Writes log events to stdout/stderr in arrival order.

    Stdin echo frames are written to stdout. Each stream keeps its own
    incremental UTF-8 decoder so a character split across two frames is
    reassembled; malformed bytes are replaced rather than raised.
    """

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self._decoders: Dict[StreamKind, codecs.IncrementalDecoder] = {}

    def _decoder(self, kind: StreamKind) -> codecs.IncrementalDecoder:
        if kind not in self._decoders:
            self._decoders[kind] = codecs.getincrementaldecoder("utf-8")(errors="replace")
        return self._decoders[kind]

    def _target(self, event: LogEvent) -> TextIO:
        return self.stderr if event.is_stderr else self.stdout

    @staticmethod
    def events(frames: Iterable[Tuple[int, bytes]]) -> Iterator[LogEvent]:
        """Lazily turn ``(stream_id, payload)`` frames into log events."""
        for stream_id, data in frames:
            if not data:
                continue
            try:
                yield LogEvent.from_frame(stream_id, data)
            except ValueError:
                logger.warning("Dropping frame from unknown stream", stream_id=stream_id)

    def write(self, event: LogEvent) -> None:
        text = self._decoder(event.stream).decode(event.data)
        if text:
            target = self._target(event)
            target.write(text)
            target.flush()

    def forward(self, events: Iterable[LogEvent]) -> int:
        """Write every event until the iterable is exhausted or fails.

        Returns the number of events written.
        """
        count = 0
        try:
            for event in events:
                self.write(event)
                count += 1
        except (OSError, DockerException) as e:
            error = StreamError(f"Output stream ended unexpectedly: {e}")
            logger.warning("Log relay stopped", events=count, **error.to_log())
        finally:
            self.flush()
        return count

    def flush(self) -> None:
        """Emit anything the decoders are still holding back."""
        for kind, decoder in self._decoders.items():
            tail = decoder.decode(b"", final=True)
            if tail:
                target = self.stderr if kind is StreamKind.STDERR else self.stdout
                target.write(tail)
                target.flush()
        self._decoders.clear()

    def relay(self, sock, tty: bool = False) -> int:
        """Relay the frames read from an attach or exec socket until it closes."""
        raw = raw_socket(sock)
        # A silent command must not be mistaken for a closed stream.
        if hasattr(raw, "settimeout"):
            raw.settimeout(None)
        return self.forward(self.events(frames_iter(raw, tty)))
