"""Log stream event models."""

from dataclasses import dataclass
from enum import IntEnum


class StreamKind(IntEnum):
    """Origin channel of a multiplexed frame, numbered as the engine tags them."""

    STDIN = 0
    STDOUT = 1
    STDERR = 2


@dataclass(frozen=True)
class LogEvent:
    """One chunk of output from the contained command."""

    stream: StreamKind
    data: bytes

    @classmethod
    def from_frame(cls, stream_id: int, data: bytes) -> "LogEvent":
        return cls(stream=StreamKind(stream_id), data=data)

    @property
    def is_stderr(self) -> bool:
        return self.stream is StreamKind.STDERR
