"""Process-wide runtime information."""

import enum
from dataclasses import dataclass

from .exceptions import ConfigurationError
from .settings import Settings


class ExecutionMode(str, enum.Enum):
    """Role of this process in a deployment."""

    STANDALONE = "STANDALONE"
    CLUSTER = "CLUSTER"
    SLAVE = "SLAVE"


@dataclass(frozen=True)
class RuntimeInfo:
    """Read-only runtime facts shared by every request.

    Attributes:
        execution_mode: Current execution mode; writes are refused in SLAVE mode.
        base_http_url: Externally visible base URL of the server, if known.
    """

    execution_mode: ExecutionMode = ExecutionMode.STANDALONE
    base_http_url: str | None = None

    @property
    def is_slave(self) -> bool:
        return self.execution_mode is ExecutionMode.SLAVE

    @classmethod
    def from_settings(cls, settings: Settings) -> "RuntimeInfo":
        try:
            mode = ExecutionMode(settings.execution_mode.upper())
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown execution mode '{settings.execution_mode}'"
            ) from e
        return cls(execution_mode=mode, base_http_url=f"http://{settings.host}:{settings.port}")
