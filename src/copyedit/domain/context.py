from dataclasses import dataclass, field
from typing import Any, Callable

# Verbosity ladder: a message tagged "light" shows at light and verbose.
_LEVEL_RANK = {"none": 0, "light": 1, "verbose": 2}

StatusSink = Callable[[str], None]


def _discard(_message: str) -> None:
    return None


@dataclass
class StageContext:
    """Verbosity and output sink handed to every transformation stage."""

    log_level: str = "none"
    sink: StatusSink = field(default=_discard)
    indent: int = 0

    def __post_init__(self) -> None:
        if self.log_level not in _LEVEL_RANK:
            raise ValueError(f"Unsupported log level: {self.log_level}")

    def enabled(self, level: str) -> bool:
        if self.log_level == "none":
            return False
        return _LEVEL_RANK[level] <= _LEVEL_RANK[self.log_level]

    def section(self, title: str, level: str = "light") -> None:
        if not self.enabled(level):
            return
        self.sink(f">>> {title}")
        self.indent = 1

    def status(self, name: str, value: Any = None, level: str = "verbose") -> None:
        if not self.enabled(level):
            return
        self.sink(f"{'  ' * self.indent}> {name}: {value!r}")
