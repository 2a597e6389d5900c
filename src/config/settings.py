# Run configuration: .env file first, then environment overrides.

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

LOG_LEVELS = ("none", "light", "verbose")


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class RulesConfig:
    typos: bool = True
    grammar: bool = True
    prose_linting: bool = True
    mw_linting: bool = True
    international_english: bool = True
    dubious: bool = True
    glossary: bool = True

    def disabled(self) -> tuple[str, ...]:
        return tuple(name for name, enabled in vars(self).items() if not enabled)


@dataclass
class Settings:
    sites_file: Path = Path("sites.json")
    rules_dir: Path = Path(".")
    report_dir: Path = Path("reports")
    audit_dir: Path | None = None
    log_level: str = "none"
    simulate: bool = False
    show_progress: bool = True
    rules: RulesConfig = field(default_factory=RulesConfig)

    @classmethod
    def load(cls) -> "Settings":
        settings = cls()

        if val := os.environ.get("COPYEDIT_SITES_FILE"):
            settings.sites_file = Path(val).expanduser()
        if val := os.environ.get("COPYEDIT_RULES_DIR"):
            settings.rules_dir = Path(val).expanduser()
        if val := os.environ.get("COPYEDIT_REPORT_DIR"):
            settings.report_dir = Path(val).expanduser()
        if val := os.environ.get("COPYEDIT_AUDIT_DIR"):
            settings.audit_dir = Path(val).expanduser()
        if val := os.environ.get("COPYEDIT_LOG_LEVEL"):
            if val.lower() in LOG_LEVELS:
                settings.log_level = val.lower()
        if val := os.environ.get("COPYEDIT_SIMULATE"):
            settings.simulate = _as_bool(val)
        if val := os.environ.get("COPYEDIT_SHOW_PROGRESS"):
            settings.show_progress = _as_bool(val)

        return settings.normalized()

    def normalized(self) -> "Settings":
        # Simulation always reports everything it would have done.
        if self.simulate:
            self.log_level = "verbose"
        return self
