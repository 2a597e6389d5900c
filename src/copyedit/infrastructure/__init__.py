"""Infrastructure adapters for the copyedit bot."""

from src.copyedit.infrastructure.audit_log import EditAuditLog
from src.copyedit.infrastructure.mw_client import MediaWikiClient
from src.copyedit.infrastructure.rule_files import load_rule_definitions
from src.copyedit.infrastructure.site_config import ConfigError, load_sites

__all__ = ["ConfigError", "EditAuditLog", "MediaWikiClient", "load_rule_definitions", "load_sites"]
