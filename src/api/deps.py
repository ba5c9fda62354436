import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.clock import SystemClock
from src.adapters.permissions import PolicyPermissionGate
from src.adapters.sqlite.entries import SQLiteEntryRepo, SQLiteSectionRepo
from src.domain.criteria import CallerContext
from src.domain.entities import User
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("ENTRIES_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "entries.db")
        self.rules_path = self.base_dir / "rules.yaml"
        self.migrations_dir = self.base_dir / "migrations"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_entry_repo(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteEntryRepo:
    return SQLiteEntryRepo(settings.db_path, primary_locale=rules.project.primary_locale)


def get_section_repo(settings: Settings = Depends(get_settings)) -> SQLiteSectionRepo:
    return SQLiteSectionRepo(settings.db_path)


# --- Services ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


def get_permission_gate(
    policy: PolicyEngine = Depends(get_policy),
    sections: SQLiteSectionRepo = Depends(get_section_repo),
) -> PolicyPermissionGate:
    return PolicyPermissionGate(policy, sections)


# Clock singleton
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Caller ---
def get_current_user() -> User | None:
    """
    Current user for the request. Authentication belongs to the host
    application, which overrides this dependency; anonymous by default.
    """
    return None


def get_caller(
    locale: str | None = None,
    user: User | None = Depends(get_current_user),
    rules: Rules = Depends(get_rules),
) -> CallerContext:
    return CallerContext(
        user=user,
        capabilities=frozenset(rules.capabilities.enabled),
        locale=locale or rules.project.primary_locale,
    )
