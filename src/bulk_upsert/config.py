"""
Explicit engine configuration.

Nothing is inferred from ambient connection state: the dialect is either
given here or detected once from the executor when an Upserter is built.
"""

import os
from dataclasses import dataclass

from .model import ConflictPolicy, Dialect


@dataclass(frozen=True)
class UpsertConfig:
    """
    Args:
        dialect: SQL dialect of the store (None = detect from the executor)
        if_exists: Policy applied when a call does not name one
    """

    dialect: Dialect | None = None
    if_exists: ConflictPolicy = ConflictPolicy.IGNORE

    def __post_init__(self):
        if self.dialect is not None:
            object.__setattr__(self, "dialect", Dialect.parse(self.dialect))
        object.__setattr__(self, "if_exists", ConflictPolicy.parse(self.if_exists))

    @classmethod
    def from_env(cls) -> "UpsertConfig":
        """
        Load configuration from environment variables

        Environment variables:
            UPSERT_DIALECT: generic, mysql, postgresql or sqlite (default: detect)
            UPSERT_IF_EXISTS: ignore, update or error (default: ignore)
        """
        dialect = os.getenv("UPSERT_DIALECT") or None
        if_exists = os.getenv("UPSERT_IF_EXISTS", ConflictPolicy.IGNORE.value)
        return cls(dialect=dialect, if_exists=if_exists)
