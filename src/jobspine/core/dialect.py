"""Parameter-marker flavours for the job store.

The job repositories never import a driver. They only need to know how
the connection they were handed spells a bound parameter: SQLite (tests,
single-node workers) takes ``?`` while psycopg-style PostgreSQL drivers
(shared stores) take ``%s``. Everything else in the job SQL is portable.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Dialect:
    """How one database family binds positional parameters."""

    name: str
    marker: str

    def placeholder(self, index: int = 0) -> str:  # noqa: ARG002
        # positional markers are index-free in both supported families
        return self.marker

    def placeholders(self, count: int) -> str:
        """``count`` markers joined for a VALUES list or an IN clause."""
        return ", ".join([self.marker] * count)

    def assignments(self, columns: Iterable[str]) -> str:
        """``col = ?`` pairs for an UPDATE ... SET clause."""
        return ", ".join(f"{column} = {self.marker}" for column in columns)


SQLITE = Dialect(name="sqlite", marker="?")
POSTGRESQL = Dialect(name="postgresql", marker="%s")

_ALIASES: dict[str, Dialect] = {
    "sqlite": SQLITE,
    "sqlite3": SQLITE,
    "postgresql": POSTGRESQL,
    "postgres": POSTGRESQL,
}


def get_dialect(db_type: str) -> Dialect:
    """Look up a dialect by database name, case-insensitively.

    Raises:
        ValueError: For anything other than SQLite or PostgreSQL.
    """
    try:
        return _ALIASES[db_type.lower()]
    except KeyError:
        known = sorted({d.name for d in _ALIASES.values()})
        raise ValueError(f"Unknown dialect '{db_type}' (expected one of {known})") from None


__all__ = ["Dialect", "POSTGRESQL", "SQLITE", "get_dialect"]
