"""
core/migrate.py -- Versioned SQL migrations applied from a directory.

Migration files live in migrations/ and are named NNNN_description.sql. Each
file is applied once, in version order, inside its own transaction, and
recorded in the schema_migrations table. Running with nothing pending is a
normal outcome ("no change"), not an error.

The DDL in migrations/ sticks to types both SQLite and PostgreSQL accept
(TEXT, VARCHAR, INTEGER), so the same files serve local development, tests,
and production.

Statement splitting is deliberately simple: statements are separated by a
semicolon at the end of a line. Migration files must not put semicolons inside
string literals at line ends.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, select
from sqlalchemy.engine import Engine

logger = logging.getLogger("judgmentnotes.migrate")

_MIGRATION_NAME = re.compile(r"^(\d+)_[\w\-]+\.sql$")

_metadata = MetaData()

_schema_migrations = Table(
    "schema_migrations",
    _metadata,
    Column("version", Integer, primary_key=True, autoincrement=False),
    Column("name", String(255), nullable=False),
    Column("applied_at", String(32), nullable=False),
)


class MigrationError(RuntimeError):
    """Raised when migrations cannot be located or applied. Fatal at startup."""


def _discover(directory: Path) -> list[tuple[int, Path]]:
    if not directory.is_dir():
        raise MigrationError(f"Migrations directory not found: {directory}")
    found: dict[int, Path] = {}
    for path in directory.iterdir():
        match = _MIGRATION_NAME.match(path.name)
        if match is None:
            continue
        version = int(match.group(1))
        if version in found:
            raise MigrationError(f"Duplicate migration version {version}: {found[version].name}, {path.name}")
        found[version] = path
    return sorted(found.items())


def split_statements(sql: str) -> list[str]:
    """Split a migration file into individual statements.

    Full-line `--` comments are dropped. A statement ends at a line whose last
    non-blank character is a semicolon.
    """
    statements: list[str] = []
    buf: list[str] = []
    for line in sql.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        buf.append(line)
        if stripped.endswith(";"):
            stmt = "\n".join(buf).strip().rstrip(";").strip()
            if stmt:
                statements.append(stmt)
            buf = []
    tail = "\n".join(buf).strip()
    if tail:
        statements.append(tail)
    return statements


def run_migrations(engine: Engine, directory: str | Path) -> list[str]:
    """Apply all pending migrations from directory. Returns applied file names."""
    migrations = _discover(Path(directory))
    _metadata.create_all(engine)

    with engine.connect() as conn:
        applied = set(conn.execute(select(_schema_migrations.c.version)).scalars())

    pending = [(v, p) for v, p in migrations if v not in applied]
    if not pending:
        logger.info("migrations: no change")
        return []

    done: list[str] = []
    for version, path in pending:
        statements = split_statements(path.read_text(encoding="utf-8"))
        try:
            with engine.begin() as conn:
                for stmt in statements:
                    conn.exec_driver_sql(stmt)
                conn.execute(
                    _schema_migrations.insert().values(
                        version=version,
                        name=path.name,
                        applied_at=datetime.now(timezone.utc).isoformat(),
                    )
                )
        except Exception as exc:
            raise MigrationError(f"Migration {path.name} failed: {exc}") from exc
        logger.info("migrations: applied %s", path.name)
        done.append(path.name)

    logger.info("migrations: applied successfully (%d)", len(done))
    return done
