#!/usr/bin/env python3
"""
Schema migrations for the Supabase user store.

Applies the SQL files in migrations/ in name order and records each one,
with a checksum, in a tracking table. Only needed when
USER_STORE_BACKEND=supabase.

Usage:
    python run_migrations.py              # Apply pending migrations
    python run_migrations.py --status     # Show applied and pending migrations
    python run_migrations.py --dry-run    # List what would be applied

Configuration:
    SUPABASE_DB_URL=postgresql://postgres.[project-ref]:[password]@[host]:6543/postgres
"""

import argparse
import hashlib
import sys
from dataclasses import dataclass
from pathlib import Path

import psycopg2
from psycopg2 import sql
from rich.console import Console
from rich.table import Table

from shared.config import get_settings

console = Console()

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATIONS_TABLE = "_migrations"


@dataclass(frozen=True)
class Migration:
    name: str
    path: Path
    checksum: str


def file_checksum(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """All .sql files in ``directory``, sorted by name."""
    if not directory.exists():
        console.print(f"[yellow]Warning:[/yellow] Migrations directory not found: {directory}")
        return []
    return [
        Migration(name=path.name, path=path, checksum=file_checksum(path.read_text()))
        for path in sorted(directory.glob("*.sql"))
    ]


def ensure_migrations_table(conn) -> None:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL(
                """
                CREATE TABLE IF NOT EXISTS {} (
                    id SERIAL PRIMARY KEY,
                    name VARCHAR(255) NOT NULL UNIQUE,
                    checksum VARCHAR(64) NOT NULL,
                    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
                """
            ).format(sql.Identifier(MIGRATIONS_TABLE))
        )
    conn.commit()


def get_applied_migrations(conn) -> dict[str, str]:
    """Map of applied migration name to the checksum it was applied with."""
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("SELECT name, checksum FROM {} ORDER BY name").format(
                sql.Identifier(MIGRATIONS_TABLE)
            )
        )
        return {name: checksum for name, checksum in cur.fetchall()}


def pending_migrations(
    available: list[Migration],
    applied: dict[str, str],
) -> list[Migration]:
    """
    Migrations not applied yet.

    An applied migration whose file changed afterwards is reported but
    not re-run.
    """
    pending = []
    for migration in available:
        if migration.name not in applied:
            pending.append(migration)
        elif applied[migration.name] != migration.checksum:
            console.print(
                f"[yellow]Warning:[/yellow] Migration {migration.name} has changed since it was applied!"
            )
    return pending


def apply_migration(conn, migration: Migration) -> None:
    """Run one migration and record it in the same transaction."""
    console.print(f"[blue]Running:[/blue] {migration.name}...")
    try:
        with conn.cursor() as cur:
            cur.execute(migration.path.read_text())
            cur.execute(
                sql.SQL("INSERT INTO {} (name, checksum) VALUES (%s, %s)").format(
                    sql.Identifier(MIGRATIONS_TABLE)
                ),
                (migration.name, migration.checksum),
            )
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        console.print(f"[red]✗[/red] {migration.name} failed: {e}")
        raise
    console.print(f"[green]✓[/green] {migration.name} applied")


def show_status(available: list[Migration], applied: dict[str, str]) -> None:
    if not available and not applied:
        console.print("[dim]No migrations found.[/dim]")
        return

    table = Table(title="Migration Status")
    table.add_column("Migration", style="cyan")
    table.add_column("Status")
    table.add_column("Checksum")

    for migration in available:
        if migration.name not in applied:
            status = "[yellow]Pending[/yellow]"
        elif applied[migration.name] != migration.checksum:
            status = "[red]Changed[/red]"
        else:
            status = "[green]Applied[/green]"
        table.add_row(migration.name, status, migration.checksum)

    console.print(table)


def connect():
    settings = get_settings()
    if not settings.supabase_db_url:
        console.print("[red]Error:[/red] SUPABASE_DB_URL is not set.")
        sys.exit(1)
    try:
        return psycopg2.connect(settings.supabase_db_url)
    except psycopg2.Error as e:
        console.print(f"[red]Database connection failed:[/red] {e}")
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description="Apply Portcullis database migrations")
    parser.add_argument("--status", action="store_true", help="Show migration status only")
    parser.add_argument("--dry-run", action="store_true", help="List pending migrations only")
    args = parser.parse_args()

    console.print("[bold]Portcullis Database Migrations[/bold]")

    conn = connect()
    try:
        ensure_migrations_table(conn)
        available = discover_migrations()
        applied = get_applied_migrations(conn)

        if args.status:
            show_status(available, applied)
            return

        pending = pending_migrations(available, applied)
        if not pending:
            console.print("[green]All migrations are up to date![/green]")
            return

        for migration in pending:
            if args.dry_run:
                console.print(f"[cyan]Would run:[/cyan] {migration.name}")
            else:
                apply_migration(conn, migration)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
