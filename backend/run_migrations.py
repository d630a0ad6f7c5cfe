#!/usr/bin/env python3
"""
Database migration runner for Supabase.

Applies the SQL files in migrations/ to the Supabase PostgreSQL
database, in file name order, recording each one with a checksum.

Usage:
    python run_migrations.py                    # Run pending migrations
    python run_migrations.py --status           # Show migration status
    python run_migrations.py --dry-run          # Show what would run
    python run_migrations.py --force 002        # Force re-run a migration

Configuration:
    Set SUPABASE_DB_URL in your .env file (Supabase Dashboard → Settings →
    Database → Connection string → URI).
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

    @classmethod
    def load(cls, path: Path) -> "Migration":
        return cls(path.name, path, checksum_of(path.read_text()))


def checksum_of(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()[:16]


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """All migration files, in the order they must be applied."""
    if not directory.exists():
        console.print(f"[yellow]Warning:[/yellow] Migrations directory not found: {directory}")
        return []
    return [Migration.load(path) for path in sorted(directory.glob("*.sql"))]


def get_db_connection():
    """Get a connection to the Supabase PostgreSQL database."""
    settings = get_settings()

    if not settings.supabase_db_url:
        console.print("[red]Error:[/red] SUPABASE_DB_URL is not set.")
        console.print("Find it in Supabase Dashboard → Settings → Database → Connection string → URI")
        sys.exit(1)

    try:
        return psycopg2.connect(settings.supabase_db_url)
    except psycopg2.Error as e:
        console.print(f"[red]Database connection failed:[/red] {e}")
        sys.exit(1)


def ensure_migrations_table(conn):
    """Create the migrations tracking table if it doesn't exist."""
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


def get_applied_migrations(conn) -> dict[str, dict]:
    """Applied migrations keyed by file name."""
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("SELECT name, checksum, applied_at FROM {} ORDER BY name").format(
                sql.Identifier(MIGRATIONS_TABLE)
            )
        )
        return {row[0]: {"checksum": row[1], "applied_at": row[2]} for row in cur.fetchall()}


def pending_migrations(migrations: list[Migration], applied: dict[str, dict]) -> list[Migration]:
    """Migrations not yet applied. Edited files that were applied are only warned about."""
    pending = []
    for migration in migrations:
        if migration.name not in applied:
            pending.append(migration)
        elif applied[migration.name]["checksum"] != migration.checksum:
            console.print(f"[yellow]Warning:[/yellow] Migration {migration.name} has changed since it was applied!")
    return pending


def run_migration(conn, migration: Migration, dry_run: bool = False):
    """Apply one migration and record it, in a single transaction."""
    if dry_run:
        console.print(f"[cyan]Would run:[/cyan] {migration.name}")
        return

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


def show_status(conn):
    """Print applied and pending migrations as a table."""
    applied = get_applied_migrations(conn)
    pending = pending_migrations(discover_migrations(), applied)

    if not applied and not pending:
        console.print("[dim]No migrations found.[/dim]")
        return

    table = Table(title="Migration Status")
    table.add_column("Migration", style="cyan")
    table.add_column("Status")
    table.add_column("Applied At")
    table.add_column("Checksum")

    for name, info in applied.items():
        applied_at = info["applied_at"].strftime("%Y-%m-%d %H:%M:%S") if info["applied_at"] else ""
        table.add_row(name, "[green]Applied[/green]", applied_at, info["checksum"])
    for migration in pending:
        table.add_row(migration.name, "[yellow]Pending[/yellow]", "", migration.checksum)

    console.print(table)


def force_migration(conn, prefix: str):
    """Re-run one migration selected by file name prefix."""
    matches = [m for m in discover_migrations() if m.name.startswith(prefix)]
    if len(matches) != 1:
        console.print(f"[red]Error:[/red] Expected one migration matching '{prefix}', found {len(matches)}")
        for m in matches:
            console.print(f"  - {m.name}")
        sys.exit(1)

    migration = matches[0]
    console.print(f"[yellow]Warning:[/yellow] Force re-running migration: {migration.name}")
    if input("Continue? [y/N] ").lower() != "y":
        console.print("Aborted.")
        return

    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("DELETE FROM {} WHERE name = %s").format(sql.Identifier(MIGRATIONS_TABLE)),
            (migration.name,),
        )
    conn.commit()
    run_migration(conn, migration)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run database migrations for Supabase")
    parser.add_argument("--status", action="store_true", help="Show migration status without running anything")
    parser.add_argument("--dry-run", action="store_true", help="Show what migrations would run")
    parser.add_argument("--force", metavar="PREFIX", help="Force re-run a migration by prefix (e.g., '002')")
    args = parser.parse_args()

    console.print("[bold]Eval Express Database Migrations[/bold]")
    console.print()

    conn = get_db_connection()
    ensure_migrations_table(conn)

    try:
        if args.status:
            show_status(conn)
            return
        if args.force:
            force_migration(conn, args.force)
            return

        pending = pending_migrations(discover_migrations(), get_applied_migrations(conn))
        if not pending:
            console.print("[green]All migrations are up to date![/green]")
            return

        console.print(f"Found {len(pending)} pending migration(s):")
        for migration in pending:
            console.print(f"  - {migration.name}")
        console.print()

        for migration in pending:
            run_migration(conn, migration, dry_run=args.dry_run)

        if not args.dry_run:
            console.print()
            console.print("[green]All migrations completed successfully![/green]")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
