"""CLI entry point using Typer - 租户运维命令"""
import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from hms_app.config import settings
from hms_app.database import SessionLocal, init_db
from hms_app.logging_config import setup_logging
from hms_app.models.schemas import PermissionSnapshot
from hms_app.models.tenancy import HotelUser, UserStatus
from hms_app.security.auth import get_password_hash
from hms_app.services.identifier_store import SqlIdentifierStore
from hms_core.errors import FormatError
from hms_core.identifiers.generator import IdentifierGenerator
from hms_core.security.context import SYSTEM_HOTEL_ID
from hms_core.security.evaluator import permission_evaluator
from hms_core.security.roles import GOD_ADMIN, RoleLevel, default_catalog

app = typer.Typer(
    name="hms-admin",
    help="Tenancy administration: schema, bootstrap admin, identifiers and roles.",
    add_completion=False,
)
console = Console()


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL")):
    setup_logging(log_level)


@app.command("init-db")
def init_db_command():
    """Create all tables."""
    init_db()
    console.print("[green]Database initialized.[/green]")


@app.command("seed-admin")
def seed_admin(
    email: str = typer.Option(..., "--email", help="GOD Admin login email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
    first_name: str = typer.Option("System", "--first-name"),
    last_name: str = typer.Option("Admin", "--last-name"),
):
    """Create the system-tenant GOD Admin if none exists."""
    db = SessionLocal()
    try:
        existing = db.query(HotelUser).filter(HotelUser.role == GOD_ADMIN).first()
        if existing:
            console.print(f"[yellow]GOD Admin already exists:[/yellow] {existing.hotel_user_id}")
            return

        generator = IdentifierGenerator(SqlIdentifierStore(db), max_retries=settings.ID_ALLOCATION_RETRIES)
        user_id = generator.allocate_hotel_user_id(SYSTEM_HOTEL_ID, GOD_ADMIN)
        snapshot = PermissionSnapshot(
            level=RoleLevel.GOD_ADMIN.name,
            role_level=int(RoleLevel.GOD_ADMIN),
            permissions=sorted(permission_evaluator.effective_permissions(GOD_ADMIN)),
        )
        db.add(HotelUser(
            hotel_user_id=user_id,
            hotel_id=SYSTEM_HOTEL_ID,
            email=email.strip().lower(),
            password_hash=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            role=GOD_ADMIN,
            permissions=snapshot.model_dump_json(exclude_none=True),
            status=UserStatus.ACTIVE.value,
        ))
        db.commit()
        console.print(f"[green]GOD Admin created:[/green] {user_id}")
    finally:
        db.close()


@app.command("parse-id")
def parse_id(identifier: str = typer.Argument(..., help="Hotel user ID (15-digit or legacy 14-digit)")):
    """Decode a hotel user ID."""
    try:
        parsed = IdentifierGenerator.parse(identifier)
    except FormatError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title=identifier)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("format", parsed.format_version.value)
    table.add_row("entity", parsed.entity_type.value)
    table.add_row("hotel_id", parsed.hotel_id)
    table.add_row("hotel_number", parsed.hotel_number)
    table.add_row("role_digit", str(parsed.role_digit))
    table.add_row("roles", ", ".join(parsed.candidate_roles))
    table.add_row("user_number", str(parsed.user_number))
    console.print(table)


@app.command("roles")
def roles(as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table")):
    """List roles with their tier and effective permissions."""
    rows = [
        {
            "role": name,
            "level": default_catalog.level_of(name),
            "permissions": sorted(permission_evaluator.effective_permissions(name)),
        }
        for name in default_catalog.role_names()
    ]
    if as_json:
        typer.echo(json.dumps(rows, indent=2))
        return

    table = Table(title="Roles")
    table.add_column("Role")
    table.add_column("Level", justify="right")
    table.add_column("Permissions")
    for row in rows:
        table.add_row(row["role"], str(row["level"]), ", ".join(row["permissions"]))
    console.print(table)


if __name__ == "__main__":
    app()
