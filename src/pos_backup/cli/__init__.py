"""CLI for database backup and restore.

Usage:
    pos-backup create
    pos-backup list
    pos-backup restore-data motormods_backup_2025-01-15_09-30-00.db --yes
    pos-backup restore-file motormods_backup_2025-01-15_09-30-00.db --yes
    pos-backup import /media/usb/motormods_backup.db --yes
    pos-backup export motormods_backup_2025-01-15_09-30-00.db /media/usb/
    pos-backup delete motormods_backup_2025-01-15_09-30-00.db
    pos-backup path [FILENAME]
    pos-backup safety
    pos-backup prune --days 14
    pos-backup auto
    pos-backup history --limit 10

Commands:
    create        - Create a consistent backup of the live database
    list          - List backups, newest first
    restore-data  - Reload rows from a backup (no restart needed)
    restore-file  - Replace the database file with a backup (restart needed)
    import        - Replace the database file with an external backup
    export        - Copy a backup to another location
    delete        - Delete a backup
    path          - Show the backups directory or a backup's full path
    safety        - Create a safety backup of the live database
    prune         - Delete backups older than the retention window
    auto          - Create today's backup if it doesn't exist yet
    history       - Show recorded backup attempts
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pos_backup.errors import BackupError
from pos_backup.service import BackupService

console = Console()


def _format_size(num_bytes: int) -> str:
    """Human-readable file size."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _confirm(args: argparse.Namespace, prompt: str) -> bool:
    """Ask before a destructive command unless --yes was given."""
    if args.yes:
        return True
    response = console.input(f"{prompt} Continue? [y/N] ")
    return response.lower() in ("y", "yes")


# ============================================================================
# Command implementations
# ============================================================================


def cmd_create(service: BackupService, args: argparse.Namespace) -> int:
    artifact = service.create_backup()
    console.print(
        f"[bold green]v[/bold green] Backup created: [cyan]{artifact.filename}[/cyan] "
        f"({_format_size(artifact.file_size)})"
    )
    return 0


def cmd_list(service: BackupService, args: argparse.Namespace) -> int:
    artifacts = service.list_backups()
    if not artifacts:
        console.print("[yellow]No backups found.[/yellow]")
        return 0

    table = Table(title="Backups", show_header=True, header_style="bold")
    table.add_column("Filename", style="cyan")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    table.add_column("Modified", style="dim")

    for artifact in artifacts:
        table.add_row(
            artifact.filename,
            artifact.kind,
            _format_size(artifact.file_size),
            artifact.timestamp,
        )

    console.print(table)
    return 0


def cmd_restore_data(service: BackupService, args: argparse.Namespace) -> int:
    if not _confirm(args, f"This will replace all data with the contents of {args.backup}."):
        console.print("Cancelled.")
        return 0

    outcome = service.restore_data(args.backup)

    console.print(f"[bold green]v[/bold green] {outcome.message}")
    if outcome.safety_backup:
        console.print(f"  Safety backup: [cyan]{outcome.safety_backup}[/cyan]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Table", style="dim")
    table.add_column("Status")
    table.add_column("Rows", justify="right")
    table.add_column("Failed", justify="right")

    for result in outcome.tables:
        status = {
            "copied": "[green]copied[/green]",
            "missing": "[yellow]not in backup[/yellow]",
            "failed": "[red]failed[/red]",
        }[result.status]
        table.add_row(result.table, status, str(result.rows), str(result.rows_failed))

    console.print(table)

    if outcome.needs_reconnect:
        console.print(
            "[yellow]Foreign key enforcement could not be re-enabled. "
            "Restart the application.[/yellow]"
        )
    return 0


def cmd_restore_file(service: BackupService, args: argparse.Namespace) -> int:
    if not _confirm(args, f"This will replace the database file with {args.filename}."):
        console.print("Cancelled.")
        return 0

    result = service.restore_file(args.filename)
    console.print(f"[bold green]v[/bold green] {result.message}")
    console.print("[dim]Restart the application to load the restored database.[/dim]")
    return 0


def cmd_import(service: BackupService, args: argparse.Namespace) -> int:
    if not _confirm(args, f"This will replace the database file with {args.source}."):
        console.print("Cancelled.")
        return 0

    result = service.import_external_backup(args.source)
    console.print(f"[bold green]v[/bold green] {result.message}")
    console.print("[dim]Restart the application to load the imported database.[/dim]")
    return 0


def cmd_export(service: BackupService, args: argparse.Namespace) -> int:
    message = service.export_backup(args.filename, args.destination)
    console.print(f"[bold green]v[/bold green] {message}")
    return 0


def cmd_delete(service: BackupService, args: argparse.Namespace) -> int:
    message = service.delete_backup(args.filename)
    console.print(f"[bold green]v[/bold green] {message}")
    return 0


def cmd_path(service: BackupService, args: argparse.Namespace) -> int:
    if args.filename:
        path = service.get_backup_file_path(args.filename)
    else:
        path = service.get_backups_dir_path()
    console.print(path, soft_wrap=True, markup=False, highlight=False)
    return 0


def cmd_safety(service: BackupService, args: argparse.Namespace) -> int:
    filename = service.create_safety_backup()
    console.print(f"[bold green]v[/bold green] Safety backup created: [cyan]{filename}[/cyan]")
    return 0


def cmd_prune(service: BackupService, args: argparse.Namespace) -> int:
    deleted = service.prune_backups(args.days)
    if not deleted:
        console.print("No backups to prune.")
        return 0
    console.print(f"[bold green]v[/bold green] Pruned {len(deleted)} backups:")
    for filename in deleted:
        console.print(f"  - {filename}")
    return 0


def cmd_auto(service: BackupService, args: argparse.Namespace) -> int:
    if not service.config.auto_backup_enabled:
        console.print("[yellow]Automatic backup is disabled.[/yellow]")
        return 0

    artifact = service.ensure_daily_backup()
    if artifact is None:
        console.print("Backup already done for today.")
    else:
        console.print(
            f"[bold green]v[/bold green] Daily backup created: [cyan]{artifact.filename}[/cyan]"
        )
    return 0


def cmd_history(service: BackupService, args: argparse.Namespace) -> int:
    entries = service.get_backup_log(args.limit)
    if not entries:
        console.print("[yellow]No backup history recorded.[/yellow]")
        return 0

    table = Table(title="Backup history", show_header=True, header_style="bold")
    table.add_column("Date", style="dim")
    table.add_column("File", style="cyan")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    table.add_column("Notes")

    for entry in entries:
        status = "[green]success[/green]" if entry.status == "success" else "[red]failed[/red]"
        table.add_row(
            entry.backup_date,
            entry.backup_file,
            entry.backup_type,
            _format_size(entry.file_size) if entry.file_size is not None else "-",
            status,
            entry.notes or "",
        )

    console.print(table)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pos-backup",
        description="Backup and restore for the point-of-sale database",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to pos-backup.toml (default: ./pos-backup.toml if present)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show log output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_create = subparsers.add_parser("create", help="Create a database backup")
    p_create.set_defaults(func=cmd_create)

    p_list = subparsers.add_parser("list", help="List backups, newest first")
    p_list.set_defaults(func=cmd_list)

    p_restore_data = subparsers.add_parser(
        "restore-data",
        help="Reload rows from a backup without restarting",
    )
    p_restore_data.add_argument(
        "backup",
        help="Backup filename in the backups directory, or an absolute path",
    )
    p_restore_data.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")
    p_restore_data.set_defaults(func=cmd_restore_data)

    p_restore_file = subparsers.add_parser(
        "restore-file",
        help="Replace the database file with a backup (restart required)",
    )
    p_restore_file.add_argument("filename", help="Backup filename in the backups directory")
    p_restore_file.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")
    p_restore_file.set_defaults(func=cmd_restore_file)

    p_import = subparsers.add_parser(
        "import",
        help="Replace the database file with an external backup (restart required)",
    )
    p_import.add_argument("source", help="Path to a .db backup file")
    p_import.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")
    p_import.set_defaults(func=cmd_import)

    p_export = subparsers.add_parser("export", help="Copy a backup to another location")
    p_export.add_argument("filename", help="Backup filename in the backups directory")
    p_export.add_argument("destination", help="Destination file or directory")
    p_export.set_defaults(func=cmd_export)

    p_delete = subparsers.add_parser("delete", help="Delete a backup")
    p_delete.add_argument("filename", help="Backup filename in the backups directory")
    p_delete.set_defaults(func=cmd_delete)

    p_path = subparsers.add_parser("path", help="Show the backups directory or a backup's path")
    p_path.add_argument("filename", nargs="?", default=None, help="Backup filename")
    p_path.set_defaults(func=cmd_path)

    p_safety = subparsers.add_parser("safety", help="Create a safety backup of the database")
    p_safety.set_defaults(func=cmd_safety)

    p_prune = subparsers.add_parser("prune", help="Delete backups older than the retention window")
    p_prune.add_argument(
        "--days",
        type=int,
        default=None,
        help="Retention window in days (default: from config)",
    )
    p_prune.set_defaults(func=cmd_prune)

    p_auto = subparsers.add_parser("auto", help="Create today's backup if missing, then prune")
    p_auto.set_defaults(func=cmd_auto)

    p_history = subparsers.add_parser("history", help="Show recorded backup attempts")
    p_history.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of entries to show (default: 20)",
    )
    p_history.set_defaults(func=cmd_history)

    return parser


def main() -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    parser = _build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    try:
        service = BackupService.from_config_file(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        return args.func(service, args)
    except BackupError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
