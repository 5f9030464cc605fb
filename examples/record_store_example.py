#!/usr/bin/env python3
"""
Record Store Walkthrough for bitrecord

This example demonstrates the complete working of the packed record store:
- Creating a domain and granting permissions
- Laying out fields of different widths across 256-bit pages
- Single-field updates and multi-field updates with minimal page writes
- Growing a collection with new fields
- Private fields and permission-gated reads
- Error handling and validation

Run with: python examples/record_store_example.py
"""

from rich import box
from rich.console import Console
from rich.panel import Panel

from bitrecord.catalog import Domain, PermissionLevel
from bitrecord.core.exceptions import BitRecordException
from bitrecord.main import render_layout, render_record

console = Console()


def print_header(title: str, subtitle: str = ""):
    """Print a header panel"""
    if subtitle:
        full_title = f"[bold blue]{title}[/bold blue]\n[dim]{subtitle}[/dim]"
    else:
        full_title = f"[bold blue]{title}[/bold blue]"

    console.print(Panel(full_title, style="bright_blue", box=box.DOUBLE, padding=(1, 2)))


def print_step(step_num: int, title: str, description: str = ""):
    """Print a step header"""
    step_text = f"[bold yellow]Step {step_num}: {title}[/bold yellow]"
    if description:
        step_text += f"\n[dim italic]{description}[/dim italic]"
    console.print(step_text)
    console.print()


def print_success(message: str):
    console.print(f"[bold green]✓[/bold green] {message}")


def print_info(message: str):
    console.print(f"[bold cyan]ℹ[/bold cyan] {message}")


def print_error(message: str):
    console.print(f"[bold red]✗[/bold red] {message}")


def main():
    print_header("bitrecord walkthrough", "Packed unsigned fields in 256-bit pages")

    # Step 1: domain and permissions
    print_step(1, "Create a domain", "The creator becomes OWNER of collection 0")
    domain = Domain()
    domain.initialize_domain(domain.context("alice"), [8, 8, 16, 256])
    owner = domain.context("alice")
    domain.grant_permission(owner, "bob", PermissionLevel.ADMIN)
    domain.grant_permission(owner, "carol", PermissionLevel.VIEWER)
    admin = domain.context("bob")
    viewer = domain.context("carol")
    print_success("alice=OWNER, bob=ADMIN, carol=VIEWER")

    # Step 2: layout
    print_step(2, "Inspect the layout", "Fields never cross a page boundary")
    console.print(render_layout(domain.get_collection(0)))

    # Step 3: writes
    print_step(3, "Write a record", "multimod rewrites each touched page once")
    record_id = domain.push(admin, 0)
    pages = domain.multimod(admin, 0, record_id, [0, 1, 2, 3], [200, 10, 5000, 123456789])
    print_success(f"4 fields written with {len(pages)} page write(s): pages {pages}")
    pages = domain.modify(admin, 0, record_id, 1, 11)
    print_success(f"modify rewrote page {pages[0]} only")
    console.print(render_record(domain.get_collection(0), record_id))

    # Step 4: growth
    print_step(4, "Grow the collection", "Existing offsets never move")
    index = domain.append_field(owner, 0, 32)
    print_info(f"field {index} lives at {domain.resolve_offset(viewer, 0, index)}")
    print_info(f"record now reads {domain.read_record(admin, 0, record_id)}")

    # Step 5: privacy
    print_step(5, "Private fields", "Viewers lose access; admins keep it")
    domain.toggle_private(admin, 0, 3)
    try:
        domain.read_field(viewer, 0, record_id, 3)
    except BitRecordException as e:
        print_error(f"carol: {e}")
    print_success(f"bob reads field 3 = {domain.read_field(admin, 0, record_id, 3)}")

    # Step 6: validation
    print_step(6, "Rejected writes", "Failed calls leave the record untouched")
    for label, call in [
        ("overflow", lambda: domain.modify(admin, 0, record_id, 0, 256)),
        ("duplicate", lambda: domain.multimod(admin, 0, record_id, [1, 1], [1, 2])),
        ("bad width", lambda: domain.append_field(owner, 0, 24)),
    ]:
        try:
            call()
        except BitRecordException as e:
            print_error(f"{label}: {type(e).__name__}: {e}")
    print_info(f"record still reads {domain.read_record(admin, 0, record_id)}")


if __name__ == "__main__":
    main()
