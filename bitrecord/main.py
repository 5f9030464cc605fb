"""
Layout inspector and demo entry point.

Run with: bitrecord-demo   (or python -m bitrecord.main)
"""
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .catalog import Domain
from .storage import Collection

DEMO_FIELDS = [8, 8, 16, 256]
DEMO_VALUES = [200, 10, 5000, 123456789]


def render_layout(collection: Collection) -> Table:
    """Build a table with one row per field: width, page, bit offset and mask."""
    table = Table(title=f"Collection {collection.collection_id} layout", box=box.SIMPLE_HEAVY)
    table.add_column("Field", justify="right", style="cyan")
    table.add_column("Width", justify="right")
    table.add_column("Page", justify="right", style="magenta")
    table.add_column("Bit offset", justify="right")
    table.add_column("Bits", style="dim")

    for index, (width, offset) in enumerate(zip(collection.get_widths(),
                                                  collection.layout.offsets())):
        table.add_row(
            str(index),
            str(width),
            str(offset.page),
            str(offset.bit_offset),
            f"[{offset.bit_offset}, {offset.bit_offset + width.bits})",
        )

    free = [f"page {info.page}: {info.padding_bits} free bits"
            for info in collection.describe() if info.padding_bits]
    if free:
        table.caption = ", ".join(free)
    return table


def render_record(collection: Collection, record_id: int) -> Table:
    """Build a table of a record's unpacked values alongside its raw page words."""
    values = collection.unpack(record_id)
    words = collection.get_page_words(record_id)

    table = Table(title=f"Record {record_id}", box=box.SIMPLE_HEAVY)
    table.add_column("Field", justify="right", style="cyan")
    table.add_column("Value", justify="right", style="bold green")
    table.add_column("Page word", style="dim")

    for index, value in enumerate(values):
        page = collection.resolve_offset(index).page
        table.add_row(str(index), str(value), f"{words.get(page, 0):#066x}")
    return table


def run_demo(console: Optional[Console] = None) -> list[int]:
    """Pack the demo values into a fresh domain, print it, and return the record."""
    console = console or Console()
    domain = Domain()
    domain.initialize_domain(domain.context("demo"), DEMO_FIELDS)
    owner = domain.context("demo")

    record_id = domain.push(owner, 0)
    pages = domain.multimod(owner, 0, record_id, range(len(DEMO_FIELDS)), DEMO_VALUES)
    collection = domain.get_collection(0)

    console.print(Panel(
        f"[bold blue]bitrecord[/bold blue]\n[dim]fields {DEMO_FIELDS}, "
        f"{len(pages)} page write(s)[/dim]",
        box=box.DOUBLE, padding=(1, 2)))
    console.print(render_layout(collection))
    console.print(render_record(collection, record_id))
    return domain.read_record(owner, 0, record_id)


def main():
    """Main entry point of the application."""
    run_demo()


if __name__ == "__main__":
    main()
