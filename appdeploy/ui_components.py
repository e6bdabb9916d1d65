"""
appdeploy - UI Components
Standardized command header
"""

from typing import Optional

from rich.console import Console

from appdeploy.constants import PROG_NAME

BRAND_COLOR = "color(214)"


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a minimal command header.

    Args:
        title: Main title (e.g., "Deploy Application")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console()

    prefix = f" [bold {BRAND_COLOR}]{PROG_NAME}[/bold {BRAND_COLOR}] [dim]›[/dim]"
    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [cyan]{value}[/cyan]")

    console.print()
