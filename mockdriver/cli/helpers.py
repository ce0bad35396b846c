"""CLI helper utilities."""

from rich_toolkit import RichToolkit, RichToolkitTheme
from rich_toolkit.styles import TaggedStyle


def get_rich_toolkit() -> RichToolkit:
    theme = RichToolkitTheme(
        style=TaggedStyle(tag_width=11),
        theme={
            "tag.title": "white on #009485",
            "tag": "white on #007166",
            "placeholder": "grey85",
            "text": "white",
            "result": "grey85",
            # Status tags
            "error": "bold red",
            "success": "bold green",
            "warning": "bold yellow",
            "info": "blue",
            # CLI specific tags
            "version": "cyan",
            "config": "cyan",
            "route": "magenta",
        },
    )

    return RichToolkit(theme=theme)


def code(text: str) -> str:
    return f"[cyan]{text}[/cyan]"


def warning(text: str) -> str:
    return f"[yellow]{text}[/yellow]"
