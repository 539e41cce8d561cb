"""Rich-based output formatting for CodeWhisper CLI commands."""

from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from codewhisper.core.config import Config


class RichOutputFormatter:
    """Terminal UI formatter using Rich library."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.console = Console()

    def info(self, message: str) -> None:
        self.console.print(f"[blue][INFO][/blue] {message}")

    def success(self, message: str) -> None:
        self.console.print(f"[green][SUCCESS][/green] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow][WARN][/yellow] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red][ERROR][/red] {message}", style="red")

    def verbose_info(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[cyan][DEBUG][/cyan] {message}")

    def startup_info(
        self, version: str, directory: str, session_id: str, config: Config, title: str
    ) -> None:
        """Display startup information in a styled panel."""
        info_table = Table.grid(padding=(0, 2))
        info_table.add_column(style="cyan")
        info_table.add_column()

        info_table.add_row("Version:", f"[green]{version}[/green]")
        info_table.add_row("Directory:", f"[blue]{directory}[/blue]")
        info_table.add_row("Session:", f"[blue]{session_id}[/blue]")
        info_table.add_row("Database:", f"[magenta]{config.database.path}[/magenta]")
        info_table.add_row(
            "Embeddings:", f"[yellow]{config.embedding.provider}[/yellow] ({config.embedding.model})"
        )
        llm_model = config.llm.model or config.llm.get_default_model()
        info_table.add_row("LLM:", f"[yellow]{config.llm.provider}[/yellow] ({llm_model})")

        self.console.print(
            Panel(
                info_table,
                title=f"[bold cyan]{title}[/bold cyan]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def completion_summary(self, stats: dict[str, Any], processing_time: float) -> None:
        """Display indexing summary in a styled panel."""
        summary_table = Table.grid(padding=(0, 2))
        summary_table.add_column(style="cyan")
        summary_table.add_column()

        summary_table.add_row("Indexed:", f"[green]{stats.get('files_parsed', 0)}[/green] files")
        summary_table.add_row("Skipped:", f"[yellow]{stats.get('files_skipped', 0)}[/yellow] files")
        summary_table.add_row("Symbols:", f"[blue]{stats.get('symbols', 0)}[/blue]")
        summary_table.add_row("Chunks:", f"[blue]{stats.get('chunks', 0)}[/blue]")
        summary_table.add_row("Vectors:", f"[magenta]{stats.get('vectors_stored', 0)}[/magenta]")
        if stats.get("failed_batches"):
            summary_table.add_row(
                "Failed batches:", f"[red]{stats['failed_batches']}[/red]"
            )
        summary_table.add_row("Time:", f"[cyan]{processing_time:.2f}s[/cyan]")

        self.console.print(
            Panel(
                summary_table,
                title="[bold green]Indexing Complete[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def answer(self, question: str, text: str) -> None:
        self.console.print(
            Panel(Markdown(text), title=f"[bold]{question}[/bold]", border_style="green")
        )

    def session_stats(self, stats: dict[str, Any]) -> None:
        table = Table.grid(padding=(0, 1))
        table.add_column(style="dim")
        table.add_column()
        for key in (
            "files_count",
            "pending_count",
            "conversation_length",
            "batches_dispatched",
            "queue_size",
            "failed_files",
        ):
            if key in stats:
                table.add_row(f"{key.replace('_', ' ')}:", str(stats[key]))
        self.console.print(table)
