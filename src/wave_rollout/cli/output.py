"""Console rendering of rollout progress and results."""

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from ..orchestrator.models import OutcomeStatus, RolloutReport, RolloutRequest
from ..orchestrator.progress import ProgressEvent, ProgressEventType, ProgressSink

STATUS_STYLES = {
    OutcomeStatus.UPDATED.value: "[green]✓[/green]",
    OutcomeStatus.ALREADY_CURRENT.value: "[cyan]=[/cyan]",
    OutcomeStatus.SKIPPED.value: "[dim]-[/dim]",
    OutcomeStatus.FAILED.value: "[red]✗[/red]",
}


class RichProgressSink(ProgressSink):
    """Progress sink that drives a Rich progress bar once updates begin."""

    def __init__(self, console: Console):
        self.console = console
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console
        )
        self.task_id = None
        self.total = 0
        self.completed = 0

    def emit(self, event: ProgressEvent) -> None:
        if event.type == ProgressEventType.SELECTION_COMPLETED:
            self.console.print(
                f"\nFound [bold]{event.total}[/bold] deployments to update ({event.message}).\n"
            )
        elif event.type == ProgressEventType.BATCH_STARTED:
            self._ensure_started()
            self.progress.update(
                self.task_id,
                description=f"[cyan]Batch {event.batch_number}:[/cyan] updating {event.total} deployments"
            )
        elif event.type == ProgressEventType.TARGET_STARTED:
            self._ensure_started()
            self.total += 1
            self.progress.update(self.task_id, total=self.total)
        elif event.type == ProgressEventType.TARGET_POLLED:
            self.progress.update(
                self.task_id,
                description=f"[cyan]Waiting:[/cyan] {event.target} ({event.message})"
            )
        elif event.type == ProgressEventType.TARGET_COMPLETED:
            self.completed += 1
            marker = STATUS_STYLES.get(event.status, "")
            self.progress.update(
                self.task_id,
                completed=self.completed,
                description=f"{marker} {event.target}"
            )
            if event.status == OutcomeStatus.FAILED.value:
                self.progress.console.print(f"  [red]✗[/red] {event.target}: {event.message}")
        elif event.type == ProgressEventType.ROLLOUT_COMPLETED:
            self.stop()

    def stop(self) -> None:
        """Stop the live display if it was started."""
        if self.task_id is not None:
            self.progress.stop()

    def _ensure_started(self) -> None:
        if self.task_id is None:
            self.progress.start()
            self.task_id = self.progress.add_task("[cyan]Starting rollout...", total=0)


def print_request(console: Console, request: RolloutRequest) -> None:
    """Describe the rollout before anything is resolved."""
    image_filter = "having any image"
    if request.current_image:
        image_filter = f'having image "{request.current_image}"'

    console.print(Panel.fit(
        f'Rolling out image "[bold]{request.new_image}[/bold]" to all deployments named '
        f'"[bold]{request.name}[/bold]" ({image_filter}) in projects matching '
        f'"[bold]{request.namespace_pattern}[/bold]".\n'
        f"Batch concurrency: {request.batch_concurrency}",
        title="Rollout",
        border_style="cyan"
    ))


def print_report(console: Console, report: RolloutReport) -> None:
    """Print the summary of a rollout run."""
    console.print()
    console.print(f"Found {report.total_projects} projects in total, "
                  f"{report.matching_projects} matching.")
    if report.new_image:
        console.print(f"New image: {report.new_image}")
    if report.current_image:
        console.print(f"Current image: {report.current_image}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Result", style="cyan")
    table.add_column("Count", justify="right")
    labels = {
        'namespace_mismatch': "Projects not matching",
        'not_found': "Deployment not found",
        'image_mismatch': "Not matching current image",
        'already_current': "Already at new image",
        'updated': "Updated",
        'skipped': "Skipped",
        'failed': "Failed",
    }
    for key, value in report.get_summary().items():
        table.add_row(labels[key], str(value))
    console.print(table)

    failed = report.get_failed_outcomes()
    if failed:
        console.print("\n[bold]Failed Deployments:[/bold]")
        for outcome in failed:
            note = " (image already changed)" if outcome.image_applied else ""
            console.print(f"  [red]✗[/red] {outcome.key}: {outcome.reason}{note}")

    if report.cancelled:
        console.print("\n[yellow]Rollout cancelled, nothing was changed[/yellow]")
    elif report.has_failures():
        console.print(Panel.fit(
            f"[red]✗ Rollout finished with failures[/red]\n\n"
            f"Updated: {report.updated}\n"
            f"Failed: {report.failed}\n"
            f"Duration: {report.duration:.2f}s",
            title="Rollout Failed",
            border_style="red"
        ))
    else:
        console.print(Panel.fit(
            f"[green]✓ Rollout successful[/green]\n\n"
            f"Updated: {report.updated}\n"
            f"Batches: {report.batch_count}\n"
            f"Duration: {report.duration:.2f}s",
            title="Done",
            border_style="green"
        ))
