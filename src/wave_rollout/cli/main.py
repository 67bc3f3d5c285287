"""Main CLI entry point."""

import sys
from typing import Any, Dict, Optional

import click
from rich.console import Console

from wave_rollout.utils.logging import setup_logging, get_logger
from wave_rollout.config.parser import Config, ConfigValidationError
from wave_rollout.config.models import RolloutConfig
from wave_rollout.cluster.client import OpenShiftClusterClient
from wave_rollout.cluster.credentials import ClusterClientManager
from wave_rollout.orchestrator.orchestrator import RolloutOrchestrator
from wave_rollout.orchestrator.progress import always_confirm
from wave_rollout.orchestrator.readiness import ReadinessWaiter
from wave_rollout.utils.errors import RolloutError
from wave_rollout.cli.output import RichProgressSink, print_report, print_request

console = Console()
logger = get_logger(__name__)


@click.group()
@click.option('--log-level', default='warning', envvar='WAVE_LOG_LEVEL',
              type=click.Choice(['debug', 'info', 'warning', 'error']))
@click.option('--log-dir', default='.wave/logs', envvar='WAVE_LOG_DIR',
              help='Directory for JSON logs (empty to disable)')
def cli(log_level, log_dir):
    """Batch rollout of container images to OpenShift deployment configs."""
    setup_logging(log_level, log_dir or None)


def load_config(config_path: Optional[str], overrides: Dict[str, Any]) -> RolloutConfig:
    """Load and validate configuration from file, environment and flags."""
    try:
        return Config(config_path).load(overrides)
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] Configuration file not found: {config_path}")
        sys.exit(1)
    except ConfigValidationError as e:
        console.print(f"[red]Configuration validation failed:[/red]\n")
        console.print(str(e))
        sys.exit(1)


def create_orchestrator(cfg: RolloutConfig, yes: bool, progress_sink: RichProgressSink) -> RolloutOrchestrator:
    """Create rollout orchestrator with all dependencies."""
    manager = ClusterClientManager(host=cfg.host, token=cfg.token, kubeconfig=cfg.kubeconfig)
    client = OpenShiftClusterClient(manager.api_client)

    def confirm(prompt: str) -> bool:
        return click.confirm(prompt, default=False)

    return RolloutOrchestrator(
        client=client,
        confirm=always_confirm if yes else confirm,
        progress_sink=progress_sink,
        retry_policy=cfg.retry.to_policy(),
        readiness_waiter=ReadinessWaiter(
            client,
            interval=cfg.readiness.interval,
            timeout=cfg.readiness.timeout
        )
    )


@cli.command()
@click.option('--projects', envvar='WAVE_PROJECTS', help='Regex filter for projects')
@click.option('--deployment', envvar='WAVE_DEPLOYMENT', help='Name of deployment configs')
@click.option('--current-image', envvar='WAVE_CURRENT_IMAGE', help='Current image sha or tag')
@click.option('--new-image', envvar='WAVE_NEW_IMAGE', help='New image sha or tag')
@click.option('--batch-size', envvar='WAVE_BATCHSIZE', type=int, help='Number of simultaneous rollouts')
@click.option('--container', envvar='WAVE_CONTAINER', help='Container to update (default: first)')
@click.option('--host', envvar='WAVE_HOST', help='API server URL')
@click.option('--token', envvar='WAVE_TOKEN', help='Bearer token')
@click.option('--kubeconfig', envvar='WAVE_KUBECONFIG', help='Path to the kubeconfig file')
@click.option('--config', 'config_path', envvar='WAVE_CONFIG', help='Config file (optional)')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
def rollout(projects, deployment, current_image, new_image, batch_size, container,
            host, token, kubeconfig, config_path, yes):
    """Roll a new image out to all matching deployment configs."""
    cfg = load_config(config_path, {
        'projects': projects,
        'deployment': deployment,
        'current_image': current_image,
        'new_image': new_image,
        'batch_size': batch_size,
        'container': container,
        'host': host,
        'token': token,
        'kubeconfig': kubeconfig,
    })
    request = cfg.to_request()
    print_request(console, request)

    progress_sink = RichProgressSink(console)
    try:
        orchestrator = create_orchestrator(cfg, yes, progress_sink)
        report = orchestrator.run(request)
    except RolloutError as e:
        progress_sink.stop()
        console.print(f"[red]Rollout aborted:[/red] {e.to_user_message()}")
        sys.exit(1)
    except Exception as e:
        progress_sink.stop()
        logger.exception("Unexpected error during rollout")
        console.print(f"[red]Unexpected error:[/red] {e}")
        sys.exit(1)

    print_report(console, report)

    if report.has_failures():
        sys.exit(1)


def main():
    """Console script entry point."""
    cli()


if __name__ == '__main__':
    main()
