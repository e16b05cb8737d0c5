"""Command-line interface for the ATEM tally bridge."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.traceback import install as install_rich_traceback

from .adapters.atem import AtemSwitcherAdapter
from .adapters.osc_transport import LoggingTransport, OscTallyTransport
from .adapters.scenario import ScenarioError, ScenarioSwitcherAdapter
from .config import Config, ConfigError
from .dispatch.addressing import TallyAddressing
from .dispatch.tally_dispatcher import TallyDispatcher
from .engine.reconciler import StartupReconciler
from .engine.tally_state import TallyStateEngine
from .models.source_key import sorted_keys
from .service import TallyService
from .utils.env_config import EnvConfigError
from .utils.logging_setup import configure_logging

install_rich_traceback(suppress=[typer])

app = typer.Typer(
    help="Drive tally lights over OSC from a Blackmagic ATEM switcher.",
)
console = Console()
logger = logging.getLogger(__name__)

CONFIG_OPTION_HELP = "Path to a YAML config file (repeat to merge several, later files win)."


def _load_config(config_paths: Optional[List[Path]]) -> Config:
    try:
        config = Config.from_yaml(config_paths or [])
    except (ConfigError, EnvConfigError) as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    configure_logging(config.system.log_level)
    if config_paths:
        logger.info("Loaded and merged %s config file(s): %s", len(config_paths), ", ".join(map(str, config_paths)))
    return config


def _build_transport(config: Config, dry_run: bool):
    if dry_run:
        return LoggingTransport()
    return OscTallyTransport(config.osc.host, config.osc.port)


async def _run_service(service: TallyService) -> None:
    try:
        await service.run()
    finally:
        await service.shutdown()


def _summary(service: TallyService) -> None:
    on_air = ", ".join(str(key) for key in sorted_keys(service.on_air)) or "nothing"
    console.print(
        Panel.fit(
            f"On air: {on_air}\nCommands sent: {service.dispatcher.sent_count}, failed: {service.dispatcher.failed_count}",
            title="Tally bridge stopped",
            style="bold cyan",
        )
    )


@app.command()
def run(
    config_paths: Optional[List[Path]] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log tally commands instead of sending OSC."),
) -> None:
    """Connect to the switcher and keep the tally lights in sync until interrupted."""
    config = _load_config(config_paths)
    adapter = AtemSwitcherAdapter(
        config.switcher.host,
        poll_interval_ms=config.switcher.poll_interval_ms,
        connect_timeout_ms=config.switcher.connect_timeout_ms,
        reconnect=config.switcher.reconnect,
    )
    service = TallyService(config, adapter, _build_transport(config, dry_run))
    console.print(
        Panel.fit(
            f"Switcher {config.switcher.host} -> OSC {config.osc.host}:{config.osc.port}"
            + (" (dry run)" if dry_run else ""),
            title="atem-tally",
            style="bold green",
        )
    )
    try:
        asyncio.run(_run_service(service))
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down...")
    _summary(service)


@app.command()
def simulate(
    scenario: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="YAML scenario to replay.",
    ),
    config_paths: Optional[List[Path]] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log tally commands instead of sending OSC."),
    speed: float = typer.Option(1.0, "--speed", min=0.01, help="Playback speed multiplier for step delays."),
) -> None:
    """Replay a recorded or hand-written switcher scenario through the bridge."""
    config = _load_config(config_paths)
    try:
        adapter = ScenarioSwitcherAdapter.from_file(scenario, speed=speed)
    except ScenarioError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=2) from exc

    service = TallyService(config, adapter, _build_transport(config, dry_run))
    asyncio.run(_run_service(service))
    _summary(service)


@app.command()
def reset(
    config_paths: Optional[List[Path]] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Switch every light in the reset bank off without talking to the switcher."""
    config = _load_config(config_paths)
    transport = OscTallyTransport(config.osc.host, config.osc.port)

    async def _reset() -> int:
        addressing = TallyAddressing(
            template=config.osc.address_template,
            strict_template=config.osc.strict_address_template,
            strict_me=config.tally.strict_me,
        )
        dispatcher = TallyDispatcher(transport, addressing, pacing_interval_ms=config.tally.pacing_interval_ms)
        reconciler = StartupReconciler(
            TallyStateEngine(),
            dispatcher,
            reset_first_index=config.tally.reset.first_index,
            reset_count=config.tally.reset.count,
        )
        transport.open()
        dispatcher.start()
        try:
            commands = reconciler.reset_sweep()
            await dispatcher.join()
        finally:
            await dispatcher.stop()
            transport.close()
        return len(commands)

    sent = asyncio.run(_reset())
    console.print(f"[bold green]Sent {sent} reset command(s) to {config.osc.host}:{config.osc.port}[/bold green]")


@app.command("show-config")
def show_config(
    config_paths: Optional[List[Path]] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Print the effective configuration after merging files and environment."""
    config = _load_config(config_paths)
    rendered = yaml.safe_dump(config.to_dict(), sort_keys=False)
    console.print(Syntax(rendered, "yaml", theme="ansi_dark"))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
