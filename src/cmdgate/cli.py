from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import anyio
import typer

from . import __version__
from .builtin import BUILTIN_COMMANDS
from .config import ConfigError
from .dispatcher import Dispatcher
from .logging import get_logger, setup_logging
from .model import Cooldown, MessageEvent
from .settings import CmdgateSettings, load_settings, require_discord_token

logger = get_logger(__name__)

type CheckStatus = Literal["ok", "warning", "error"]


@dataclass(frozen=True, slots=True)
class DoctorCheck:
    label: str
    status: CheckStatus
    detail: str | None = None

    def render(self) -> str:
        if self.detail:
            return f"- {self.label}: {self.status} ({self.detail})"
        return f"- {self.label}: {self.status}"


def run_checks(settings: CmdgateSettings, config_path: Path) -> list[DoctorCheck]:
    checks: list[DoctorCheck] = []
    try:
        config = settings.to_config()
    except ConfigError as exc:
        checks.append(DoctorCheck("dispatcher", "error", str(exc)))
        return checks

    prefix = config.default_prefix
    if prefix:
        checks.append(DoctorCheck("default prefix", "ok", repr(prefix)))
    else:
        checks.append(DoctorCheck("default prefix", "warning", "mentions only"))

    guild_prefixes = settings.dispatcher.guild_prefixes
    if guild_prefixes:
        checks.append(
            DoctorCheck("guild prefixes", "ok", f"{len(guild_prefixes)} configured")
        )

    checks.append(
        DoctorCheck("cooldown target", "ok", f"target={config.cooldown_target.value}")
    )
    checks.append(DoctorCheck("blacklist", "ok", f"{len(config.blacklist)} users"))

    try:
        require_discord_token(settings, config_path)
    except ConfigError:
        checks.append(DoctorCheck("discord token", "error", "bot_token not set"))
    else:
        checks.append(DoctorCheck("discord token", "ok", "configured"))

    guild_id = settings.transports.discord.guild_id
    if guild_id:
        checks.append(DoctorCheck("discord guild", "ok", f"guild_id={guild_id}"))
    else:
        checks.append(
            DoctorCheck(
                "discord guild", "warning", "guild_id not set (slash commands sync globally)"
            )
        )
    return checks


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Run and inspect a cmdgate command dispatcher.",
)


@app.callback()
def app_main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """cmdgate CLI."""


@app.command()
def doctor(
    config: Path | None = typer.Option(
        None, "--config", help="Path to cmdgate.toml (default ~/.cmdgate)."
    ),
) -> None:
    """Validate the configuration and print the checks."""
    try:
        settings, config_path = load_settings(config)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from None

    checks = run_checks(settings, config_path)
    typer.echo(f"config: {config_path}")
    for check in checks:
        typer.echo(check.render())
    if any(check.status == "error" for check in checks):
        raise typer.Exit(code=1)


async def _notify_cooldown(event: MessageEvent, cooldown: Cooldown) -> None:
    if event.reply is None:
        return
    await event.reply(
        f"`{cooldown.command.name}` is on cooldown, "
        f"try again in {cooldown.remaining:.1f}s."
    )


def build_dispatcher(settings: CmdgateSettings) -> Dispatcher:
    config = settings.to_config(cooldown_handler=_notify_cooldown)
    return Dispatcher(config, commands=BUILTIN_COMMANDS)


@app.command()
def run(
    config: Path | None = typer.Option(
        None, "--config", help="Path to cmdgate.toml (default ~/.cmdgate)."
    ),
    debug: bool = typer.Option(
        False,
        "--debug/--no-debug",
        help="Log every dispatch decision.",
    ),
    log_json: bool = typer.Option(
        False, "--log-json", help="Emit JSON log lines."
    ),
) -> None:
    """Serve the built-in commands on Discord."""
    from .discord import DiscordCommandClient

    setup_logging(debug=debug, log_json=log_json)
    try:
        settings, config_path = load_settings(config)
        token = require_discord_token(settings, config_path)
        dispatcher = build_dispatcher(settings)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from None

    client = DiscordCommandClient(
        dispatcher, token, guild_id=settings.transports.discord.guild_id
    )
    logger.info("cli.run", config_path=str(config_path))
    anyio.run(client.run)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
