"""Click CLI entry point for walletage.

All commands are thin orchestration wrappers — business logic lives in
config, fetchers, age, service, render and output modules.

Exit codes:
  0 — success
  1 — generic error
  2 — explorer API error
  3 — network error
  4 — data error (missing address)
  5 — config error (unsupported chain, bad config, missing template)
"""

from __future__ import annotations

import asyncio
import json
import shutil
import sys
from pathlib import Path
from typing import Any

import click

from walletage import __version__
from walletage.config import (
    WalletAgeConfig,
    get_default_config_path,
    load_config,
    save_config,
    set_config_value,
)
from walletage.exceptions import WalletAgeError
from walletage.fetchers import get_fetcher
from walletage.log import configure_logging, get_logger
from walletage.networks import SUPPORTED_CHAINS
from walletage.output import format_output, mask_api_key
from walletage.render import CardRenderer
from walletage.service import WalletAgeService

logger = get_logger(__name__)


# ── Error handler ─────────────────────────────────────────────────────────────


def _output_error(err: WalletAgeError | Exception) -> None:
    """Write error JSON to stderr."""
    if isinstance(err, WalletAgeError):
        payload = err.to_dict()
        exit_code = err.exit_code
    else:
        payload = {"error": "unknown_error", "message": str(err), "details": {}}
        exit_code = 1
    sys.stderr.write(json.dumps(payload, default=str) + "\n")
    sys.stderr.flush()
    sys.exit(exit_code)


def _service_from_config(config: WalletAgeConfig) -> WalletAgeService:
    """Create a WalletAgeService whose explorer keys come from env, then config."""
    return WalletAgeService(get_fetcher(config))


def _renderer_from_config(config: WalletAgeConfig) -> CardRenderer:
    return CardRenderer(
        template_path=config.render.template_path,
        font_path=config.render.font_path or None,
        font_size=config.render.font_size,
        cache_max_age=config.render.cache_max_age,
    )


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    envvar="WALLETAGE_CONFIG",
    default=None,
    help="Config file path (default: ~/.walletage/config.toml)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "table"]),
    default=None,
    help="Output format (overrides config default)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for stderr diagnostics (overrides config)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    output_format: str | None,
    log_level: str | None,
) -> None:
    """walletage — how old is this wallet?"""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except WalletAgeError as e:
        # On config errors, use defaults (so config init still works)
        config = WalletAgeConfig()
        ctx.obj["config_error"] = e.to_dict()

    configure_logging(log_level or config.logging.level, config.logging.format)
    if "config_error" in ctx.obj:
        logger.warning("config_load_failed", **ctx.obj["config_error"])

    ctx.obj["config"] = config
    ctx.obj["format"] = output_format or config.output.default_format
    ctx.obj["config_path"] = config_path


# ── Lookup commands ───────────────────────────────────────────────────────────


@cli.command("age")
@click.argument("address", required=False)
@click.option(
    "--chain",
    type=click.Choice(list(SUPPORTED_CHAINS), case_sensitive=False),
    default=None,
    help="Chain to query (default: network.default_chain)",
)
@click.option("--oldest", is_flag=True, help="Use the oldest activity across all chains")
@click.option("--format", "fmt", type=click.Choice(["json", "table"]), default=None)
@click.pass_context
def age_command(
    ctx: click.Context,
    address: str | None,
    chain: str | None,
    oldest: bool,
    fmt: str | None,
) -> None:
    """Show how old ADDRESS is (time since its first transaction)."""
    config: WalletAgeConfig = ctx.obj["config"]
    fmt = fmt or ctx.obj.get("format", "json")

    async def _run() -> dict[str, Any]:
        service = _service_from_config(config)
        try:
            if oldest:
                return (await service.lookup_oldest(address)).to_dict()
            activity = await service.get_token_activity(
                address, chain or config.network.default_chain
            )
            return activity.to_dict()
        finally:
            await service.close()

    try:
        result = asyncio.run(_run())
        click.echo(format_output(result, fmt))
    except WalletAgeError as e:
        _output_error(e)


@cli.command("networks")
@click.argument("address", required=False)
@click.option("--format", "fmt", type=click.Choice(["json", "table"]), default=None)
@click.pass_context
def networks_command(ctx: click.Context, address: str | None, fmt: str | None) -> None:
    """Show the age of ADDRESS on every chain that answered."""
    config: WalletAgeConfig = ctx.obj["config"]
    fmt = fmt or ctx.obj.get("format", "json")

    async def _run() -> dict[str, Any]:
        service = _service_from_config(config)
        try:
            activities = await service.get_wallet_age_from_all_networks(address)
        finally:
            await service.close()
        return {
            "count": len(activities),
            "activities": [a.to_dict() for a in activities],
        }

    try:
        result = asyncio.run(_run())
        click.echo(format_output(result, fmt))
    except WalletAgeError as e:
        _output_error(e)


@cli.command("card")
@click.argument("address", required=False)
@click.option(
    "--chain",
    type=click.Choice(list(SUPPORTED_CHAINS), case_sensitive=False),
    default=None,
    help="Chain to query (default: network.default_chain)",
)
@click.option("--oldest", is_flag=True, help="Use the oldest activity across all chains")
@click.option(
    "--output",
    "output_path",
    required=True,
    help="PNG file to write, or '-' for stdout",
)
@click.option("--template", "template_path", default=None, help="Override render.template_path")
@click.pass_context
def card_command(
    ctx: click.Context,
    address: str | None,
    chain: str | None,
    oldest: bool,
    output_path: str,
    template_path: str | None,
) -> None:
    """Render the wallet age of ADDRESS onto the card template."""
    config: WalletAgeConfig = ctx.obj["config"]
    if template_path:
        config.render.template_path = template_path

    async def _run() -> Any:
        service = _service_from_config(config)
        try:
            if oldest:
                return await service.get_oldest_wallet_age(address)
            return await service.get_token_activity(
                address, chain or config.network.default_chain
            )
        finally:
            await service.close()

    try:
        activity = asyncio.run(_run())
        image = _renderer_from_config(config).render(activity.wallet_age)
    except WalletAgeError as e:
        _output_error(e)
        return

    if output_path == "-":
        with click.open_file("-", "wb") as stdout:
            stdout.write(image.content)
            stdout.flush()
        return

    Path(output_path).expanduser().write_bytes(image.content)
    result = {
        "status": "rendered",
        "output": output_path,
        "content_type": image.content_type,
        "cache_control": image.cache_control,
        "bytes": len(image.content),
        "activity": activity.to_dict(),
    }
    click.echo(format_output(result, "json"))


# ── Config commands ───────────────────────────────────────────────────────────


@cli.group("config")
def config_group() -> None:
    """Manage walletage configuration."""


@config_group.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing config")
@click.pass_context
def config_init(ctx: click.Context, force: bool) -> None:
    """Initialize default config at ~/.walletage/config.toml."""
    provided = ctx.obj.get("config_path")
    config_path = Path(provided) if provided else get_default_config_path()

    if config_path.exists() and not force:
        click.echo(
            json.dumps(
                {
                    "status": "already_exists",
                    "config_path": str(config_path),
                    "hint": "Use --force to reinitialize",
                }
            )
        )
        return

    status = "initialized"
    backup = None

    if config_path.exists() and force:
        backup = str(config_path) + ".bak"
        shutil.copy2(config_path, backup)
        status = "reinitialized"

    save_config(WalletAgeConfig(), str(config_path))

    result: dict[str, Any] = {
        "status": status,
        "config_path": str(config_path),
    }
    if backup:
        result["backup"] = backup
    click.echo(json.dumps(result))


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a config value by dotted key path (e.g. network.default_chain)."""
    section_name, _, field_name = key.partition(".")
    if not section_name or not field_name:
        sys.stderr.write(
            json.dumps({"error": "cli_error", "message": f"Expected section.key, got {key!r}"})
            + "\n"
        )
        sys.exit(1)

    config: WalletAgeConfig = ctx.obj["config"]
    try:
        stored = set_config_value(config, section_name, field_name, value)
    except WalletAgeError as e:
        _output_error(e)
        return

    save_config(config, ctx.obj.get("config_path"))

    shown = mask_api_key(str(stored)) if field_name.endswith("api_key") else stored
    click.echo(json.dumps({"status": "updated", "key": key, "value": shown}))


@config_group.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration (API keys masked)."""
    config: WalletAgeConfig = ctx.obj["config"]
    provided = ctx.obj.get("config_path")
    config_path = Path(provided) if provided else get_default_config_path()

    result = {
        "config_path": str(config_path),
        "api": {
            "etherscan_api_key": mask_api_key(config.api.etherscan_api_key),
            "basescan_api_key": mask_api_key(config.api.basescan_api_key),
        },
        "network": {
            "default_chain": config.network.default_chain,
        },
        "render": {
            "template_path": config.render.template_path,
            "font_path": config.render.font_path,
            "font_size": config.render.font_size,
            "cache_max_age": config.render.cache_max_age,
        },
        "output": {
            "default_format": config.output.default_format,
            "color": config.output.color,
        },
        "logging": {
            "level": config.logging.level,
            "format": config.logging.format,
        },
    }

    click.echo(format_output(result, "json"))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
