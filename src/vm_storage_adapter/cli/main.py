"""
Typer application for ad-hoc metric queries.

Operators use it to check what value an autoscaling rule would observe:
``vm-adapter query`` evaluates an instant query exactly as the adapter does at
runtime and ``vm-adapter verify`` confirms the backend answers at all.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

import typer

from ..adapters import QueryError
from ..config import AdapterSettings, build_adapter, load_settings, normalise_flavor, parse_account_id
from ..core.logging import configure_logging

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Query Prometheus or VictoriaMetrics for a single scalar value.\n\n"
        "Commands:\n"
        "- query: evaluate an instant query and print its value.\n"
        "- verify: check that the configured backend answers instant queries."
    ),
)


def _parse_headers(values: Optional[List[str]]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    if not values:
        return headers
    for entry in values:
        if "=" not in entry:
            raise typer.BadParameter(f"Header '{entry}' must use name=value format.")
        name, value = entry.split("=", 1)
        name = name.strip()
        if not name:
            raise typer.BadParameter(f"Header '{entry}' is missing a name.")
        headers[name] = value
    return headers


def _override_settings(
    settings: AdapterSettings,
    *,
    server: Optional[str],
    flavor: Optional[str],
    timeout: Optional[float],
) -> AdapterSettings:
    if server:
        settings.server_address = server
    if flavor:
        try:
            settings.flavor = normalise_flavor(flavor)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from None
    if timeout is not None:
        settings.timeout = timeout
    return settings


@app.callback(invoke_without_command=False)
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Override configuration TOML file.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    server: Optional[str] = typer.Option(None, "--server", "-s", help="Backend base address, e.g. http://vmselect:8481."),
    flavor: Optional[str] = typer.Option(None, "--flavor", "-f", help="Backend flavor: 'prometheus' or 'victoriametrics'."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Request timeout in seconds."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level, e.g. DEBUG."),
) -> None:
    """
    Resolve backend settings.

    The callback stores the resolved settings in Typer's state so child
    commands can retrieve them via :class:`typer.Context`.
    """

    if log_level:
        configure_logging(log_level, force=True)
    try:
        settings = load_settings(path=config_file)
    except (OSError, ValueError) as exc:
        typer.echo(f"Failed to load configuration: {exc}", err=True)
        raise typer.Exit(code=1)
    state = ctx.ensure_object(dict)
    state["settings"] = _override_settings(settings, server=server, flavor=flavor, timeout=timeout)


def _require_settings(ctx: typer.Context) -> AdapterSettings:
    state = ctx.ensure_object(dict)
    settings = state.get("settings")
    if not isinstance(settings, AdapterSettings):
        raise typer.Exit(code=2)
    return settings


@app.command("query")
def query_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="PromQL/MetricsQL instant query."),
    metric_name: Optional[str] = typer.Option(None, "--metric-name", "-m", help="Metric label used in error messages."),
    account_id: Optional[str] = typer.Option(None, "--account-id", "-a", help="Tenant for VictoriaMetrics cluster mode."),
    header: Optional[List[str]] = typer.Option(
        None,
        "--header",
        "-H",
        help="Custom request header in the form name=value. Can be repeated.",
    ),
    ignore_null: bool = typer.Option(False, "--ignore-null", help="Report absent or infinite values as 0."),
    json_output: bool = typer.Option(False, "--json", help="Emit a JSON document instead of the bare value."),
) -> None:
    """Evaluate an instant query and print its value."""

    settings = _require_settings(ctx)
    headers = dict(settings.headers)
    headers.update(_parse_headers(header))
    try:
        tenant = parse_account_id(account_id) if account_id is not None else settings.account_id
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from None

    with build_adapter(settings) as adapter:
        try:
            value = adapter.execute_query(query, headers, ignore_null, metric_name or query, tenant)
        except QueryError as exc:
            typer.echo(f"Query failed: {exc}", err=True)
            raise typer.Exit(code=1)

    if json_output:
        payload = {"query": query, "value": value, "flavor": settings.flavor, "server_address": settings.server_address}
        typer.echo(json.dumps(payload, ensure_ascii=False))
    else:
        typer.echo(repr(value))


@app.command("verify")
def verify_command(ctx: typer.Context) -> None:
    """Check that the configured backend answers instant queries."""

    settings = _require_settings(ctx)
    with build_adapter(settings) as adapter:
        result = adapter.verify(settings.account_id)

    typer.echo(result.message)
    if result.details:
        typer.echo(f"Details: {json.dumps(result.details, ensure_ascii=False)}")
    if not result.success:
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
