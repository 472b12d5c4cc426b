"""database-operator CLI: command-line interface for the Database operator.

Commands:
    simulate        Run reconciliation passes against a YAML snapshot
    validate        Check Database manifests for configuration errors
    config show     Print the resolved operator configuration
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import ValidationError

from database_operator import __version__
from database_operator.config import OperatorConfig, load_config
from database_operator.events import RecordingEventRecorder
from database_operator.models import ConfigurationError, Database, NamespacedName
from database_operator.reconciler.driver import ReconciliationDriver
from database_operator.store.base import NotFoundError
from database_operator.store.memory import InMemoryObjectStore
from database_operator.tenant import DryRunTenantService, ProvisioningError

DEFAULT_PASSES = 10


def _load_cfg(config_path: str | None) -> OperatorConfig:
    """Load the explicit config, or auto-discover one (never error on discovery)."""
    if config_path is not None:
        try:
            return load_config(config_path, auto_discover=False)
        except Exception as e:
            click.echo(f"Error loading config: {e}", err=True)
            sys.exit(1)
    try:
        return load_config()
    except Exception:
        return OperatorConfig()


def _load_manifests(path: str) -> list[dict[str, Any]]:
    text = Path(path).read_text(encoding="utf-8")
    docs = [doc for doc in yaml.safe_load_all(text) if doc]
    for doc in docs:
        if not isinstance(doc, dict) or "kind" not in doc:
            raise click.ClickException(f"{path}: every document must be a mapping with a kind")
    return docs


def _seconds(value: Any) -> float | None:
    return value.total_seconds() if value is not None else None


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="Path to database-operator.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """database-operator: reconcile Database resources."""
    cfg = _load_cfg(config_path)
    logging.basicConfig(
        level=logging.DEBUG if verbose else cfg.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.obj = cfg


# --- simulate command ---


@cli.command()
@click.argument("manifests", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", default=None, help="Database name (default: the only Database)")
@click.option("--namespace", "-n", default="default", help="Database namespace")
@click.option("--passes", default=DEFAULT_PASSES, show_default=True, help="Maximum passes")
@click.option("--fail-tenant", is_flag=True, help="Make tenant creation fail")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_obj
def simulate(
    cfg: OperatorConfig,
    manifests: str,
    name: str | None,
    namespace: str,
    passes: int,
    fail_tenant: bool,
    json_output: bool,
) -> None:
    """Reconcile a Database against the objects in MANIFESTS.

    Runs passes until one requests no requeue or --passes is reached.
    Nothing outside the process is touched.
    """
    docs = _load_manifests(manifests)
    if name is None:
        databases = [d for d in docs if d["kind"] == "Database"]
        if len(databases) != 1:
            raise click.ClickException("--name is required unless exactly one Database is given")
        meta = databases[0].get("metadata") or {}
        name = meta.get("name", "")
        namespace = meta.get("namespace", namespace)

    for doc in docs:
        doc.setdefault("metadata", {}).setdefault("namespace", namespace)

    store = InMemoryObjectStore(docs)
    recorder = RecordingEventRecorder()
    tenants = DryRunTenantService(
        fail_with=ProvisioningError("simulated tenant failure") if fail_tenant else None,
    )
    driver = ReconciliationDriver(store, recorder, tenants, config=cfg)
    key = NamespacedName(namespace=namespace, name=name)

    history: list[dict[str, Any]] = []
    for number in range(1, passes + 1):
        recorder.clear()
        directive = driver.reconcile(key)
        history.append({
            "pass": number,
            "requeue_after": _seconds(directive.requeue_after),
            "error": str(directive.error) if directive.error else None,
            "events": [
                {"type": str(e.event_type), "reason": e.reason, "message": e.message}
                for e in recorder.events
            ],
        })
        if not directive.requeue:
            break

    try:
        final_status = store.get("Database", key).get("status") or {}
    except NotFoundError:
        final_status = {}

    if json_output:
        click.echo(json.dumps({
            "database": str(key),
            "passes": history,
            "status": final_status,
            "tenants_requested": len(tenants.requests),
        }, indent=2, default=str))
        return

    for entry in history:
        wait = entry["requeue_after"]
        outcome = "done" if wait is None and entry["error"] is None else f"requeue after {wait}s"
        click.echo(f"Pass {entry['pass']}: {outcome}")
        for event in entry["events"]:
            click.echo(f"  [{event['type']}] {event['reason']}: {event['message']}")
        if entry["error"]:
            click.echo(f"  error: {entry['error']}")
    click.echo(f"State: {final_status.get('state', '')}")
    for cond in final_status.get("conditions", []):
        click.echo(f"  {cond.get('type')}={cond.get('status')} ({cond.get('reason')})")


# --- validate command ---


@cli.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False))
def validate(manifest: str) -> None:
    """Check every Database in MANIFEST for configuration errors."""
    docs = _load_manifests(manifest)
    errors = 0
    checked = 0
    for doc in docs:
        if doc["kind"] != "Database":
            continue
        checked += 1
        label = (doc.get("metadata") or {}).get("name", "<unnamed>")
        try:
            Database.model_validate(doc).spec.resource_config()
        except (ValidationError, ConfigurationError) as exc:
            errors += 1
            click.echo(f"ERROR {label}: {exc}")
            continue
        click.echo(f"OK    {label}")

    if checked == 0:
        click.echo("No Database manifests found.")
    if errors:
        sys.exit(1)


# --- config commands ---


@cli.group()
def config() -> None:
    """Inspect operator configuration."""


@config.command("show")
@click.pass_obj
def config_show(cfg: OperatorConfig) -> None:
    """Print the resolved configuration as YAML."""
    data = {
        "config_path": str(cfg.config_path) if cfg.config_path else None,
        "cluster_domain": cfg.cluster_domain,
        "grpc_port": cfg.grpc_port,
        "log_level": cfg.log_level,
        "requeue_delays": cfg.requeue_delays.as_seconds(),
    }
    click.echo(yaml.safe_dump(data, sort_keys=False), nl=False)


def main() -> None:
    cli()
