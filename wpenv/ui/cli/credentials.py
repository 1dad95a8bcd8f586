"""
CLI commands for the credential store.

Thin wrappers over ``wpenv.adapters.vault`` and
``wpenv.core.services.credential_import``.  Values are never echoed
unless explicitly requested with ``get --show``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from wpenv.core.errors import WpenvError
from wpenv.core.models.credential import (
    CREDENTIAL_DESCRIPTIONS,
    CREDENTIAL_GROUPS,
    is_multiline,
)


def _store(ctx: click.Context):
    store = ctx.obj.get("store")
    if store is None:
        from wpenv.adapters.vault import get_default_store

        try:
            store = get_default_store()
        except WpenvError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)
        ctx.obj["store"] = store
    return store


@click.group()
def credentials() -> None:
    """Credentials — store secrets outside the project tree."""


@credentials.command("set")
@click.argument("key")
@click.option("--file", "-f", "from_file", type=click.Path(exists=True, dir_okay=False),
              help="Read the value from a file (PEM keys and certificates).")
@click.option("--value", default=None,
              help="Value (prompted for when omitted). Visible in shell history "
                   "and process listings; prefer the prompt or --file for secrets.")
@click.pass_context
def set_credential(ctx: click.Context, key: str, from_file: str | None, value: str | None) -> None:
    """Store a credential."""
    if from_file:
        value = Path(from_file).read_text(encoding="utf-8")
    elif value is None:
        prompt = CREDENTIAL_DESCRIPTIONS.get(key, key)
        if is_multiline(key):
            click.echo(f"{prompt}: paste the value, then press Ctrl+D")
            value = click.get_text_stream("stdin").read()
        else:
            value = click.prompt(prompt, hide_input=True)

    if not value or not value.strip():
        click.secho("❌ Value cannot be empty", fg="red")
        sys.exit(1)

    try:
        _store(ctx).set(key, value)
    except WpenvError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Stored {key}", fg="green")


@credentials.command("get")
@click.argument("key")
@click.option("--show", is_flag=True, help="Print the value instead of masking it.")
@click.pass_context
def get_credential(ctx: click.Context, key: str, show: bool) -> None:
    """Show whether a credential is stored (and optionally its value)."""
    try:
        value = _store(ctx).get(key)
    except WpenvError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if value is None:
        click.secho(f"⚠️  {key} is not set", fg="yellow")
        sys.exit(1)

    if show:
        click.echo(value)
    else:
        lines = value.count("\n") + 1
        suffix = f" ({lines} lines)" if lines > 1 else ""
        click.echo(f"{key}: ********{suffix}")


@credentials.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_credentials(ctx: click.Context, as_json: bool) -> None:
    """List stored credentials by group."""
    store = _store(ctx)
    stored = set(store.list())

    if as_json:
        click.echo(json.dumps({
            "available": store.is_available(),
            "stored": sorted(stored),
        }, indent=2))
        return

    if not store.is_available():
        click.secho("⚠️  Credential store is not available on this platform", fg="yellow")
        return

    for group, keys in CREDENTIAL_GROUPS.items():
        click.secho(f"\n{group}", fg="cyan", bold=True)
        for key in keys:
            if key in stored:
                click.secho(f"   ✓ {key}", fg="green")
            else:
                click.secho(f"   ✗ {key}", fg="bright_black")
    click.echo(f"\n{len(stored)} of {sum(len(k) for k in CREDENTIAL_GROUPS.values())} stored")


@credentials.command("delete")
@click.argument("key")
@click.pass_context
def delete_credential(ctx: click.Context, key: str) -> None:
    """Delete a stored credential."""
    try:
        removed = _store(ctx).delete(key)
    except WpenvError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if removed:
        click.secho(f"✅ Deleted {key}", fg="green")
    else:
        click.secho(f"⚠️  {key} was not set", fg="yellow")


@credentials.command("clear")
@click.option("--force", "-f", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def clear_credentials(ctx: click.Context, force: bool) -> None:
    """Delete every stored credential."""
    if not force and not click.confirm("Delete ALL stored credentials?", default=False):
        click.echo("Cancelled.")
        return

    try:
        count = _store(ctx).clear()
    except WpenvError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Deleted {count} credential(s)", fg="green")


@credentials.command("import")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--overwrite", is_flag=True, help="Replace credentials that are already stored.")
@click.option("--dry-run", is_flag=True, help="Show what would be imported.")
@click.pass_context
def import_file(ctx: click.Context, file: str, overwrite: bool, dry_run: bool) -> None:
    """Import credentials from a JSON export file."""
    from wpenv.core.services.credential_import import (
        import_credentials,
        parse_credentials_file,
    )

    try:
        result = parse_credentials_file(Path(file))
    except WpenvError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    meta = result.metadata
    click.secho(f"📦 {file}", fg="cyan", bold=True)
    click.echo(f"   Version: {meta.version}  Source: {meta.source}")
    if meta.exported:
        click.echo(f"   Exported: {meta.exported}")

    for group, keys in result.by_group().items():
        click.echo(f"   {group}: {', '.join(keys)}")

    if result.rejected:
        click.secho(f"\n⚠️  Found {len(result.rejected)} unknown or invalid credential(s):", fg="yellow")
        for rejected in result.rejected:
            click.echo(f"   • {rejected.key} ({rejected.reason})")

    if not result.accepted:
        click.secho("\n❌ No valid credentials to import", fg="red")
        sys.exit(1)

    if dry_run:
        click.echo(f"\n[dry-run] {len(result.accepted)} credential(s) would be imported")
        return

    try:
        outcome = import_credentials(_store(ctx), result, overwrite=overwrite)
    except WpenvError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"\n✅ Imported {len(outcome['imported'])} credential(s)", fg="green", bold=True)
    if outcome["skipped"]:
        click.echo(f"   Skipped (already set): {', '.join(outcome['skipped'])}")
        click.echo("   Use --overwrite to replace them.")
