from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click

from extprofiles.identity.environment import Environment
from extprofiles.identity.resolver import ResolutionError
from extprofiles.models.profile import Profile
from extprofiles.store.local import LocalProfileStore

PROFILE_DATA_DIR = "extension-profiles"


@dataclass
class AppContext:
    environment: Environment
    store: LocalProfileStore


def _run[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run a manager coroutine, turning domain errors into CLI errors."""
    try:
        return asyncio.run(coro)
    except ResolutionError as exc:
        msg = f"{exc}. Open the folder(s) in the editor once so it records the workspace, then retry."
        raise click.ClickException(msg) from exc
    except (LookupError, ValueError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug details to stderr.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Extension profiles - switch enabled extensions per workspace."""
    from extprofiles.log import setup_logging
    from extprofiles.settings import get_settings

    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level)

    environment = Environment.from_settings(settings)
    data_root = settings.data_root or Path(environment.global_storage_root) / PROFILE_DATA_DIR
    ctx.obj = AppContext(environment=environment, store=LocalProfileStore(data_root))


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


@main.command()
@click.argument("folders", nargs=-1, required=True, type=click.Path(file_okay=False))
@click.pass_obj
def resolve(app: AppContext, folders: tuple[str, ...]) -> None:
    """Print the storage bucket id of the workspace made of FOLDERS."""
    from extprofiles.identity.resolver import resolve_workspace

    bucket_id = _run(resolve_workspace(app.environment, folders))
    click.echo(bucket_id)
    click.echo(f"  {app.environment.bucket_dir(bucket_id)}", err=True)


@main.command()
@click.argument("name")
@click.argument("folders", nargs=-1, required=True, type=click.Path(file_okay=False))
@click.pass_obj
def apply(app: AppContext, name: str, folders: tuple[str, ...]) -> None:
    """Apply profile NAME to the workspace made of FOLDERS."""
    from extprofiles.managers.apply import apply_profile

    result = _run(apply_profile(app.environment, app.store, name, folders))
    click.echo(
        f"Applied '{result.profile}' to {result.bucket_id}: "
        f"{len(result.enabled)} enabled, {len(result.disabled)} disabled."
    )
    click.echo("Reload the editor window for the change to take effect.")


@main.command()
@click.argument("folders", nargs=-1, required=True, type=click.Path(file_okay=False))
@click.pass_obj
def current(app: AppContext, folders: tuple[str, ...]) -> None:
    """Show the profile applied to the workspace made of FOLDERS."""
    from extprofiles.managers.apply import current_profile

    name = _run(current_profile(app.environment, folders))
    click.echo(name or "(no profile applied)")


@main.command()
@click.pass_obj
def refresh(app: AppContext) -> None:
    """Rescan installed extensions and rebuild the global profile."""
    from extprofiles.managers.profiles import ensure_global_profile, refresh_extensions

    async def _refresh() -> int:
        inventory = await refresh_extensions(app.store, app.environment)
        await ensure_global_profile(app.store, app.environment)
        return len(inventory)

    count = _run(_refresh())
    click.echo(f"Updated the list of installed extensions ({count} found).")


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@main.group()
def profiles() -> None:
    """Create, edit and share profiles."""


@profiles.command("list")
@click.pass_obj
def list_(app: AppContext) -> None:
    """List profiles."""
    from extprofiles.managers.profiles import list_profiles

    for profile in _run(list_profiles(app.store)):
        click.echo(f"{profile.name}\t{len(profile.extensions)} extensions")


@profiles.command()
@click.argument("name")
@click.pass_obj
def show(app: AppContext, name: str) -> None:
    """Show the extensions of profile NAME."""
    from extprofiles.managers.profiles import get_profile

    profile = _run(get_profile(app.store, name))
    for ext_id, info in sorted(profile.extensions.items()):
        click.echo(f"{ext_id}\t{info.display_name}")


@profiles.command()
@click.argument("name")
@click.option("-e", "--extension", "extensions", multiple=True, help="Extension id to enable (repeatable).")
@click.pass_obj
def create(app: AppContext, name: str, extensions: tuple[str, ...]) -> None:
    """Create profile NAME enabling the given extensions."""
    from extprofiles.managers.profiles import create_profile, get_inventory

    async def _create() -> Profile:
        inventory = await get_inventory(app.store, app.environment)
        return await create_profile(app.store, name, list(extensions), inventory=inventory)

    profile = _run(_create())
    click.echo(f"Created profile '{profile.name}' ({len(profile.extensions)} extensions).")


@profiles.command()
@click.argument("name")
@click.option("-e", "--extension", "extensions", multiple=True, help="Extension id to enable (repeatable).")
@click.pass_obj
def edit(app: AppContext, name: str, extensions: tuple[str, ...]) -> None:
    """Replace the extension selection of profile NAME."""
    from extprofiles.managers.profiles import get_inventory, update_profile

    async def _edit() -> Profile:
        inventory = await get_inventory(app.store, app.environment)
        return await update_profile(app.store, name, list(extensions), inventory=inventory)

    profile = _run(_edit())
    click.echo(f"Updated profile '{profile.name}' ({len(profile.extensions)} extensions).")


@profiles.command()
@click.argument("source")
@click.argument("new_name")
@click.pass_obj
def clone(app: AppContext, source: str, new_name: str) -> None:
    """Copy profile SOURCE to NEW_NAME."""
    from extprofiles.managers.profiles import clone_profile

    profile = _run(clone_profile(app.store, source, new_name))
    click.echo(f"Cloned '{source}' to '{profile.name}'.")


@profiles.command()
@click.argument("name")
@click.confirmation_option(prompt="Delete this profile?")
@click.pass_obj
def delete(app: AppContext, name: str) -> None:
    """Delete profile NAME."""
    from extprofiles.managers.profiles import delete_profile

    _run(delete_profile(app.store, name))
    click.echo(f"Deleted profile '{name}'.")


@profiles.command("export")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("-p", "--profile", "names", multiple=True, help="Profile to export (default: all).")
@click.pass_obj
def export_(app: AppContext, path: str, names: tuple[str, ...]) -> None:
    """Export profiles to the JSON file PATH."""
    from extprofiles.managers.profiles import export_profiles

    document = _run(export_profiles(app.store, path, list(names) or None))
    click.echo(f"Exported {len(document.profiles)} profile(s) to {path}.")


@profiles.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--overwrite", is_flag=True, default=False, help="Replace profiles that already exist.")
@click.pass_obj
def import_(app: AppContext, path: str, overwrite: bool) -> None:
    """Import profiles from the JSON file PATH."""
    from extprofiles.managers.profiles import import_profiles

    imported = _run(import_profiles(app.store, path, overwrite=overwrite))
    click.echo(f"Imported {len(imported)} profile(s).")


if __name__ == "__main__":
    main()
