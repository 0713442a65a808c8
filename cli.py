# cli.py
import asyncio
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from relay.app import build_platform
from relay_plugins.core_assets.contracts import AssetLoadFailedError, AssetStorageError
from relay_plugins.core_assets.models import AssetType, DataFormat
from relay_plugins.core_assets.storage import AssetStorage

app = typer.Typer(name="asset-relay", help="asset-relay Command-Line Interface")


async def _with_storage(action):
    """装配平台、执行异步初始化钩子，然后把 AssetStorage 交给 action。"""
    container = build_platform()
    hook_manager = container.resolve("hook_manager")
    await hook_manager.trigger("services_post_register")
    storage: AssetStorage = container.resolve("asset_storage")
    try:
        return await action(storage)
    finally:
        await hook_manager.trigger("app_shutdown")


@app.command("get")
def get_asset(
    asset_type: AssetType = typer.Argument(..., help="Asset type, e.g. ImageBitmap."),
    asset_id: str = typer.Argument(..., help="Asset id, e.g. an MD5 hash."),
    data_format: Optional[DataFormat] = typer.Option(None, "--format", "-f", help="Defaults to the type's runtime format."),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the asset here instead of reporting its size."),
):
    """Load an asset from the configured sources."""
    try:
        asset = asyncio.run(_with_storage(lambda s: s.load(asset_type, asset_id, data_format)))
    except AssetLoadFailedError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED)
        for err in e.errors:
            typer.echo(f"  - {type(err).__name__}: {err}")
        raise typer.Exit(code=1)

    if asset is None:
        typer.secho(f"{asset_type.value} '{asset_id}' not found.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=2)

    if out:
        out.write_bytes(asset.data)
        typer.secho(f"Saved {len(asset.data)} bytes to {out}", fg=typer.colors.GREEN)
    else:
        typer.echo(f"{asset.asset_type.value} {asset.asset_id}.{asset.data_format.value}: {len(asset.data)} bytes")


@app.command("put")
def put_asset(
    asset_type: AssetType = typer.Argument(..., help="Asset type, e.g. Sound."),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File holding the asset data."),
    data_format: Optional[DataFormat] = typer.Option(None, "--format", "-f", help="Defaults to the file extension."),
    asset_id: Optional[str] = typer.Option(None, "--id", help="Update this asset instead of creating a new one."),
):
    """Create or update an asset in the first appropriate store."""
    if data_format is None:
        try:
            data_format = DataFormat(file.suffix.lstrip('.').lower())
        except ValueError:
            data_format = None
    data = file.read_bytes()

    try:
        metadata = asyncio.run(_with_storage(lambda s: s.store(asset_type, data_format, data, asset_id)))
    except AssetStorageError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho(f"Stored {asset_type.value}: {metadata}", fg=typer.colors.GREEN)


def main():
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
