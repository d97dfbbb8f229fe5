"""Thin CLI wrapper for jlink_online.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from jlink_online import __version__
from jlink_online.config import Settings, get_settings, print_settings_json
from jlink_online.errors import JlinkError

app = typer.Typer(
    name="jlink",
    help="jlink online - build minimal Java runtimes on demand",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"jlink-online version {__version__}")
        raise typer.Exit()


def setup_logging(settings: Settings) -> None:
    """Route log records through rich at the configured level."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


def _format_size(size_bytes: int) -> str:
    """Format bytes as human-readable size."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]{message}[/red]")
    return typer.Exit(code=1)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """jlink online - build minimal Java runtimes on demand."""
    setup_logging(get_settings())


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
        return

    tmp_dir_display = str(settings.tmp_dir) if settings.tmp_dir else "(system default)"
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Paths:[/bold]")
    console.print(f"  Runtime cache:       {settings.cache_dir}")
    console.print(f"  Temp directory:      {tmp_dir_display}")
    console.print()
    console.print("[bold]Upstreams:[/bold]")
    console.print(f"  Release index:       {settings.adoptium_api_url}")
    console.print(f"  Maven repository:    {settings.maven_central_url}")
    console.print(f"  Maven Central:       {settings.maven_central}")
    console.print()
    console.print("[bold]Host runtime:[/bold]")
    console.print(f"  Platform:            {settings.local_platform}")
    console.print(f"  Architecture:        {settings.local_arch}")
    console.print()
    console.print("[bold]Version aliases:[/bold]")
    console.print(f"  lts:                 {settings.lts_version}")
    console.print(f"  ga:                  {settings.ga_version}")
    console.print(f"  ea:                  {settings.ea_version}")
    console.print()
    console.print("[bold]Timeouts (seconds):[/bold]")
    console.print(f"  Metadata timeout:    {settings.metadata_timeout}")
    console.print(f"  Download timeout:    {settings.download_timeout}")
    console.print(f"  Maven timeout:       {settings.maven_timeout}")
    console.print(f"  Build timeout:       {settings.build_timeout}")


@app.command("version")
def version_cmd(
    token: Annotated[str, typer.Argument(help="Version or alias (lts, ga, ea)")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Resolve a version token without contacting the release index."""
    from jlink_online.versions import resolve_version

    try:
        query = resolve_version(token, get_settings())
    except JlinkError as e:
        raise _fail(e.message) from None

    if json_output:
        output = {
            "token": query.token,
            "major": query.major,
            "version": query.version,
            "release_type": query.release_type.value,
        }
        console.print(json.dumps(output, indent=2))
    elif query.is_latest:
        console.print(
            f"{token}: latest {query.release_type.value} release of Java {query.major}"
        )
    else:
        console.print(f"{token}: Java {query.major}, version {query.version}")


releases_app = typer.Typer(help="Query and cache release metadata")
app.add_typer(releases_app, name="releases")


@releases_app.command("lookup")
def releases_lookup(
    arch: Annotated[str, typer.Argument(help="Architecture (e.g., x64)")],
    platform: Annotated[str, typer.Argument(help="Operating system (e.g., linux)")],
    version: Annotated[str, typer.Argument(help="Version or alias")],
    implementation: Annotated[
        str,
        typer.Option("--implementation", "-i", help="JVM implementation"),
    ] = "hotspot",
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Find the release a version refers to."""
    from jlink_online.builds.service import JlinkPipeline
    from jlink_online.versions import resolve_version

    with JlinkPipeline(get_settings()) as pipeline:
        try:
            query = resolve_version(version, pipeline.settings)
            release = pipeline.metadata.resolve(query, arch, platform, implementation)
        except JlinkError as e:
            raise _fail(e.message) from None

    if json_output:
        console.print(json.dumps(release.to_dict(), indent=2))
    else:
        console.print(f"[green]✓ {release.version}[/green]")
        console.print(f"  File: {release.file_name}")
        console.print(f"  Link: {release.link}")


@releases_app.command("refresh")
def releases_refresh(
    majors: Annotated[
        list[int] | None,
        typer.Option("--major", "-m", help="Feature release to fetch (can be repeated)"),
    ] = None,
) -> None:
    """Rebuild the release metadata cache.

    Defaults to the feature releases behind the lts and ga aliases.
    """
    from jlink_online.builds.service import JlinkPipeline

    settings = get_settings()
    if not majors:
        majors = sorted({settings.lts_version, settings.ga_version})

    with JlinkPipeline(settings) as pipeline:
        try:
            count = pipeline.metadata.refresh(majors)
        except JlinkError as e:
            raise _fail(f"Failed to refresh release metadata: {e.message}") from None

    console.print(
        f"[green]✓ Cached {count} release entries for Java "
        f"{', '.join(str(m) for m in majors)}[/green]"
    )


runtimes_app = typer.Typer(help="Manage the runtime cache")
app.add_typer(runtimes_app, name="runtimes")


@runtimes_app.command("info")
def runtimes_info(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show runtime cache information."""
    from jlink_online.builds.service import JlinkPipeline

    with JlinkPipeline(get_settings()) as pipeline:
        cache_dir = pipeline.store.cache_dir
        total_size = pipeline.store.cache_size()
    runtimes = (
        sorted(p.name for p in cache_dir.iterdir() if p.is_dir())
        if cache_dir.is_dir()
        else []
    )

    info = {
        "cache_dir": str(cache_dir),
        "exists": cache_dir.exists(),
        "runtimes": runtimes,
        "total_size_bytes": total_size,
        "total_size_human": _format_size(total_size),
    }

    if json_output:
        console.print(json.dumps(info, indent=2))
    else:
        console.print("[bold]Runtime Cache Information:[/bold]")
        console.print()
        console.print(f"  Cache directory: {info['cache_dir']}")
        console.print(f"  Exists: {info['exists']}")
        console.print(f"  Runtimes: {len(runtimes)}")
        for name in runtimes:
            console.print(f"    - {name}")
        console.print(f"  Total size: {info['total_size_human']}")


@runtimes_app.command("prune")
def runtimes_prune(
    arch: Annotated[str, typer.Argument(help="Architecture (e.g., x64)")],
    platform: Annotated[str, typer.Argument(help="Operating system (e.g., linux)")],
    version: Annotated[str, typer.Argument(help="Version or alias")],
    implementation: Annotated[
        str,
        typer.Option("--implementation", "-i", help="JVM implementation"),
    ] = "hotspot",
) -> None:
    """Remove an extracted runtime from the cache."""
    from jlink_online.builds.service import JlinkPipeline
    from jlink_online.versions import resolve_version

    with JlinkPipeline(get_settings()) as pipeline:
        try:
            query = resolve_version(version, pipeline.settings)
            release = pipeline.metadata.resolve(query, arch, platform, implementation)
        except JlinkError as e:
            raise _fail(e.message) from None
        removed = pipeline.store.prune(release)

    if removed:
        console.print(f"[green]✓ Pruned {release.file_name}[/green]")
    else:
        console.print(f"[yellow]{release.file_name} is not cached[/yellow]")


@app.command()
def build(
    arch: Annotated[str, typer.Argument(help="Target architecture (e.g., x64)")],
    platform: Annotated[str, typer.Argument(help="Target operating system")],
    version: Annotated[str, typer.Argument(help="Version or alias")],
    modules: Annotated[
        list[str] | None,
        typer.Option("--module", "-m", help="Module to include (can be repeated)"),
    ] = None,
    artifacts: Annotated[
        list[str] | None,
        typer.Option("--artifact", "-a", help="Maven artifact G:A:V (can be repeated)"),
    ] = None,
    implementation: Annotated[
        str,
        typer.Option("--implementation", "-i", help="JVM implementation"),
    ] = "hotspot",
    endian: Annotated[
        str | None,
        typer.Option("--endian", help="Target byte order (little, big)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output file (defaults to the release file name)"),
    ] = None,
) -> None:
    """Build a custom runtime and write the archive to disk."""
    from jlink_online.builds.schema import RuntimeRequest
    from jlink_online.builds.service import JlinkPipeline

    try:
        request = RuntimeRequest(
            arch=arch,
            platform=platform,
            version=version,
            implementation=implementation,
            endian=endian,
            modules=modules or ["java.base"],
            artifacts=artifacts or [],
        )
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise _fail(f"Invalid request: {messages}") from None

    console.print(f"[blue]Building Java {version} runtime for {platform}/{arch}...[/blue]")
    with JlinkPipeline(get_settings()) as pipeline:
        try:
            result = pipeline.build(request)
        except JlinkError as e:
            raise _fail(f"Build failed ({e.code}): {e.message}") from None
        except TimeoutError as e:
            raise _fail(str(e)) from None

    destination = output or Path(result.file_name)
    destination.write_bytes(result.content)
    console.print(f"[green]✓ Runtime written to {destination}[/green]")
    console.print(f"  Target: {result.target.file_name}")
    console.print(f"  Size: {_format_size(len(result.content))}")


@app.command()
def serve(
    host: Annotated[
        str | None,
        typer.Option("--host", help="Listen address"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Listen port"),
    ] = None,
) -> None:
    """Run the HTTP service."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "web.app:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    app()
