"""ors-publish - Command-line interface for the ORS publisher.

The CLI is a thin wrapper around the Python API (see publish.py): it builds
one MakeResult from the command line, resolves configuration and prints the
outcome. All publishing logic lives in the library.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click

from ors_publisher.client import ReleaseServerClient
from ors_publisher.config import (
    KNOWN_SETTINGS,
    SECRET_SETTINGS,
    get_setting,
    list_settings,
    load_publisher_config,
    set_setting,
    unset_setting,
)
from ors_publisher.errors import MissingCredentialsError, PublisherError
from ors_publisher.json_output import ErrorDetail, error_envelope, success_envelope
from ors_publisher.models.make_result import MakeResult
from ors_publisher.models.results import AssetStatus, PublishOutcome
from ors_publisher.output import detail, error, info, success, suppressed, warn
from ors_publisher.publishers import PublishContext, get_publisher

CHANNEL_CHOICES = ["stable", "beta", "alpha", "rc"]


def should_output_json(ctx: click.Context) -> bool:
    """True if the global --format option asked for JSON."""
    obj = ctx.find_root().obj or {}
    return obj.get("format", "text") == "json"


def output_json_envelope(envelope: Any) -> None:
    click.echo(envelope.to_json())


@contextmanager
def _quiet_if(use_json: bool) -> Iterator[None]:
    if use_json:
        with suppressed():
            yield
    else:
        yield


def _fail(command: str, err: Exception, use_json: bool) -> None:
    """Report a fatal error in the selected format and exit with status 1."""
    if use_json:
        output_json_envelope(error_envelope(command, [ErrorDetail.from_exception(err)]))
    else:
        error(err.message if isinstance(err, PublisherError) else str(err))
    raise SystemExit(1) from err


@click.group()
@click.version_option(package_name="ors-publisher")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format (json for machine parsing, text for humans).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log HTTP calls and chunk progress.")
@click.pass_context
def cli(ctx: click.Context, output_format: str, verbose: bool) -> None:
    """ors-publish - Upload desktop app artifacts to an ORS release server."""
    ctx.ensure_object(dict)
    ctx.obj["format"] = output_format
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


# =============================================================================
# publish
# =============================================================================


def _read_app_version(app_version: str | None, package_json: Path | None) -> dict[str, Any]:
    """Package metadata for the MakeResult, from --app-version or package.json."""
    if app_version:
        return {"version": app_version}

    path = package_json or Path("package.json")
    if not path.exists():
        raise click.UsageError(f"No --app-version given and {path} not found")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.UsageError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict) or not data.get("version"):
        raise click.UsageError(f"{path} has no 'version' field")
    return data


def _print_outcome(outcome: PublishOutcome, *, dry_run: bool) -> None:
    for mr in outcome.make_results:
        info(f"{mr.platform}: release {mr.version} ({mr.channel})")
        for asset in mr.assets:
            if asset.status is AssetStatus.FAILED:
                detail(f"  {asset.name}: failed ({asset.chunks_sent}/{asset.total_chunks} chunks)")
            else:
                detail(f"  {asset.name}: {asset.status.value}")

    summary = (
        f"{outcome.uploaded} uploaded, {outcome.skipped} skipped, {outcome.failed} failed"
    )
    if outcome.success:
        success(summary, dry_run=dry_run)
    else:
        error(summary, dry_run=dry_run)


@cli.command()
@click.argument(
    "artifacts",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--platform",
    default=sys.platform,
    show_default=True,
    help="Target platform the artifacts were built for.",
)
@click.option("--arch", default=None, help="Target architecture (informational).")
@click.option("--app-version", default=None, help="Version to publish (e.g. 1.2.0-beta).")
@click.option(
    "--package-json",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="package.json to read the version from (default: ./package.json).",
)
@click.option("--base-url", default=None, help="Release server root URL.")
@click.option("--username", default=None, help="Release server user name.")
@click.option("--password", default=None, help="Release server password.")
@click.option(
    "--channel", type=click.Choice(CHANNEL_CHOICES), default=None, help="Override channel."
)
@click.option("--chunk-size-mb", type=float, default=None, help="Upload chunk size in MiB.")
@click.option("--change-log", default=None, help="Change log for newly created releases.")
@click.option(
    "--max-concurrent-uploads", type=int, default=None, help="Parallel artifact uploads."
)
@click.option("--publisher", "publisher_name", default="ors", show_default=True, hidden=True)
@click.option(
    "--project",
    "project_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Project root holding .ors/config.yaml (default: current directory).",
)
@click.option("--dry-run", is_flag=True, help="Show what would be created and uploaded.")
@click.pass_context
def publish(
    ctx: click.Context,
    artifacts: tuple[Path, ...],
    platform: str,
    arch: str | None,
    app_version: str | None,
    package_json: Path | None,
    base_url: str | None,
    username: str | None,
    password: str | None,
    channel: str | None,
    chunk_size_mb: float | None,
    change_log: str | None,
    max_concurrent_uploads: int | None,
    publisher_name: str,
    project_path: Path,
    dry_run: bool,
) -> None:
    """Upload ARTIFACTS to the release server.

    The release for the version/channel is created if missing; artifacts
    already on the server are skipped.

    Examples:

        ors-publish publish out/make/app-1.2.0.zip --platform darwin

        ors-publish publish dist/*.exe --app-version 1.3.0-beta --dry-run
    """
    use_json = should_output_json(ctx)

    package_data = _read_app_version(app_version, package_json)

    try:
        publisher_config = load_publisher_config(
            project_path,
            base_url=base_url,
            username=username,
            password=password,
            channel=channel,
            chunk_size_in_mb=chunk_size_mb,
            change_log=change_log,
            max_concurrent_uploads=max_concurrent_uploads,
        )
        make_result = MakeResult(
            package_json=package_data, artifacts=list(artifacts), platform=platform, arch=arch
        )
        publisher = get_publisher(publisher_name, publisher_config)
        status_line = (lambda _msg: None) if use_json else detail
        with _quiet_if(use_json):
            outcome = publisher.publish(
                PublishContext(
                    make_results=[make_result], set_status_line=status_line, dry_run=dry_run
                )
            )
    except (PublisherError, ValueError) as err:
        _fail("publish", err, use_json)
        return

    if use_json:
        if outcome.success:
            output_json_envelope(success_envelope("publish", outcome.to_dict()))
        else:
            failures = [
                ErrorDetail.from_exception(asset.error)
                for mr in outcome.make_results
                for asset in mr.failed
                if asset.error is not None
            ]
            output_json_envelope(error_envelope("publish", failures, data=outcome.to_dict()))
    else:
        _print_outcome(outcome, dry_run=dry_run)

    if not outcome.success:
        raise SystemExit(1)


# =============================================================================
# releases
# =============================================================================


@cli.group()
@click.pass_context
def releases(ctx: click.Context) -> None:
    """Inspect releases on the server."""
    ctx.ensure_object(dict)


@releases.command("list")
@click.option(
    "--channel", type=click.Choice(CHANNEL_CHOICES), default=None, help="Filter by channel."
)
@click.option("--base-url", default=None, help="Release server root URL.")
@click.option(
    "--project",
    "project_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Project root holding .ors/config.yaml (default: current directory).",
)
@click.pass_context
def releases_list(
    ctx: click.Context, channel: str | None, base_url: str | None, project_path: Path
) -> None:
    """List releases known to the server.

    Examples:

        ors-publish releases list --channel beta
    """
    use_json = should_output_json(ctx)

    try:
        publisher_config = load_publisher_config(project_path, base_url=base_url)
        if not publisher_config.base_url:
            raise MissingCredentialsError(["base_url"])
        with ReleaseServerClient(
            publisher_config.api_url, transport_retries=publisher_config.transport_retries
        ) as client:
            found = client.list_releases()
    except PublisherError as err:
        _fail("releases list", err, use_json)
        return

    if channel:
        found = [r for r in found if r.channel == channel]

    if use_json:
        output_json_envelope(
            success_envelope(
                "releases list",
                {"releases": [r.to_dict() for r in found], "count": len(found)},
            )
        )
        return

    if not found:
        info("No releases found")
        return
    for release in found:
        info(f"{release.version} ({release.channel})")
        for asset in release.assets:
            detail(f"  {asset.platform}: {asset.name}")


# =============================================================================
# config
# =============================================================================


@cli.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Manage publisher settings in .ors/config.yaml."""
    ctx.ensure_object(dict)


_project_option = click.option(
    "--project",
    "project_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Project root holding .ors/config.yaml (default: current directory).",
)


@config.command("set")
@click.argument("key")
@click.argument("value")
@_project_option
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str, project_path: Path) -> None:
    """Set KEY to VALUE in the project config."""
    use_json = should_output_json(ctx)

    if key not in KNOWN_SETTINGS:
        warn(f"'{key}' is not a known setting; storing it anyway")
    try:
        set_setting(project_path, key, value)
    except PublisherError as err:
        _fail("config set", err, use_json)
        return

    shown = "********" if key in SECRET_SETTINGS else value
    if use_json:
        output_json_envelope(success_envelope("config set", {"key": key, "value": shown}))
    else:
        success(f"Set {key} = {shown}")


@config.command("get")
@click.argument("key")
@_project_option
@click.pass_context
def config_get(ctx: click.Context, key: str, project_path: Path) -> None:
    """Print the resolved value of KEY."""
    use_json = should_output_json(ctx)

    try:
        value = get_setting(key, project_path=project_path)
    except PublisherError as err:
        _fail("config get", err, use_json)
        return

    if value is not None and key in SECRET_SETTINGS:
        value = "********"
    if use_json:
        output_json_envelope(success_envelope("config get", {"key": key, "value": value}))
    elif value is None:
        info(f"{key} is not set")
    else:
        click.echo(value)


@config.command("unset")
@click.argument("key")
@_project_option
@click.pass_context
def config_unset(ctx: click.Context, key: str, project_path: Path) -> None:
    """Remove KEY from the project config."""
    use_json = should_output_json(ctx)

    try:
        removed = unset_setting(project_path, key)
    except PublisherError as err:
        _fail("config unset", err, use_json)
        return

    if use_json:
        output_json_envelope(success_envelope("config unset", {"key": key, "removed": removed}))
    elif removed:
        success(f"Removed {key}")
    else:
        info(f"{key} was not set")


@config.command("list")
@_project_option
@click.pass_context
def config_list(ctx: click.Context, project_path: Path) -> None:
    """List resolved settings and where they come from."""
    use_json = should_output_json(ctx)

    try:
        settings = list_settings(project_path)
    except PublisherError as err:
        _fail("config list", err, use_json)
        return

    if use_json:
        output_json_envelope(success_envelope("config list", {"settings": settings}))
        return

    if not settings:
        info("No settings configured")
        return
    for key, entry in settings.items():
        info(f"{key} = {entry['value']}")
        detail(f"  source: {entry['source']}")
