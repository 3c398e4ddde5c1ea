"""CLI interface for Image Uploader using Typer.

Main entry point for the application. Handles command definitions,
argument parsing, progress bars, and Rich console output.
"""

import tempfile
import uuid
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, DownloadColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .channel import ConsoleObserver, StatusChannel
from .config import get_s3_config, load_secrets, validate_config
from .errors import ConfigError, UploaderError
from .jobs import Job
from .logging_config import setup_logger
from .models import EventKind, ResizeSpec, S3Config, SizeLimit, TransferSpec
from .probe import identify
from .storage import build_object_key
from .upload import init_s3_client, verify_connection
from .uploader import Uploader, run_resize
from .utils import format_file_size, print_error, print_success

app = typer.Typer(
    name="image-uploader",
    help="Resize images and upload them to S3-compatible object storage",
    add_completion=False,
)
console = Console()

# Options shared by every command, filled in by the app callback
state: dict = {"secrets": None, "events": False}


@app.callback()
def main_options(
    secrets: Optional[Path] = typer.Option(
        None,
        "--secrets",
        help="Path to secrets.json",
    ),
    events: bool = typer.Option(
        False,
        "--events",
        "-e",
        help="Print every status event as JSON",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
) -> None:
    """Resize images and upload them to object storage."""
    state["secrets"] = secrets
    state["events"] = events
    setup_logger("DEBUG" if verbose else None)


def _load_config() -> S3Config:
    secrets = load_secrets(state["secrets"])
    validate_config(secrets)
    return get_s3_config(secrets)


def _make_channel() -> StatusChannel:
    channel = StatusChannel()
    if state["events"]:
        channel.attach(ConsoleObserver())
    return channel


def _make_uploader(config: S3Config) -> Uploader:
    return Uploader(config, channel=_make_channel())


def _size_limit(max_size: Optional[float]) -> SizeLimit:
    if max_size is None:
        return SizeLimit.unlimited()
    if max_size <= 0:
        print_error(f"--max-size must be a positive number of MB, got {max_size:g}")
        raise typer.Exit(1)
    return SizeLimit.bound(max_size)


def _resolve_bucket(bucket: Optional[str], config: S3Config) -> str:
    bucket = bucket or config.bucket
    if not bucket:
        raise ConfigError("No bucket given. Pass --bucket or set aws.bucket in secrets.json.")
    return bucket


def _wait_with_progress(job: Job, label: str) -> str:
    """Drive a progress bar from an upload job's events until it finishes."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(f"[cyan]Uploading {label}...", total=None)
        for event in job.events():
            if event.kind is EventKind.PROGRESS:
                progress.update(
                    task,
                    completed=event.payload['progressAmount'],
                    total=event.payload['progressTotal'],
                )
    return job.result()


@app.command()
def resize(
    source: Path = typer.Argument(..., help="Image to resize", exists=True, dir_okay=False),
    destination: Path = typer.Argument(..., help="Output path; format follows the suffix"),
    width: Optional[int] = typer.Option(None, "--width", "-w", min=1, help="Target width"),
    height: Optional[int] = typer.Option(None, "--height", "-h", min=1, help="Target height"),
    square: bool = typer.Option(False, "--square", help="Crop to an exact width x height square"),
    quality: int = typer.Option(90, "--quality", "-q", min=1, max=100, help="Output quality 1-100"),
    keep_metadata: bool = typer.Option(False, "--keep-metadata", help="Keep EXIF and ICC profile"),
    max_size: Optional[float] = typer.Option(None, "--max-size", help="Reject sources larger than this many MB"),
) -> None:
    """Resize an image locally; no credentials are needed."""
    spec = ResizeSpec(
        file_id=uuid.uuid4().hex,
        source=source,
        destination=destination,
        target_width=width,
        target_height=height,
        square=square,
        quality=quality,
        strip_metadata=not keep_metadata,
        max_size=_size_limit(max_size),
    )

    channel = _make_channel()
    job = Job(spec.file_id, channel)
    try:
        with console.status(f"[bold green]Resizing {source.name}..."):
            run_resize(job, spec)
        written = job.result()
    except UploaderError as e:
        print_error(f"Resize failed: {e.message}")
        raise typer.Exit(1)
    finally:
        channel.close()

    print_success(f"Wrote {written}")


@app.command()
def upload(
    file: Path = typer.Argument(..., help="File to upload", exists=True, dir_okay=False),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Bucket (default: aws.bucket)"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Object key (default: images/YYYY/MM/DD/<name>)"),
    acl: Optional[str] = typer.Option(None, "--acl", help="ACL override (default: aws.acl or public-read)"),
) -> None:
    """Upload a file to object storage."""
    try:
        config = _load_config()
        bucket_name = _resolve_bucket(bucket, config)

        spec = TransferSpec(
            file_id=uuid.uuid4().hex,
            bucket_name=bucket_name,
            source=file,
            remote_key=key or build_object_key(file),
            acl=acl,
        )

        with _make_uploader(config) as uploader:
            path = _wait_with_progress(uploader.upload(spec), file.name)

    except ConfigError as e:
        print_error(f"Configuration error: {e.message}")
        raise typer.Exit(1)
    except UploaderError as e:
        print_error(f"Upload failed: {e.message}")
        raise typer.Exit(1)

    print_success(path)


@app.command()
def publish(
    source: Path = typer.Argument(..., help="Image to resize and upload", exists=True, dir_okay=False),
    width: Optional[int] = typer.Option(None, "--width", "-w", min=1, help="Target width"),
    height: Optional[int] = typer.Option(None, "--height", "-h", min=1, help="Target height"),
    square: bool = typer.Option(False, "--square", help="Crop to an exact width x height square"),
    quality: int = typer.Option(90, "--quality", "-q", min=1, max=100, help="Output quality 1-100"),
    max_size: Optional[float] = typer.Option(None, "--max-size", help="Reject sources larger than this many MB"),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Bucket (default: aws.bucket)"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Object key (default: images/YYYY/MM/DD/<name>)"),
) -> None:
    """Resize an image, then upload the result."""
    file_id = uuid.uuid4().hex

    try:
        config = _load_config()
        bucket_name = _resolve_bucket(bucket, config)

        with tempfile.TemporaryDirectory() as tmp_dir, _make_uploader(config) as uploader:
            resized = Path(tmp_dir) / source.name
            resize_spec = ResizeSpec(
                file_id=file_id,
                source=source,
                destination=resized,
                target_width=width,
                target_height=height,
                square=square,
                quality=quality,
                max_size=_size_limit(max_size),
            )
            with console.status(f"[bold green]Resizing {source.name}..."):
                uploader.resize(resize_spec).result()

            transfer_spec = TransferSpec(
                file_id=file_id,
                bucket_name=bucket_name,
                source=resized,
                remote_key=key or build_object_key(source),
            )
            path = _wait_with_progress(uploader.upload(transfer_spec), source.name)

    except ConfigError as e:
        print_error(f"Configuration error: {e.message}")
        raise typer.Exit(1)
    except UploaderError as e:
        print_error(f"Publish failed: {e.message}")
        raise typer.Exit(1)

    print_success(path)


@app.command()
def delete(
    keys: list[str] = typer.Argument(..., help="Object keys to delete"),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Bucket (default: aws.bucket)"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
) -> None:
    """Delete objects from the bucket."""
    try:
        config = _load_config()
        bucket_name = _resolve_bucket(bucket, config)

        if not force:
            console.print(f"\n[bold]Deleting from {bucket_name}:[/bold]")
            for key in keys:
                console.print(f"  • {key}")
            if not typer.confirm("Delete these objects?", default=False):
                console.print("[yellow]Cancelled[/yellow]")
                raise typer.Exit(0)

        with _make_uploader(config) as uploader:
            with console.status("[bold red]Deleting objects..."):
                deleted, failed = uploader.delete(uuid.uuid4().hex, bucket_name, keys).result()

    except ConfigError as e:
        print_error(f"Configuration error: {e.message}")
        raise typer.Exit(1)
    except UploaderError as e:
        print_error(f"Delete failed: {e.message}")
        raise typer.Exit(1)

    if failed == 0:
        console.print(f"[green]✓ Deleted {deleted} objects[/green]")
    else:
        console.print(f"[yellow]Deleted {deleted} objects, {failed} failed[/yellow]")


@app.command()
def inspect(
    file: Path = typer.Argument(..., help="Image to inspect", exists=True, dir_okay=False),
) -> None:
    """Show an image's format, size and orientation."""
    try:
        info = identify(file)
    except UploaderError as e:
        print_error(e.message)
        raise typer.Exit(1)

    table = Table(title=file.name)
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Format", str(info['format']))
    table.add_row("Mode", str(info['mode']))
    table.add_row("Dimensions", f"{info['width']}x{info['height']}")
    table.add_row("File size", format_file_size(info['file_size']))
    table.add_row("Orientation", str(info['orientation'] or 1))
    table.add_row("ICC profile", "yes" if info['has_icc_profile'] else "no")

    console.print(table)


@app.command()
def auth(
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Bucket (default: aws.bucket)"),
) -> None:
    """Validate secrets.json and test bucket access."""
    try:
        with console.status("[bold green]Validating configuration..."):
            config = _load_config()

        console.print("[green]✓[/green] Configuration valid")

        bucket_name = _resolve_bucket(bucket, config)
        client = init_s3_client(config)

        with console.status("[bold green]Testing bucket access..."):
            verify_connection(client, bucket_name)

        console.print("[green]✓[/green] Bucket access successful")
        console.print(f"  Bucket: {bucket_name}")
        if config.endpoint_url:
            console.print(f"  Endpoint: {config.endpoint_url}")
        console.print(f"  Default ACL: {config.acl}")

    except ConfigError as e:
        console.print(f"[red]✗[/red] Configuration error: {e.message}")
        raise typer.Exit(1)
    except UploaderError as e:
        console.print(f"[red]✗[/red] Connection error: {e.message}")
        raise typer.Exit(1)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
