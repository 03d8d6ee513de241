"""CLI implementation for blobrange."""

import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Optional

import typer

from .core.config import TransportConfig
from .core.model import BlobRangeError
from .core.util import error_asdict
from .io import open_client, open_range_stream

app = typer.Typer(add_completion=False, help="Stream a byte range of a blob, resuming after network errors.")

COPY_BUFFER_SIZE = 1024 * 1024


@app.command()
def main(
    source: str = typer.Argument(..., help="http(s) URL (<host>/<container>/<name>) or local path"),
    start: int = typer.Option(0, "--start", min=0, help="Offset of the first byte to read"),
    length: Optional[int] = typer.Option(None, "--length", min=0, help="Number of bytes to read (default: to the end)"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write bytes to PATH and print a JSON summary"),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", min=1, help="Transport attempts per request"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", min=1, help="Bytes requested per fetch"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log retries to stderr"),
):
    """Read [START, START+LENGTH) of SOURCE to stdout or a file."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = TransportConfig.from_env(max_attempts=max_attempts, chunk_size=chunk_size)
        client, locator = open_client(source, config)
    except ValueError as e:
        typer.echo(f"Invalid arguments: {e}", err=True)
        raise typer.Exit(code=2)

    # open output sink
    sink = open(output, "wb") if output else typer.get_binary_stream("stdout")
    try:
        with open_range_stream(client, locator, start, length) as stream:
            shutil.copyfileobj(stream, sink, COPY_BUFFER_SIZE)
            delivered, attempts = stream.offset, stream.attempt
    except BlobRangeError as e:
        payload = {"success": False, "source": source}
        payload.update(error_asdict(e))
        typer.echo(json.dumps(payload), err=True)
        raise typer.Exit(code=1)
    finally:
        if output:
            sink.close()
        else:
            sink.flush()
        if hasattr(client, "close"):
            client.close()

    if output:
        typer.echo(json.dumps({
            "success": True, "source": source, "output": str(output),
            "bytes": delivered, "attempts": attempts,
        }))


if __name__ == "__main__":
    app()
