"""
Renderers for scan results.

Each formatter writes to a text stream (stdout by default). Progress and log
output go elsewhere, so the stream only ever holds the requested format.
"""

import json
import sys
from collections.abc import Iterable
from io import StringIO
from typing import Callable, TextIO

from srccat.core.models import FileRecord, OutputFormat


def write_text(records: Iterable[FileRecord], stream: TextIO) -> None:
    """Write each file as a fenced block headed by its path."""
    for record in records:
        stream.write(f"\n```{record.path}\n{record.content or ''}\n```\n")


def write_json(records: Iterable[FileRecord], stream: TextIO) -> None:
    """Write all records as a single JSON array on one line."""
    payload = [record.to_dict() for record in records]
    stream.write(json.dumps(payload, ensure_ascii=False))
    stream.write("\n")


def write_list(records: Iterable[FileRecord], stream: TextIO) -> None:
    """Write one relative path per line."""
    for record in records:
        stream.write(f"{record.path}\n")


_WRITERS: dict[OutputFormat, Callable[[Iterable[FileRecord], TextIO], None]] = {
    OutputFormat.TEXT: write_text,
    OutputFormat.JSON: write_json,
    OutputFormat.LIST: write_list,
}


def render(
    records: Iterable[FileRecord],
    output_format: OutputFormat,
    stream: TextIO | None = None,
) -> None:
    """
    Render records in the requested format.

    Args:
        records: Records to write, in output order
        output_format: One of text, json, list
        stream: Destination; defaults to sys.stdout
    """
    writer = _WRITERS[output_format]
    writer(records, stream if stream is not None else sys.stdout)


def render_to_string(records: Iterable[FileRecord], output_format: OutputFormat) -> str:
    """Render records into a string instead of a stream."""
    buffer = StringIO()
    render(records, output_format, buffer)
    return buffer.getvalue()
