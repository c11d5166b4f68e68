"""
gpxstream - Format registry, session state and file conversion

A GpxSession holds what outlives a single document: the options, the
file-level metadata gathered from every input, the highest GPX version
seen and the namespace declarations to hand on to the writer.  Reading
several files into one session and writing once merges them.

    from gpxstream.formats import convert
    convert(["a.gpx", "b.gpx"], "merged.gpx", gpxver="1.1")
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from gpxstream.config import GpxOptions
from gpxstream.errors import ErrorCode, GpxError
from gpxstream.models import GpsDataset, GpxGlobal
from gpxstream.reader import ParseContext, read_gpx
from gpxstream.writer import GpxWriter, select_version

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Session
# ─────────────────────────────────────────────────────────────

class GpxSession:
    def __init__(self, options: Optional[GpxOptions] = None):
        self.options = options or GpxOptions()
        self.metadata = GpxGlobal()
        self.version = ""
        self.namespaces: Dict[str, str] = {}

    def read(self, source, dataset: Optional[GpsDataset] = None,
             filename: Optional[str] = None) -> GpsDataset:
        """Read one document (path, binary file object or bytes) into ``dataset``."""
        if dataset is None:
            dataset = GpsDataset()
        ctx = ParseContext(options=self.options, dataset=dataset,
                           metadata=self.metadata, namespaces=self.namespaces,
                           version=self.version, filename=filename)
        read_gpx(source, ctx)
        self.version = ctx.version
        return dataset

    def read_string(self, text: str, dataset: Optional[GpsDataset] = None) -> GpsDataset:
        return self.read(text.encode("utf-8"), dataset)

    def write(self, stream, dataset: GpsDataset, now: Optional[datetime] = None):
        GpxWriter(stream, dataset, self.metadata, self.options,
                  self.version, self.namespaces, now).write()

    def write_string(self, dataset: GpsDataset, now: Optional[datetime] = None) -> str:
        out = io.StringIO()
        self.write(out, dataset, now)
        return out.getvalue()

    def reset(self):
        """Forget everything gathered from earlier inputs."""
        self.metadata.reset()
        self.version = ""
        self.namespaces.clear()


# ─────────────────────────────────────────────────────────────
# Format Registry
# ─────────────────────────────────────────────────────────────

@dataclass
class FormatDesc:
    """Description of a file format."""
    extension: str
    name: str
    reader: Optional[Callable] = None
    writer: Optional[Callable] = None


def _read_gpx_file(session: GpxSession, filepath: str, dataset: GpsDataset) -> GpsDataset:
    return session.read(filepath, dataset, filename=filepath)


def _write_gpx_file(session: GpxSession, filepath: str, dataset: GpsDataset,
                    now: Optional[datetime] = None):
    # Bad version settings fail before the file is created.
    select_version(session.options, session.version)
    with open(filepath, "w", encoding="utf-8") as f:
        session.write(f, dataset, now)


FORMAT_REGISTRY: List[FormatDesc] = [
    FormatDesc("gpx", "GPS Exchange Format", _read_gpx_file, _write_gpx_file),
]

_FORMAT_BY_EXT: Dict[str, FormatDesc] = {fmt.extension: fmt for fmt in FORMAT_REGISTRY}


def get_format(ext: str) -> Optional[FormatDesc]:
    """Get format descriptor by extension."""
    return _FORMAT_BY_EXT.get(ext.lower().lstrip("."))


def supported_input_formats() -> List[str]:
    return sorted(f.extension for f in FORMAT_REGISTRY if f.reader)


def supported_output_formats() -> List[str]:
    return sorted(f.extension for f in FORMAT_REGISTRY if f.writer)


def _format_for(filepath: str, direction: str) -> FormatDesc:
    ext = Path(filepath).suffix.lower().lstrip(".")
    fmt = get_format(ext)
    usable = fmt is not None and (fmt.reader if direction == "input" else fmt.writer)
    if not usable:
        supported = supported_input_formats() if direction == "input" else supported_output_formats()
        raise GpxError(ErrorCode.E_FORMAT_UNSUPPORTED,
                       f"Unsupported {direction} format: .{ext} "
                       f"(supported: {', '.join(supported)})")
    return fmt


# ─────────────────────────────────────────────────────────────
# File API
# ─────────────────────────────────────────────────────────────

def read_file(filepath: str, dataset: Optional[GpsDataset] = None,
              session: Optional[GpxSession] = None, **opts) -> GpsDataset:
    """Read a GPS file, choosing the format from its extension.

    Keyword options build a GpxOptions when no session is given.
    """
    fmt = _format_for(filepath, "input")
    if session is None:
        session = GpxSession(GpxOptions.build(**opts))
    if dataset is None:
        dataset = GpsDataset()
    return fmt.reader(session, str(filepath), dataset)


def write_file(filepath: str, dataset: GpsDataset, session: Optional[GpxSession] = None,
               now: Optional[datetime] = None, **opts):
    """Write a GPS file, choosing the format from its extension."""
    fmt = _format_for(filepath, "output")
    if session is None:
        session = GpxSession(GpxOptions.build(**opts))
    fmt.writer(session, str(filepath), dataset, now)


def convert(inputs: Sequence[str], output: str, now: Optional[datetime] = None,
            **opts) -> GpsDataset:
    """Read every input into one dataset and write it to ``output``.

    Metadata from all inputs is merged and the output version follows the
    newest input unless ``gpxver`` says otherwise.
    """
    if isinstance(inputs, (str, Path)):
        inputs = [inputs]
    session = GpxSession(GpxOptions.build(**opts))
    dataset = GpsDataset()
    for path in inputs:
        read_file(path, dataset, session=session)
    write_file(output, dataset, session=session, now=now)
    logger.info("Converted %d file(s) into %s", len(inputs), output)
    return dataset
