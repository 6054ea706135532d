"""Command implementations for the image store CLI."""

from .strip_exif import cmd_strip_exif, sanitize_directory
from .ingest import cmd_ingest
from .thumbs import cmd_thumb, cmd_thumbs
from .status import cmd_index, cmd_orientation

__all__ = [
    'cmd_strip_exif',
    'sanitize_directory',
    'cmd_ingest',
    'cmd_thumb',
    'cmd_thumbs',
    'cmd_index',
    'cmd_orientation',
]
