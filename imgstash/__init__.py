"""imgstash - content-addressed image store with metadata stripping."""

__version__ = "1.0.0"
__author__ = "imgstash Team"

# Import key classes for convenient top-level access
from .pipeline import Ingestor
from .scanning import DedupIndex, sniff, compute_fingerprint
from .metadata import sanitize, get_orientation
from .thumbnails import DerivativeStore, shrink_image
from .commands import sanitize_directory
from .models import StoredImageRecord, IngestResult, SanitizeSummary

__all__ = [
    # Core classes
    'Ingestor',
    'DedupIndex',
    'DerivativeStore',

    # Pipeline stages
    'sniff',
    'compute_fingerprint',
    'sanitize',
    'get_orientation',
    'shrink_image',
    'sanitize_directory',

    # Data models
    'StoredImageRecord',
    'IngestResult',
    'SanitizeSummary',

    # Package metadata
    '__version__',
    '__author__'
]
