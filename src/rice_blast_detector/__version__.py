"""Version information for rice-blast-detector."""

__version__ = "1.0.0"
__version_date__ = "2026-10-19"

__title__ = "rice_blast_detector"
__description__ = "Rice blast leaf analysis with offline fallback and running detection statistics"
__url__ = "https://github.com/rice-blast-detector/rice-blast-detector"

__author__ = "Rice Blast Detector Contributors"

__license__ = "MIT"
__copyright__ = "Copyright 2026 Rice Blast Detector Contributors"

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__url__",
    "__author__",
    "__license__",
    "__copyright__",
]
