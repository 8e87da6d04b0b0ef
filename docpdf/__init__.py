"""docpdf — save a web document viewer's pages as a single PDF."""

__version__ = "0.1.0"
