"""docscan: keyword search over local Word and Excel documents."""

__version__ = "0.1.0"
