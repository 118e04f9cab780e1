"""Apply JSON Patch (RFC 6902) documents to typed Python objects."""

__version__ = "0.1.0"
