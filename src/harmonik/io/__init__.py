"""Frame export."""

from harmonik.io.exporter import DEFAULT_FILENAME, encode_png, export_png

__all__ = ["DEFAULT_FILENAME", "encode_png", "export_png"]
