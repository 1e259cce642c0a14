"""Still-image export."""

from mangankyo.io.exporter import ExportRequest, Exporter, export_filename

__all__ = ["ExportRequest", "Exporter", "export_filename"]
