"""Import/export of the card store as JSON files."""

from .json_io import ImportFileError, export_file, import_file, parse_payload

__all__ = ["ImportFileError", "export_file", "import_file", "parse_payload"]
