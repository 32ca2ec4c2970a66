from .formatter import cprint, header, print_validation_report, success, warn
from .writer import render_dry_run, write_documents

__all__ = [
    "cprint",
    "header",
    "print_validation_report",
    "render_dry_run",
    "success",
    "warn",
    "write_documents",
]
