"""Colored terminal output for the command line."""

from typing import Dict

import click
from colorama import Fore, Style

from dorgu.core.validate import Severity, ValidationResult, format_validation_report

SEVERITY_COLORS: Dict[Severity, str] = {
    Severity.ERROR: Fore.RED,
    Severity.WARNING: Fore.YELLOW,
    Severity.INFO: Fore.BLUE,
}


def cprint(text: str, color: str = Fore.WHITE, bold: bool = False, err: bool = False) -> None:
    style = Style.BRIGHT if bold else Style.NORMAL
    click.echo(f"{style}{color}{text}{Style.RESET_ALL}", err=err)


def success(text: str) -> None:
    cprint(f"✓ {text}", color=Fore.GREEN)


def warn(text: str) -> None:
    cprint(f"⚠ {text}", color=Fore.YELLOW, err=True)


def header(text: str) -> None:
    cprint(f"\n{text}", color=Fore.MAGENTA, bold=True)


def print_validation_report(result: ValidationResult) -> None:
    """Print the grouped report followed by its one-line summary."""
    header("Validation")
    if result.issues:
        click.echo(format_validation_report(result, styles=SEVERITY_COLORS, reset=Style.RESET_ALL).rstrip("\n"))
    if result.passed:
        success(result.summary)
    else:
        cprint(result.summary, color=Fore.RED, bold=True)
