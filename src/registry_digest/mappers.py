"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a command wrapper
so Typer commands don't need individual try/except blocks.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

EXIT_CODES = {
    "ValueError": 2,
    "ManifestResolutionError": 3,
    "AuthenticationError": 4,
}

# Anything unmapped is treated as a registry/network failure
FALLBACK_EXIT_CODE = 3


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    - 0: Success
    - 2: Invalid image name or settings (ValueError)
    - 3: Resolution failed (ManifestResolutionError) or unknown error
    - 4: Credentials rejected (AuthenticationError)

    A mapped ``__cause__`` wins over the wrapper, so a resolution that
    failed on credentials still exits with 4.
    """
    cause = exc.__cause__
    if cause is not None and type(cause).__name__ in EXIT_CODES:
        return EXIT_CODES[type(cause).__name__]
    return EXIT_CODES.get(type(exc).__name__, FALLBACK_EXIT_CODE)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Runs ``func`` and turns any exception into typer.Exit with the mapped
    code, printing the message to stderr first.

    Raises:
        typer.Exit: With appropriate exit code if func raises
    """
    try:
        return func()
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
