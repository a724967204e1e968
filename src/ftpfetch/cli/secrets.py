"""
ftpfetch encrypt / generate-key - Produce encrypted credential values.
"""

import typer

from ftpfetch.jobs.credentials import encrypt_value, generate_key


def encrypt(
    value: str = typer.Argument(..., help="Plaintext credential to encrypt"),
    key: str = typer.Option(
        ...,
        "--key",
        "-k",
        envvar=["SchedulerEncryptionKey", "FTPFETCH_ENCRYPTION_KEY"],
        help="Base64 encryption key",
    ),
) -> None:
    """
    Encrypt a credential for use in job parameters when encryption is enabled.
    """
    try:
        typer.echo(encrypt_value(value, key))
    except ValueError as e:
        typer.echo(f"Error: invalid key: {e}", err=True)
        raise typer.Exit(2) from e


def generate() -> None:
    """Print a new random 256-bit key (base64)."""
    typer.echo(generate_key())
