"""CLI to issue API keys and reset their usage counters in MongoDB."""

import sys
from pathlib import Path

import click

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.config import (  # noqa: E402  # pylint: disable=wrong-import-position
    get_settings,
)
from app.dependencies import (  # noqa: E402  # pylint: disable=wrong-import-position
    get_credential_store,
)
from app.models.api_key import (  # noqa: E402  # pylint: disable=wrong-import-position
    ApiKey,
)
from app.services import (  # noqa: E402  # pylint: disable=wrong-import-position
    api_keys,
)


@click.group()
def cli() -> None:
    """Manage summarizer API keys."""


@cli.command("create-key")
@click.option("--email", prompt="User email", help="Email of the key owner")
@click.option("--name", prompt="Key name", help="Label for the API key")
@click.option(
    "--rate-limit",
    type=click.IntRange(min=1),
    default=None,
    help="Usage ceiling (defaults to DEFAULT_RATE_LIMIT)",
)
def create_key(email: str, name: str, rate_limit: int | None) -> None:
    """Generate an API key for an existing user and print it once."""
    settings = get_settings()
    store = get_credential_store()
    store.ensure_indexes()

    user = store.find_user_by_email(email)
    if user is None:
        raise click.ClickException(f"No user with email {email}")

    api_key = ApiKey(
        user_id=user.id,
        name=name.strip(),
        key=api_keys.generate_api_key(settings.app.api_key_prefix),
        rate_limit=rate_limit or settings.app.default_rate_limit,
    )
    store.insert_api_key(api_key)

    click.echo(
        "\nAPI key created. Store this API key securely; "
        "it will not be shown again.\n"
    )
    click.echo(f"User      : {user.email}")
    click.echo(f"Key ID    : {api_key.id}")
    click.echo(f"Rate limit: {api_key.rate_limit}")
    click.echo(f"Header    : {settings.app.api_key_header_name}")
    click.echo(f"API key   : {api_key.key}\n")


@cli.command("reset-usage")
@click.option("--key-id", prompt="API key ID", help="ID of the key to reset")
def reset_usage(key_id: str) -> None:
    """Set a key's usage counter back to zero."""
    store = get_credential_store()
    if not store.reset_usage(key_id):
        raise click.ClickException(f"No API key with ID {key_id}")
    click.echo(f"Usage reset for API key {key_id}")


if __name__ == "__main__":
    cli()
