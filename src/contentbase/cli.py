"""Command-line interface for ContentBase.

This module provides the CLI commands for running and managing
the ContentBase application.
"""

import asyncio
from typing import NoReturn

import click

from contentbase.core.config import get_settings
from contentbase.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="ContentBase")
def cli() -> None:
    """ContentBase - headless CMS with schema-driven collections.

    Settings are read from CONTENTBASE_* environment variables and .env.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload/--no-reload",
    default=None,
    help="Enable auto-reload (defaults to on in development)",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool | None) -> None:
    """Start the ContentBase server."""
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers
    if reload is None:
        reload = settings.is_development

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "Starting ContentBase server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "contentbase.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def init_db(force: bool) -> None:
    """Initialize the database.

    Creates the collections table in development. In production, run
    ``alembic upgrade head`` instead.
    """
    from contentbase.infrastructure.persistence.database import (
        get_db_manager,
        init_database,
    )

    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize() -> None:
        try:
            await init_database()
            click.echo("Database initialized successfully.")
        finally:
            await get_db_manager().disconnect()

    asyncio.run(initialize())


@cli.command()
@click.argument(
    "kind",
    type=click.Choice(["invite", "reset_password", "welcome", "update"]),
)
@click.argument("recipient")
@click.option(
    "--param",
    "params",
    multiple=True,
    metavar="KEY=VALUE",
    help="Template parameter, e.g. --param inviter_name=Ada (repeatable)",
)
def send_email(kind: str, recipient: str, params: tuple[str, ...]) -> None:
    """Send a notification email, e.g. to check SMTP settings."""
    from contentbase.core.exceptions import ContentBaseError
    from contentbase.infrastructure.services.notification_service import NotificationService

    settings = get_settings()
    configure_logging(settings)

    template_params: dict[str, str] = {}
    for param in params:
        key, sep, value = param.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{param}'", param_hint="--param")
        template_params[key] = value

    try:
        asyncio.run(NotificationService(settings=settings).send_email(kind, recipient, template_params))
    except ContentBaseError as e:
        click.echo(f"ERROR: {e}", err=True)
        raise SystemExit(1) from e
    click.echo(f"Sent '{kind}' email to {recipient}.")


@cli.command()
def info() -> None:
    """Display ContentBase configuration."""
    settings = get_settings()

    click.echo(f"""
ContentBase v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}
  API Key:      {'configured' if settings.operator_api_key else 'disabled'}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Database:
  URL:          {settings.database_url}
  Pool Size:    {settings.db_pool_size}
  Echo:         {settings.db_echo}

Storage:
  Backend:      {settings.storage_backend}
  Path:         {settings.storage_path}
  S3 Bucket:    {settings.s3_bucket or '-'}

Email:
  SMTP:         {settings.smtp_host if settings.smtp_configured else 'not configured (log only)'}
  From:         {settings.email_from_name} <{settings.email_from}>

Migrations:
  Batch Size:   {settings.migration_batch_size}
  Max Retries:  {settings.migration_max_retries}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
