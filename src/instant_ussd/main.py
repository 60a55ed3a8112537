"""CLI entrypoint for the USSD gateway."""

import os
from pathlib import Path
from typing import Annotated

import typer
import uvicorn
from loguru import logger
from pydantic import ValidationError

from .config import Settings
from .models import UssdRequest
from .reduction import InvalidSeparatorError
from .service import UssdService

app = typer.Typer(
    name="instant-ussd",
    help="Instant USSD - stateless USSD gateway driven by the full input history.",
)


@app.command()
def serve(
    separator: Annotated[
        str,
        typer.Option("--separator", "-s", help="Separator between values in the input history."),
    ] = "*",
    menus: Annotated[
        str | None,
        typer.Option(
            "--menus",
            help="Menu registry to serve, as 'package.module:attribute'.",
            envvar="USSD_MENUS",
        ),
    ] = None,
    log_root: Annotated[
        Path,
        typer.Option("--log-root", "-l", help="Root directory for exchange logs."),
    ] = Path("./ussd_logs"),
    host: Annotated[
        str,
        typer.Option("--host", "-h", help="Host to bind the server to."),
    ] = "0.0.0.0",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port to bind the server to."),
    ] = 9000,
    reload: Annotated[
        bool,
        typer.Option("--reload", "-r", help="Enable auto-reload for development."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Start the USSD gateway server."""
    try:
        settings = Settings(
            separator=separator,
            menus=menus,
            log_root=log_root,
            host=host,
            port=port,
            verbose=verbose,
        )
    except ValidationError as e:
        typer.echo(f"Invalid settings: {e}", err=True)
        raise typer.Exit(code=2) from e

    logger.info(f"Starting USSD gateway on {settings.host}:{settings.port}")
    logger.info(f"History separator: {settings.separator!r}")
    logger.info(f"Menus: {settings.menus or 'default'}")
    logger.info(f"Logging exchanges to: {settings.log_root.absolute()}")

    settings.log_root.mkdir(parents=True, exist_ok=True)

    # The app factory builds its own Settings, so hand the CLI values over
    # through the environment
    os.environ["USSD_SEPARATOR"] = settings.separator
    os.environ["USSD_LOG_ROOT"] = str(settings.log_root)
    os.environ["USSD_HOST"] = settings.host
    os.environ["USSD_PORT"] = str(settings.port)
    os.environ["USSD_VERBOSE"] = str(settings.verbose)
    if settings.menus:
        os.environ["USSD_MENUS"] = settings.menus

    uvicorn.run(
        "instant_ussd.app:create_app",
        host=settings.host,
        port=settings.port,
        reload=reload,
        factory=True,
    )


@app.command()
def reduce(
    text: Annotated[str, typer.Argument(help="Raw input history, e.g. '1*2*0*3'.")],
    separator: Annotated[
        str,
        typer.Option("--separator", "-s", help="Separator between values in the input history."),
    ] = "*",
) -> None:
    """Print the session record derived from an input history."""
    try:
        service = UssdService(separator)
    except InvalidSeparatorError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2) from e

    record = service.process(UssdRequest(text=text))
    typer.echo(record.model_dump_json(indent=2))


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
