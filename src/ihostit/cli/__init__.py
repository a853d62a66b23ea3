import logging

import click

from ihostit.cli.catalog import parse
from ihostit.cli.db import db
from ihostit.cli.sync import sync
from ihostit.config.settings import config


@click.group()
@click.option("--log-level", default=config.log_level, help="Logging level.")
@click.pass_context
def main(ctx, log_level):
    """ihostit CLI"""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

main.add_command(db)
main.add_command(sync)
main.add_command(parse)


@main.command()
@click.option('--host', default='127.0.0.1', help='The host to bind to.')
@click.option('--port', default=8787, help='The port to bind to.')
def server(host, port):
    """Run the FastAPI server."""
    import uvicorn

    from ihostit.api.server import app
    uvicorn.run(app, host=host, port=port)
