import click

from ihostit.db.session import get_db_manager


@click.group()
def db():
    """Database commands"""
    pass


@db.command(name="init")
def init_db():
    """Create the catalog tables if they do not exist."""
    get_db_manager().initialize_db()
    click.echo("Database initialized.")


@db.command(name="reset")
@click.confirmation_option(prompt="This drops all catalog data and sync history. Continue?")
def reset_db():
    """Drop and recreate all catalog tables."""
    get_db_manager().reset_db()
    click.echo("Database reset.")
