import json

import click
import yaml

from ihostit.catalog.parser import parse_catalog


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["summary", "json", "yaml"]),
    default="summary",
    help="Output format.",
)
def parse(path, output_format):
    """Parse a local copy of the catalog markdown."""
    with open(path, "r", encoding="utf-8") as f:
        categories = parse_catalog(f.read())

    if output_format == "json":
        click.echo(json.dumps([c.model_dump() for c in categories], indent=2))
        return
    if output_format == "yaml":
        click.echo(yaml.safe_dump([c.model_dump() for c in categories], sort_keys=False))
        return

    for category in categories:
        click.echo(f"{category.name} ({len(category.apps)} apps)")
    total_apps = sum(len(category.apps) for category in categories)
    click.echo(f"Total: {len(categories)} categories, {total_apps} apps")
