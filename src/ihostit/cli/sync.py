import click

from ihostit.bootstrap.manager import bootstrap_store, build_scheduler


@click.group()
def sync():
    """Catalog synchronization commands"""
    pass


@sync.command(name="run")
@click.option("--refresh", is_flag=True, help="Ignore the cached upstream document.")
def run_sync(refresh):
    """Synchronize the catalog from the upstream source now."""
    store = bootstrap_store()
    scheduler = build_scheduler(store)
    outcome = scheduler.force_run(refresh_source=refresh)
    if not outcome.success:
        raise click.ClickException(outcome.message)
    click.echo(outcome.message)
    if outcome.skipped_apps or outcome.skipped_categories:
        click.echo(
            f"Skipped {outcome.skipped_apps} apps and "
            f"{outcome.skipped_categories} categories."
        )


@sync.command(name="status")
def sync_status():
    """Show catalog counts and the latest sync run."""
    store = bootstrap_store()
    stats = store.get_stats()
    click.echo(f"Categories: {stats.total_categories}")
    click.echo(f"Apps: {stats.total_apps}")

    last = store.get_latest_sync_run()
    if last is None:
        click.echo("Last sync: never")
        return
    click.echo(f"Last sync: {last.status.value} at {last.started_at.isoformat()}")
    if last.message:
        click.echo(f"Message: {last.message}")
