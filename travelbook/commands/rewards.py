"""
CLI Commands for the reward program configuration.
"""
import json

import click
from flask.cli import with_appcontext
from ..extensions import db
from ..services.reward_config_service import get_reward_config_store
from ..utils.exceptions import PersistenceError, RewardConfigValidationError


def build_patch(path: str, raw_value: str) -> dict:
    """
    Turn a dotted path and a CLI value into a nested patch.

    The value is parsed as JSON when possible (12, true, [..]) and kept as a
    plain string otherwise.
    """
    try:
        value = json.loads(raw_value)
    except ValueError:
        value = raw_value

    patch = value
    for part in reversed(path.split('.')):
        patch = {part: patch}
    return patch


@click.group('rewards')
def rewards_cli():
    """Reward program configuration commands."""
    pass


@rewards_cli.command('seed')
@with_appcontext
def seed():
    """Create tables if needed and make sure the config document exists."""
    db.create_all()
    try:
        config = get_reward_config_store().get()
    except PersistenceError as e:
        raise click.ClickException(e.message)
    click.echo(f"Reward config ready (last updated {config['lastUpdated']})")


@rewards_cli.command('show')
@with_appcontext
def show():
    """Print the current configuration as JSON."""
    try:
        config = get_reward_config_store().get()
    except PersistenceError as e:
        raise click.ClickException(e.message)
    click.echo(json.dumps(config, indent=2, sort_keys=True))


@rewards_cli.command('set')
@click.argument('path')
@click.argument('value')
@with_appcontext
def set_value(path, value):
    """Patch a single field, e.g. `tierBenefits.gold.discount 12`."""
    try:
        config = get_reward_config_store().update(build_patch(path, value))
    except RewardConfigValidationError as e:
        for field, message in sorted(e.errors.items()):
            click.echo(f"  {field}: {message}", err=True)
        raise click.ClickException(e.message)
    except PersistenceError as e:
        raise click.ClickException(e.message)
    click.echo(f"Updated {path} (last updated {config['lastUpdated']})")


def init_app(app):
    """Register reward commands with the Flask app."""
    app.cli.add_command(rewards_cli)
