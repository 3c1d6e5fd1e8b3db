#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for PairWeaver.

Merging itself is a library operation (pairweaver.pctg); the CLI manages
the merge configuration files.
"""

import sys
import click
from pathlib import Path
import yaml

from .version import __version__
from .config.schema import TEMPLATES, MergeConfig, load_config, save_config_template, validate_config
from .utils.logging_utils import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True),
              help='Configuration file; its logging section sets the level and log file')
@click.pass_context
def main(ctx, verbose, quiet, config_file):
    """
    PairWeaver: master/slave genome assembly reconciliation

    Merges two assemblies of the same genome into paired contigs.
    """
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet

    level = 'INFO'
    log_file = None
    if config_file:
        try:
            loaded = load_config(Path(config_file))
        except ValueError as e:
            click.echo(f"✗ Error loading configuration: {e}", err=True)
            sys.exit(1)
        ctx.obj['CONFIG'] = loaded
        logging_section = loaded.get('logging') or {}
        level = logging_section.get('level') or level
        log_file = logging_section.get('log_file')

    # Command-line flags override the configuration file
    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    setup_logging(level, log_file)


# ============================================================================
# Configuration Management Commands
# ============================================================================

@main.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--output', '-o', type=click.Path(), default='pairweaver_config.yaml',
              help='Output configuration file path')
@click.option('--template', '-t', type=click.Choice(TEMPLATES), default='default',
              help='Configuration template type')
def config_init(output, template):
    """Generate a template configuration file with all available parameters."""
    click.echo(f"Generating {template} configuration template: {output}")

    try:
        save_config_template(Path(output), template=template)
    except OSError as e:
        click.echo(f"✗ Error creating configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Configuration file created: {output}")


@config.command('validate')
@click.argument('config_file', type=click.Path(exists=True))
def config_validate(config_file):
    """Validate a configuration file."""
    click.echo(f"Validating configuration file: {config_file}")

    try:
        config = load_config(Path(config_file))
    except ValueError as e:
        click.echo(f"✗ Error validating configuration: {e}", err=True)
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        click.echo("\n✗ Configuration validation failed:")
        for error in errors:
            click.echo(f"  • {error}", err=True)
        sys.exit(1)

    merging = MergeConfig.from_dict(config['merging'])
    click.echo("✓ Configuration is valid")
    click.echo("\nKey Settings:")
    click.echo(f"  Min alignment: {merging.min_alignment} bp")
    click.echo(f"  Min homology: {merging.min_homology:.0%}")
    click.echo(f"  Max gaps: {merging.max_gaps}")
    click.echo(f"  Workers: {config['execution']['workers']}")


@config.command('show')
@click.argument('config_file', type=click.Path(exists=True), required=False)
@click.pass_context
def config_show(ctx, config_file):
    """Display configuration settings (the --config file or defaults when no file is given)."""
    if not config_file and ctx.obj.get('CONFIG') is not None:
        click.echo(yaml.dump(ctx.obj['CONFIG'], default_flow_style=False, sort_keys=False))
        return

    try:
        config = load_config(Path(config_file) if config_file else None)
    except ValueError as e:
        click.echo(f"✗ Error reading configuration: {e}", err=True)
        sys.exit(1)
    click.echo(yaml.dump(config, default_flow_style=False, sort_keys=False))


if __name__ == '__main__':
    main()
