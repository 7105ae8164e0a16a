"""CLI interface for the NTFS MFT and USN journal reader"""
import click
import sys
import os
import traceback
from pathlib import Path

from ntfsreader import __version__
from ntfsreader.config import ConfigManager
from ntfsreader.exceptions import ConfigurationError, NtfsReaderError
from ntfsreader.journal.monitor import monitor_journal
from ntfsreader.logging_setup import configure_logging
from ntfsreader.mft.lister import list_files as run_list_files, file_info as run_file_info
from ntfsreader.models import ALL_REASONS, OutputFormat, Settings


VERBOSE_ENV_VAR = 'NTFSREADER_VERBOSE'


# Error handling utilities
def handle_error(error, verbose=False):
    """Handle and display errors in a user-friendly way"""
    error_msg = str(error)

    # Provide helpful context for common errors
    if isinstance(error, ConfigurationError):
        click.echo(f"✗ Configuration error: {error_msg}", err=True)
    elif isinstance(error, NtfsReaderError):
        click.echo(f"✗ {error_msg}", err=True)
    elif isinstance(error, PermissionError):
        click.echo("✗ Permission denied. Try running as Administrator.", err=True)
    else:
        click.echo(f"✗ Error: {error_msg}", err=True)

    if verbose:
        click.echo("\nDetailed traceback:", err=True)
        traceback.print_exc()


class OutputFormatType(click.ParamType):
    """Output format name, case-insensitive, with aliases"""
    name = 'format'

    def convert(self, value, param, ctx):
        if isinstance(value, OutputFormat):
            return value
        try:
            return OutputFormat.parse(value)
        except ConfigurationError:
            self.fail(
                f"{value!r} is not one of json, json-pretty, csv, bincode, msgpack",
                param,
                ctx,
            )


class ReasonMaskType(click.ParamType):
    """32-bit reason mask given in decimal or 0x-prefixed hexadecimal"""
    name = 'mask'

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            mask = value
        else:
            try:
                mask = int(value, 0)
            except ValueError:
                self.fail(f"{value!r} is not a valid reason mask", param, ctx)

        if not 0 <= mask <= ALL_REASONS:
            self.fail(f"{value!r} does not fit in 32 bits", param, ctx)
        return mask


OUTPUT_FORMAT = OutputFormatType()
REASON_MASK = ReasonMaskType()


def binary_stdout():
    return click.get_binary_stream('stdout')


def resolve_format(ctx, output_format):
    """Use the configured default when --output is not given"""
    if output_format is not None:
        return output_format
    return ctx.obj['settings'].default_format


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging', envvar=VERBOSE_ENV_VAR)
@click.option('--quiet', '-q', is_flag=True, help='Only log warnings and errors')
@click.option('--config', 'config_file', type=click.Path(dir_okay=False),
              help='Path to configuration file (default: $NTFSREADER_CONFIG)')
@click.pass_context
def cli(ctx, verbose, quiet, config_file):
    """NTFS MFT and USN journal reader

    Lists Master File Table entries and reports change journal events of
    an NTFS volume as JSON, CSV or binary records on standard output.
    Progress and diagnostics go to standard error.

    Requires Administrator rights when reading a live volume.

    Environment Variables:
        NTFSREADER_CONFIG: Path to a YAML configuration file
        NTFSREADER_VERBOSE: Enable debug logging (1, true, yes)

    Examples:
        ntfsreader list-files --volume C: --filter "*.pdf"
        ntfsreader journal --volume C: --continuous --output csv
        ntfsreader file-info --volume C: --record 5
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    overrides = {}
    if verbose:
        overrides['log_level'] = 'DEBUG'
    elif quiet:
        overrides['log_level'] = 'WARNING'

    try:
        settings = ConfigManager.load_settings(config_file, overrides)
    except ConfigurationError as e:
        configure_logging('INFO')
        handle_error(e, verbose=verbose)
        sys.exit(1)

    configure_logging(settings.log_level)
    ctx.obj['settings'] = settings
    ctx.obj.setdefault('backend', None)


@cli.command('list-files')
@click.option('--volume', '-v', required=True, help='Volume to read (e.g. C: or \\\\.\\C:)')
@click.option('--filter', '-f', 'pattern', help='Path filter: glob (*.pdf), regex (^c:\\\\users) or substring')
@click.option('--directories-only', '-d', is_flag=True, help='Only list directories')
@click.option('--limit', '-l', type=click.IntRange(min=0), help='Maximum number of results')
@click.option('--output', '-o', 'output_format', type=OUTPUT_FORMAT,
              help='Output format: json, json-pretty, csv (default: from config)')
@click.pass_context
def list_files(ctx, volume, pattern, directories_only, limit, output_format):
    """List files from the Master File Table

    Example:
        ntfsreader list-files --volume C: --filter "*.docx" --limit 100
    """
    verbose = ctx.obj.get('verbose', False)

    try:
        run_list_files(
            volume=volume,
            stream=binary_stdout(),
            output_format=resolve_format(ctx, output_format),
            pattern=pattern,
            directories_only=directories_only,
            limit=limit,
            backend=ctx.obj.get('backend'),
        )
    except NtfsReaderError as e:
        handle_error(e, verbose=verbose)
        sys.exit(1)


@cli.command()
@click.option('--volume', '-v', required=True, help='Volume to monitor (e.g. C: or \\\\?\\C:)')
@click.option('--from-start', '-f', is_flag=True, help='Read from the first available record')
@click.option('--from-usn', '-u', type=int, help='Read from a specific USN')
@click.option('--reason-mask', '-r', type=REASON_MASK,
              help='Only report reasons in this mask (decimal or 0x hex, default: all)')
@click.option('--max-events', '-m', type=click.IntRange(min=0), help='Stop after this many events')
@click.option('--continuous', '-c', is_flag=True, help='Stream events and keep polling for new ones')
@click.option('--output', '-o', 'output_format', type=OUTPUT_FORMAT,
              help='Output format: json, json-pretty, csv, bincode, msgpack (default: from config)')
@click.pass_context
def journal(ctx, volume, from_start, from_usn, reason_mask, max_events, continuous, output_format):
    """Monitor the USN change journal

    Without --continuous the available events are written once as a single
    batch. With --continuous every event is written as soon as it is read;
    stop with Ctrl+C.

    Example:
        ntfsreader journal --volume C: --from-start --max-events 1000
    """
    verbose = ctx.obj.get('verbose', False)
    settings: Settings = ctx.obj['settings']

    try:
        monitor_journal(
            volume=volume,
            stream=binary_stdout(),
            output_format=resolve_format(ctx, output_format),
            from_start=from_start,
            from_usn=from_usn,
            reason_mask=reason_mask,
            max_events=max_events,
            continuous=continuous,
            history_size=settings.history_size,
            poll_interval=settings.poll_interval,
            backend=ctx.obj.get('backend'),
        )
    except NtfsReaderError as e:
        handle_error(e, verbose=verbose)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nJournal monitoring stopped by user", err=True)
        sys.exit(130)


@cli.command('file-info')
@click.option('--volume', '-v', required=True, help='Volume to read (e.g. C:)')
@click.option('--record', '-r', 'record_number', required=True, type=click.IntRange(min=0),
              help='MFT record number')
@click.option('--output', '-o', 'output_format', type=OUTPUT_FORMAT,
              help='Output format: json, json-pretty, csv (default: from config)')
@click.pass_context
def file_info(ctx, volume, record_number, output_format):
    """Show one MFT record

    Example:
        ntfsreader file-info --volume C: --record 5 --output json-pretty
    """
    verbose = ctx.obj.get('verbose', False)

    try:
        run_file_info(
            volume=volume,
            record_number=record_number,
            stream=binary_stdout(),
            output_format=resolve_format(ctx, output_format),
            backend=ctx.obj.get('backend'),
        )
    except NtfsReaderError as e:
        handle_error(e, verbose=verbose)
        sys.exit(1)


@cli.command('init-config')
@click.argument('path', default='ntfsreader.yaml', type=click.Path(dir_okay=False))
@click.option('--force', is_flag=True, help='Overwrite an existing file')
@click.pass_context
def init_config(ctx, path, force):
    """Write a default configuration file

    Example:
        ntfsreader init-config ~/.config/ntfsreader.yaml
    """
    verbose = ctx.obj.get('verbose', False)
    target = Path(os.path.expanduser(path))

    if target.exists() and not force:
        click.echo(f"✗ {target} already exists. Use --force to overwrite it.", err=True)
        sys.exit(1)

    try:
        ConfigManager.create_default_config_file(str(target))
    except OSError as e:
        handle_error(e, verbose=verbose)
        sys.exit(1)

    click.echo(f"✓ Configuration written to {target}", err=True)


@cli.command()
def examples():
    """Show usage examples

    Displays common invocations of every command.
    """
    examples_text = """
Common Usage Examples
=====================

1. List every file on a volume:
   > ntfsreader list-files --volume C:

2. List PDF files as CSV:
   > ntfsreader list-files --volume C: --filter "*.pdf" --output csv

3. List directories under a path with a regular expression:
   > ntfsreader list-files --volume C: --filter "^c:\\\\users\\\\" --directories-only

4. Show a single MFT record:
   > ntfsreader file-info --volume C: --record 5 --output json-pretty

5. Read the whole change journal once:
   > ntfsreader journal --volume C: --from-start

6. Stream new changes as they happen:
   > ntfsreader journal --volume C: --continuous --output csv

7. Stream only file creations (0x100) and deletions (0x200) as MessagePack:
   > ntfsreader journal --volume C: --continuous --reason-mask 0x300 --output msgpack

8. Resume from a known USN and stop after 500 events:
   > ntfsreader journal --volume C: --from-usn 123456789 --max-events 500

Configuration
=============

   > ntfsreader init-config ntfsreader.yaml
   > ntfsreader --config ntfsreader.yaml journal --volume C:

For more information, use --help with any command:
   > ntfsreader <command> --help
"""
    click.echo(examples_text)


def main():
    """Main entry point for the CLI"""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\n\nOperation cancelled by user", err=True)
        sys.exit(130)
    except Exception as e:
        # Check if verbose mode is enabled via environment variable
        verbose = os.environ.get(VERBOSE_ENV_VAR, '').lower() in ('1', 'true', 'yes')
        handle_error(e, verbose=verbose)
        sys.exit(1)


if __name__ == '__main__':
    main()
