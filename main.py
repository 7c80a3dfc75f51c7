import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from journal.logging_config import setup_default_logging
from journal.store import load_entries
from worklog.config import WorkRecordConfig
from worklog.corpus import serialize_corpus
from worklog.errors import ProviderError, SummaryError
from worklog.periods import resolve_period
from worklog.sinks import ConsoleSink
from worklog.summarizer import run_summary
from worklog.types import SummaryKind, SummaryRequest

logger = logging.getLogger(__name__)

DEFAULT_TITLES = {
    SummaryKind.WEEKLY: "周报",
    SummaryKind.MONTHLY: "月报",
    SummaryKind.QUARTERLY: "季度报告",
    SummaryKind.CUSTOM: "工作总结",
}


@click.group()
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose (DEBUG level) logging")
@click.option('--quiet', '-q', is_flag=True, help="Suppress all logging output")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              help="Path to a YAML configuration file")
@click.pass_context
def cli(ctx, verbose, quiet, config_path):
    """Work-record summaries: turn your work log into a weekly/monthly/quarterly report."""
    ctx.ensure_object(dict)

    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_default_logging(verbose=verbose)

    try:
        ctx.obj['config'] = WorkRecordConfig.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    logger.debug(f"CLI initialized (verbose={verbose}, quiet={quiet})")


def period_options(func):
    """Options shared by every command that works on a summary period."""
    func = click.option('--log-dir', type=click.Path(file_okay=False, path_type=Path),
                        help="Directory holding the daily log files")(func)
    func = click.option('--end', 'end_date', type=click.DateTime(formats=["%Y-%m-%d"]),
                        help="End date for custom summaries (YYYY-MM-DD)")(func)
    func = click.option('--start', 'start_date', type=click.DateTime(formats=["%Y-%m-%d"]),
                        help="Start date for custom summaries (YYYY-MM-DD)")(func)
    func = click.option('--kind', '-k', type=click.Choice([k.value for k in SummaryKind]),
                        default=SummaryKind.WEEKLY.value, show_default=True,
                        help="Summary period")(func)
    return func


def _load_period_logs(config, kind, start_date, end_date, log_dir, now):
    """Resolve the period and read its entries; exits on a bad request."""
    summary_kind = SummaryKind(kind)
    start = start_date.date() if start_date else None
    end = end_date.date() if end_date else None

    try:
        period = resolve_period(summary_kind, now, start, end)
    except SummaryError as e:
        logger.error(f"Invalid request: {e}")
        click.echo(f"\n❌ {e}", err=True)
        sys.exit(1)

    directory = log_dir or config.get_log_directory()
    logger.info(f"Reading logs from {directory} ({period.start_date} .. {period.end_date})")
    logs = load_entries(directory, period.start_date, period.end_date)
    return summary_kind, period, logs


@cli.command()
@period_options
@click.option('--title', '-t', help="Title embedded in the prompt")
@click.option('--output-dir', type=click.Path(file_okay=False, path_type=Path),
              help="Directory the summary file is written to")
@click.option('--stream/--no-stream', default=True, show_default=True,
              help="Print the summary as it is generated")
@click.pass_context
def summarize(ctx, kind, start_date, end_date, log_dir, title, output_dir, stream):
    """Generate a summary of the logged work for a period."""
    config = ctx.obj['config']
    now = datetime.now()
    summary_kind, period, logs = _load_period_logs(config, kind, start_date, end_date, log_dir, now)

    if not logs:
        logger.warning("No log entries in the requested period")
        click.echo(f"\n❌ No log entries between {period.start_date} and {period.end_date}", err=True)
        sys.exit(1)

    request = SummaryRequest(
        kind=summary_kind,
        title=title or DEFAULT_TITLES[summary_kind],
        start_date=period.start_date if summary_kind is SummaryKind.CUSTOM else None,
        end_date=period.end_date if summary_kind is SummaryKind.CUSTOM else None,
    )
    target_dir = output_dir or config.get_output_directory()

    logger.info(f"Starting summarize command (kind={kind}, stream={stream})")
    try:
        result = run_summary(
            logs,
            request,
            config.provider.to_provider_config(),
            target_dir,
            sink=ConsoleSink() if stream else None,
            now=now,
        )
    except ProviderError as e:
        logger.error(f"Provider error ({e.kind}): {e}")
        click.echo(f"\n❌ Provider error [{e.kind}]: {e}", err=True)
        sys.exit(1)
    except SummaryError as e:
        logger.error(f"Summary failed: {type(e).__name__}: {e}")
        click.echo(f"\n❌ Error: {e}", err=True)
        sys.exit(1)

    if stream:
        click.echo("")
    else:
        click.echo(result.full_text)
    click.echo(f"\n✅ Summary saved to {result.output_path}")
    logger.info("Summarize command completed successfully")


@cli.command('show-logs')
@period_options
@click.pass_context
def show_logs(ctx, kind, start_date, end_date, log_dir):
    """Print the log entries a summary would be built from."""
    config = ctx.obj['config']
    _, period, logs = _load_period_logs(config, kind, start_date, end_date, log_dir, datetime.now())

    if not logs:
        click.echo(f"No log entries between {period.start_date} and {period.end_date}")
        return

    click.echo(serialize_corpus(logs))


if __name__ == "__main__":
    cli()
