"""CLI entry point for job execution."""

import sys

import click

from lms_quiz.core.clock import SystemClock
from lms_quiz.core.logging import get_logger, setup_logging
from lms_quiz.db.session import SessionLocal
from lms_quiz.jobs.reconcile import JOB_KEY, run_quiz_reconcile

logger = get_logger(__name__)


@click.command()
@click.argument("job_key")
def run(job_key: str):
    """
    Run a job once.

    Example:
        python -m lms_quiz.jobs.run quiz_reconcile
    """
    setup_logging()

    if job_key != JOB_KEY:
        click.echo(f"Unknown job key: {job_key}", err=True)
        sys.exit(1)

    try:
        result = run_quiz_reconcile(SessionLocal, SystemClock())
    except Exception as e:
        logger.error(f"Job failed: {e}", exc_info=True)
        click.echo(f"Job failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"Job completed: {result}")


if __name__ == "__main__":
    run()
