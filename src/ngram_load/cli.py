"""
ngram-load: submit BigQuery load jobs for n-gram corpora stored in GCS.

Examples:
  ngram-load --project my-proj
  ngram-load --project my-proj --scheme web1t --plan web1t_2grams.json --workers 4
  ngram-load --project my-proj --plan reddit_2013.json --poll --poll-timeout 1800
  ngram-load --project my-proj --dry-run
"""
from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from ngram_load.config import BatchConfig, WriteDisposition
from ngram_load.jobs.client import create_client
from ngram_load.naming.partition import (
    REDDIT_COMMENTS_PLAN,
    PartitionPlan,
    ShardRange,
    load_partition_plan,
)
from ngram_load.naming.schemes import SCHEMES, get_scheme
from ngram_load.pipeline.logger import LOG_DATEFMT, LOG_FORMAT, attach_batch_log, detach_batch_log
from ngram_load.pipeline.orchestrate import plan_batch, run_batch
from ngram_load.pipeline.report import print_batch_report

logger = logging.getLogger(__name__)

# Unigram vocabulary plus the first shard of each higher order
DEFAULT_WEB1T_PLAN = PartitionPlan(
    scheme="web1t",
    ranges=(ShardRange(grams=(1, 1), shards=(0, 0)), ShardRange(grams=(2, 5), shards=(0, 0))),
)

DEFAULT_PLANS = {"monthly": REDDIT_COMMENTS_PLAN, "web1t": DEFAULT_WEB1T_PLAN}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Submit BigQuery load jobs for n-gram files in Google Cloud Storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument("--project", default=os.environ.get("GOOGLE_CLOUD_PROJECT"),
                   help="GCP project id (default: $GOOGLE_CLOUD_PROJECT)")
    p.add_argument("--location", default=None, help="BigQuery job location (e.g. US)")
    p.add_argument("--scheme", choices=sorted(SCHEMES), default=None,
                   help="Naming scheme (default: taken from --plan, else monthly)")
    p.add_argument("--plan", type=Path, default=None,
                   help="JSON partition plan (default: built-in plan for the scheme)")
    p.add_argument("--write-disposition", default=None,
                   choices=[d.value for d in WriteDisposition],
                   help="What to do when a table already has rows (default: APPEND)")
    p.add_argument("--workers", type=int, default=1,
                   help="Partitions submitted concurrently (default: 1, sequential)")
    p.add_argument("--poll", action="store_true", help="Wait for each job to finish")
    p.add_argument("--poll-interval", type=float, default=1.0,
                   help="Seconds between status polls (default: 1)")
    p.add_argument("--poll-timeout", type=float, default=None,
                   help="Give up polling a job after this many seconds (default: never)")
    p.add_argument("--log-dir", type=Path, default=None,
                   help="Also write a timestamped log file here")
    p.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    p.add_argument("--dry-run", action="store_true",
                   help="Print the jobs that would be submitted and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def _select_plan(args: argparse.Namespace) -> PartitionPlan:
    if args.plan is not None:
        plan = load_partition_plan(args.plan)
    else:
        plan = DEFAULT_PLANS[args.scheme or "monthly"]
    if args.scheme and args.scheme != plan.scheme:
        plan = PartitionPlan(scheme=args.scheme, ranges=plan.ranges)
    return plan


def _dry_run(plan: PartitionPlan, scheme, project: str, options) -> int:
    planned = plan_batch(plan, scheme=scheme, project=project, options=options)
    bad = 0
    for key, spec in planned:
        if isinstance(spec, Exception):
            bad += 1
            print(f"{str(key):<20} INVALID  {type(spec).__name__}: {spec}")
        else:
            print(f"{str(key):<20} {spec.destination_table}  <- {', '.join(spec.source_uris)}")
    print(f"\n{len(planned) - bad} jobs planned, {bad} invalid")
    return 1 if bad else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if not args.project:
        logger.error("--project is required (or set GOOGLE_CLOUD_PROJECT)")
        return 2

    try:
        plan = _select_plan(args)
        scheme = get_scheme(plan.scheme)
        overrides = {"project": args.project}
        if args.write_disposition:
            overrides["write_disposition"] = WriteDisposition.parse(args.write_disposition)
        options = scheme.default_options(**overrides)
        config = BatchConfig(
            workers=args.workers,
            poll=args.poll,
            poll_interval_s=args.poll_interval,
            poll_timeout_s=args.poll_timeout,
            progress=not args.no_progress,
        )
    except (OSError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    if args.dry_run:
        return _dry_run(plan, scheme, args.project, options)

    client = create_client(args.project, location=args.location)
    cancel_event = threading.Event()

    def _on_sigint(signum, frame):
        # First Ctrl-C stops new partitions; a second one interrupts for real
        logger.warning("Cancelling after in-flight partitions; submitted jobs keep running")
        cancel_event.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    file_log = None
    if args.log_dir is not None:
        try:
            file_log = attach_batch_log(args.log_dir, scheme.name, level=level)
        except OSError as exc:
            logger.error("Cannot write batch log to %s: %s", args.log_dir, exc)
            return 2

    previous_sigint = signal.signal(signal.SIGINT, _on_sigint)
    if previous_sigint is None:
        # Installed outside Python; fall back to the interpreter default
        previous_sigint = signal.default_int_handler
    try:
        report = run_batch(
            plan,
            client=client,
            scheme=scheme,
            options=options,
            config=config,
            cancel_event=cancel_event,
        )
    finally:
        signal.signal(signal.SIGINT, previous_sigint)
        if file_log is not None:
            detach_batch_log(file_log)

    print_batch_report(report)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
