"""Convert a startup recording into folded stacks for flamegraph.pl.

Usage: startupflame [infile] [outfile]

Defaults to stdin and stdout. The result can be rendered with
https://github.com/brendangregg/FlameGraph:

    ./flamegraph.pl --countname ms --hash < startup.folded > startup.svg
"""

from __future__ import annotations

import argparse
import codecs
import io
import logging
import sys
from contextlib import contextmanager

import fsspec # type: ignore
import humanfriendly

from typing import Any, Dict, Iterator, List, Optional, TextIO

from startupflame.collector import collect_intervals
from startupflame.config import load_config
from startupflame.errors import ConfigurationError, RecordingError
from startupflame.events import IntervalRecord
from startupflame.logs import init_logging
from startupflame.recording import read_recording
from startupflame.stacker import IntervalStacker

rootLogger = logging.getLogger()

STDIO = "-"


def construct_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="startupflame",
            description="Convert a startup recording into folded stacks for flamegraph.pl")
    parser.add_argument('infile', nargs='?', default=STDIO,
            help="Recording to read, as a path or fsspec URL (defaults to stdin)")
    parser.add_argument('outfile', nargs='?', default=STDIO,
            help="Where to write the folded stacks (defaults to stdout)")
    parser.add_argument('-c', '--config', default=None,
            help="YAML configuration file")
    parser.add_argument('--event-type', default=None,
            help="Only use events whose type starts with this")
    parser.add_argument('--label-field', default=None,
            help="Event field holding the label for each interval")
    parser.add_argument('-v', '--verbose', action='store_true',
            help="Show debug output on the console")
    parser.add_argument('--log-file', default=None,
            help="Also write the full log to this file")
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    collector = {}
    if args.event_type is not None:
        collector['event_type'] = args.event_type
    if args.label_field is not None:
        collector['label_field'] = args.label_field
    return {'collector': collector} if collector else {}


def utf8_stdio(stream: TextIO) -> TextIO:
    """Switch a standard stream to UTF-8 whatever the locale says."""
    if isinstance(stream, io.TextIOWrapper) and codecs.lookup(stream.encoding).name != 'utf-8':
        stream.reconfigure(encoding='utf-8')
    return stream


@contextmanager
def open_text(path: str, mode: str) -> Iterator[TextIO]:
    """Open ``path`` for text reading ('r') or writing ('w'); '-' means stdin/stdout."""
    if path == STDIO:
        yield utf8_stdio(sys.stdin if mode == 'r' else sys.stdout)
        return
    with fsspec.open(path, mode + 't', encoding='utf-8') as f:
        yield f


def read_intervals(path: str, args: argparse.Namespace) -> List[IntervalRecord]:
    config = load_config(args.config, overrides_from_args(args))
    with open_text(path, 'r') as f:
        return collect_intervals(read_recording(f), config.collector)


def log_summary(records: List[IntervalRecord], stacker: IntervalStacker) -> None:
    if not records:
        rootLogger.info("No intervals found in the recording")
        return
    span = max(r.end for r in records) - records[0].start
    rootLogger.info(f"Wrote {stacker.written} stacks ({humanfriendly.format_size(stacker.size)}) covering {humanfriendly.format_timespan(span / 1e9)} of startup")


def main(argv: Optional[List[str]] = None) -> int:
    args = construct_argparser().parse_args(argv)
    init_logging(args.verbose, args.log_file)

    try:
        records = read_intervals(args.infile, args)
        with open_text(args.outfile, 'w') as out:
            stacker = IntervalStacker(out)
            stacker.process(records)
            out.flush()
    except ConfigurationError as e:
        rootLogger.error(str(e))
        return 1
    except RecordingError as e:
        rootLogger.error(f"{args.infile}: {e}")
        return 1
    except OSError as e:
        rootLogger.critical(f"I/O failure: {e}")
        return 1

    log_summary(records, stacker)
    return 0
