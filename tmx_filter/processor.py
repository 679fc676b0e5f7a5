"""Stream a TMX corpus through the unit filters.

The driver alternates between two phases.  The gap before the next ``<tu>``
is collected and written unchanged; then one complete unit is collected,
rewritten and written.  Only one buffer is alive at any time, so memory use is
bound by the largest unit rather than by the document.  :class:`TmxFilter`
wraps the driver with file handling and per-run logging.
"""

from __future__ import annotations

import datetime
import logging
import os
import sys
from dataclasses import dataclass

from lxml import etree

import config

from .errors import MalformedStreamError, MalformedUnitError, TmxFilterError
from .events import TU, TUV, Buffer, describe, is_end, is_start
from .filters import trim_leading_whitespace
from .rewriter import FilterOptions, rewrite_unit
from .segments import EventSink, EventSource, collect, drain
from .stream import EventReader, EventWriter


@dataclass
class FilterReport:
    """Counters describing a finished run."""

    units: int = 0
    dropped_units: int = 0
    removed_variants: int = 0
    events_written: int = 0

    def __repr__(self) -> str:
        return (
            f"FilterReport(units={self.units}, dropped_units={self.dropped_units}, "
            f"removed_variants={self.removed_variants}, events_written={self.events_written})"
        )


def _count_variants(buffer: Buffer) -> int:
    return sum(1 for event in buffer if is_start(event, TUV))


def run_pipeline(
    source: EventSource,
    sink: EventSink,
    options: FilterOptions,
    logger: logging.Logger | None = None,
) -> FilterReport:
    """Copy ``source`` to ``sink`` one translation unit at a time.

    :param source: Event source with ``peek`` and ``next``.
    :param sink: Event sink with ``write``.
    :param options: Filters to apply to each unit.
    :param logger: Logger for per-unit debug messages.
    :returns: Counters for the run.
    :raises MalformedStreamError: if a unit is not closed or units nest.
    :raises MalformedUnitError: if a unit lacks the structure a filter needs.
    """
    logger = logger or logging.getLogger("TmxFilter")
    report = FilterReport()
    buffer: Buffer = []

    seen = collect(source, buffer, TU, False)
    report.events_written += drain(buffer, sink)

    while seen:
        unit = report.units + 1
        collect(source, buffer, TU, True)
        if not is_start(buffer[-1], TU):
            raise MalformedStreamError("</tu> without a matching <tu>", unit)
        if not collect(source, buffer, TU, True):
            raise MalformedStreamError(
                f"input ends before </tu>, unit text so far {describe(buffer)}", unit
            )
        if not is_end(buffer[-1], TU):
            raise MalformedStreamError(
                f"<tu> opened inside another unit, text so far {describe(buffer)}", unit
            )
        report.units = unit

        variants = _count_variants(buffer)
        try:
            kept = rewrite_unit(buffer, options)
        except MalformedUnitError as exc:
            raise MalformedUnitError(f"{exc}, unit text {describe(buffer)}", unit) from exc
        if kept:
            report.removed_variants += variants - _count_variants(buffer)
        else:
            report.dropped_units += 1
            logger.debug("Dropped vote unit #%s", unit)
        report.events_written += drain(buffer, sink)

        seen = collect(source, buffer, TU, False)
        if not kept:
            trim_leading_whitespace(buffer, 0)
        report.events_written += drain(buffer, sink)

    return report


class TmxFilter:
    """File level workflow around :func:`run_pipeline`.

    Each run writes a timestamped log file so that long batch jobs over many
    corpus files can be audited afterwards.  The options are fixed for the
    lifetime of the object.
    """

    def __init__(self, options: FilterOptions | None = None, log_dir: str | None = None) -> None:
        self.options = options or FilterOptions()
        self.log_dir = log_dir or config.LOG_DIR
        os.makedirs(self.log_dir, exist_ok=True)
        self.logger = logging.getLogger("TmxFilter")
        self.logger.setLevel(getattr(logging, config.LOG_LEVEL))

    def _init_log(self, input_path: str) -> str:
        """Create a dedicated log file for a processing run.

        :param input_path: Path of the corpus file being processed.
        :returns: The full path to the created log file.
        """

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        ts = datetime.datetime.now().strftime("%Y%m%d%H%M%S")
        base = os.path.splitext(os.path.basename(input_path))[0]
        log_path = os.path.join(self.log_dir, f"{base}_{ts}.log")
        fh = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter("%(asctime)s %(levelname)s:%(message)s")
        fh.setFormatter(formatter)
        self.logger.addHandler(fh)
        return log_path

    def filter_stream(self, input_stream, output_stream) -> FilterReport:
        """Filter a binary input stream into a binary output stream."""

        source = EventReader(input_stream)
        with EventWriter(output_stream) as sink:
            report = run_pipeline(source, sink, self.options, self.logger)
        self.logger.info("Events read: %s; events written: %s", source.events_read, report.events_written)
        return report

    def filter_file(self, input_path: str, output_path: str | None = None) -> FilterReport:
        """Filter ``input_path`` into ``output_path`` or standard output.

        :param input_path: TMX file to read.
        :param output_path: Destination file; ``None`` writes to stdout.
        :returns: Counters for the run.
        """

        self._init_log(input_path)
        self.logger.info("START: %s", datetime.datetime.now().isoformat(timespec="seconds"))
        self.logger.info("Input: %s", input_path)
        self.logger.info("Output: %s", output_path or "<stdout>")
        self.logger.info(
            "Keep languages: %s; drop vote units: %s; plaintext: %s",
            ",".join(sorted(self.options.keep_languages)),
            self.options.drop_vote_units,
            self.options.plaintext,
        )
        if self.options.is_identity:
            self.logger.info("No filters enabled, copying the corpus unchanged")
        if self.options.keep_sessions:
            self.logger.warning(
                "Session filtering is not supported, ignoring sessions %s",
                ",".join(sorted(self.options.keep_sessions)),
            )

        try:
            with open(input_path, "rb") as inp:
                if output_path is None:
                    report = self.filter_stream(inp, sys.stdout.buffer)
                else:
                    with open(output_path, "wb") as out:
                        report = self.filter_stream(inp, out)
        except (TmxFilterError, etree.XMLSyntaxError, OSError) as exc:
            self.logger.error("Filtering failed: %s", exc)
            raise

        self.logger.info("Units processed: %s", report.units)
        self.logger.info("Vote units dropped: %s", report.dropped_units)
        self.logger.info("Translation variants removed: %s", report.removed_variants)
        self.logger.info("END  : %s", datetime.datetime.now().isoformat(timespec="seconds"))
        return report
