"""Public entry points for :mod:`tmx_filter`.

This module re-exports the workflow class, the options value and the error
types so applications can filter a corpus without touching the
implementation modules.
"""

from .errors import ConfigurationError, MalformedStreamError, MalformedUnitError, TmxFilterError
from .processor import FilterReport, TmxFilter, run_pipeline
from .rewriter import FilterOptions, rewrite_unit

__all__ = [
    "ConfigurationError",
    "FilterOptions",
    "FilterReport",
    "MalformedStreamError",
    "MalformedUnitError",
    "TmxFilter",
    "TmxFilterError",
    "rewrite_unit",
    "run_pipeline",
]
