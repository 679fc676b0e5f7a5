"""Library configuration.

The filter is configurable via an external ``TOML`` file so command line
tools and batch scripts can alter defaults without patching the code.  By
reading ``TMX_FILTER_CONFIG`` first, deployments may point to a central config
location while still falling back to a project ``config.toml`` when the
environment variable is unset.
"""

from __future__ import annotations

import os
import pytoml

_CONFIG_PATH = os.environ.get(
    "TMX_FILTER_CONFIG",
    os.path.join(os.path.dirname(__file__), "config.toml"),
)

if os.path.exists(_CONFIG_PATH):
    with open(_CONFIG_PATH, "r", encoding="utf-8") as _cfg:
        _CONF = pytoml.load(_cfg)
else:
    _CONF = {}

# Language codes a corpus may carry on its ``tuv`` elements.
VALID_LANGUAGES = {"EN", "FR", "ES", "AR", "ZH", "RU"}

# Session numbers accepted by ``--sessions``.
VALID_SESSIONS = {"55", "56", "57", "58", "59", "60", "61", "62"}

# Attributes holding the language of a translation variant.  TMX 1.4 uses
# ``xml:lang``, older files the plain ``lang`` attribute.
LANGUAGE_ATTRIBUTES = ["{http://www.w3.org/XML/1998/namespace}lang", "lang"]

# Bytes handed to the incremental parser per feed.
READ_SIZE: int = 1 << 20

# Default log level used by :class:`~tmx_filter.processor.TmxFilter`.
LOG_LEVEL: str = "INFO"

# Directory receiving one log file per run.
LOG_DIR: str = "logs"

# Override with TOML values if provided
VALID_LANGUAGES = {str(v).upper() for v in _CONF.get("VALID_LANGUAGES", VALID_LANGUAGES)}
VALID_SESSIONS = {str(v) for v in _CONF.get("VALID_SESSIONS", VALID_SESSIONS)}
LANGUAGE_ATTRIBUTES = list(_CONF.get("LANGUAGE_ATTRIBUTES", LANGUAGE_ATTRIBUTES))
READ_SIZE = int(_CONF.get("READ_SIZE", READ_SIZE))
LOG_LEVEL = _CONF.get("LOG_LEVEL", LOG_LEVEL)
LOG_DIR = _CONF.get("LOG_DIR", LOG_DIR)
