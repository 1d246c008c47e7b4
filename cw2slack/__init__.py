"""
cw2slack - relay ChatWork messages to Slack.

Usage:
    # As a command
    cw2slack

    # Programmatically
    from cw2slack import Config, run

    config = Config.load()
    result = run(config)
"""

from cw2slack.__version__ import __version__
from cw2slack.config import Config, MappingEntry
from cw2slack.errors import ApiError, ConfigError, Cw2SlackError, DecodeError, RequestError
from cw2slack.main import run

__all__ = [
    "__version__",
    "Config",
    "MappingEntry",
    "ApiError",
    "ConfigError",
    "Cw2SlackError",
    "DecodeError",
    "RequestError",
    "run",
]
