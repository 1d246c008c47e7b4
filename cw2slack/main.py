#!/usr/bin/env python3
"""
cw2slack entry point.

Runs one synchronization pass: every pending ChatWork message is posted to
the configured Slack webhook. Meant to be invoked repeatedly by a scheduler.

Usage:
    cw2slack
    python -m cw2slack

Exit codes:
    0: success
    1: unexpected error
    2: configuration error
    3: network or webhook delivery failure
    4: ChatWork API returned an error status
    5: malformed ChatWork API response
    130: interrupted
"""

import argparse
import logging
import sys
from typing import List, Optional

from cw2slack.__version__ import __version__
from cw2slack.chatwork import ChatworkClient
from cw2slack.config import APP_NAME, DEFAULT_LOG_FORMAT, Config, default_config_path
from cw2slack.errors import ConfigError, Cw2SlackError
from cw2slack.relay import Relay, RelayResult
from cw2slack.resolver import ChannelResolver
from cw2slack.slack import SlackWebhookClient

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", format_str: Optional[str] = None) -> None:
    """Configure logging."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    log_format = format_str or DEFAULT_LOG_FORMAT

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    # Per-request logs from httpx are too noisy at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Relay new ChatWork messages to a Slack incoming webhook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Configuration is read from {default_config_path()}",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def run(config: Config) -> RelayResult:
    """Run one relay pass with clients built from ``config``."""
    resolver = ChannelResolver(config.default_channel, config.mappings)

    with ChatworkClient(config.access_token, timeout=config.timeout_seconds) as source, \
            SlackWebhookClient(config.webhook_endpoint, timeout=config.timeout_seconds) as sink:
        return Relay(source, resolver, sink).run()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parse_args(argv)

    try:
        config = Config.load()
    except ConfigError as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        return e.exit_code

    setup_logging(level=config.log_level, format_str=config.log_format)

    try:
        run(config)
        return 0
    except Cw2SlackError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return e.exit_code
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
