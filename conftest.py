import os


def pytest_configure(config):
    """Set up test environment variables before any tests run."""
    # A log level exported in the developer's shell must not leak into config tests
    os.environ.pop("CW2SLACK_LOG_LEVEL", None)
