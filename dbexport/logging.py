import logging
import sys

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Modules that log every generated statement or every split file.
# These are set to WARNING by default unless verbose mode is enabled.
TECHNICAL_MODULES = [
    "dbexport.export.query_builder",
    "dbexport.connectors.sqlalchemy_provider",
]


def get_logger(name: str) -> logging.Logger:
    """Return a logger with the specified name.

    Args:
        name: The name for the logger, typically __name__

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_logging(
    verbose: bool = False,
    quiet: bool = False,
) -> None:
    """Configure logging settings based on command line flags.

    Args:
        verbose: Whether to enable verbose mode (shows all debug logs)
        quiet: Whether to enable quiet mode (only shows warnings and errors)
    """
    if quiet:
        root_level = logging.WARNING
    elif verbose:
        root_level = logging.DEBUG
    else:
        root_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Clear existing handlers to avoid duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root_logger.addHandler(handler)

    for module_name in TECHNICAL_MODULES:
        module_logger = logging.getLogger(module_name)
        module_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def suppress_third_party_loggers():
    """Suppress noisy third-party loggers."""
    noisy_loggers = [
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "psycopg2",
        "pymysql",
    ]

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

