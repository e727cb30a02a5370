"""Factory functions for CLI dependencies."""

import os
from typing import Optional

from dbexport.config import ExportConfig, load_config
from dbexport.connectors.sqlalchemy_provider import SqlAlchemyConnectionProvider
from dbexport.exceptions import ConfigurationError
from dbexport.export.orchestrator import ExportOrchestrator
from dbexport.logging import get_logger

logger = get_logger(__name__)


def load_config_for_command(
    profile_name: Optional[str] = None, project_dir: Optional[str] = None
) -> ExportConfig:
    """Load the export configuration of the project in ``project_dir``.

    Raises:
        ConfigurationError: If there is no profiles directory or the profile is invalid
    """
    root = project_dir or os.getcwd()
    profiles_dir = os.path.join(root, "profiles")
    if not os.path.isdir(profiles_dir):
        raise ConfigurationError(f"No profiles directory found in {root}")

    profile = profile_name or "dev"
    config = load_config(profiles_dir, profile)
    logger.debug(f"Loaded profile '{profile}' from {profiles_dir}")
    return config


def create_orchestrator_for_command(
    profile_name: Optional[str] = None, project_dir: Optional[str] = None
) -> ExportOrchestrator:
    """Build an orchestrator wired to the profile's database."""
    config = load_config_for_command(profile_name, project_dir)
    if not config.connection.url and not config.connection.host:
        raise ConfigurationError("Profile has no 'connection' section")
    provider = SqlAlchemyConnectionProvider(
        config.connection, default_schema=config.default_schema
    )
    return ExportOrchestrator(config, provider)
