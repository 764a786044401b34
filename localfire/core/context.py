"""
Mock context.

Bundles everything a fake facade needs at construction time: the seed
database, the store options, the signed-in user and the operation log.
A context is built once per test (or scenario) and handed to each
factory, so independent contexts never share state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .config_manager import ConfigManager, LocalFireConfig, LogLevel, StoreOptions
from .logging_config import log_with_context, set_scenario_id, setup_logging
from .operation_log import OperationLog

logger = logging.getLogger(__name__)


@dataclass
class MockContext:
    """Explicit state shared by the fake store and the fake auth facade.

    Attributes:
        database: Seed database, ``{collection: [record, ...]}``
        options: Store construction options
        current_user: User record returned by the auth facade
        log: Operation log shared by every facade built from this context
    """

    database: Dict[str, Any] = field(default_factory=dict)
    options: StoreOptions = field(default_factory=StoreOptions)
    current_user: Optional[Dict[str, Any]] = None
    log: OperationLog = field(default_factory=OperationLog)

    @classmethod
    def from_config(
        cls,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        scenario: Optional[str] = None,
    ) -> "MockContext":
        """Build a context from a configuration file and environment.

        The ``logging`` section of the configuration is applied to the
        root logger before the seed is read.

        Args:
            config_file: Optional YAML/JSON configuration file
            overrides: Explicit configuration overrides
            scenario: Name attached to JSON log lines emitted from here on

        Returns:
            Context seeded from the configured seed file
        """
        manager = ConfigManager()
        config: LocalFireConfig = manager.load(config_file=config_file, overrides=overrides)
        setup_logging(
            level=LogLevel(config.logging.level).value,
            format_type=config.logging.format,
            log_file=config.logging.file,
            rotation_size=config.logging.rotation_size,
            rotation_count=config.logging.rotation_count,
            module_levels=config.logging.module_levels,
        )
        if scenario:
            set_scenario_id(scenario)

        context = cls(
            database=manager.load_seed(),
            options=config.store,
            current_user=config.current_user,
        )
        log_with_context(
            logger,
            logging.DEBUG,
            "Built mock context",
            root_collections=len(context.database),
            mutable=context.options.mutable,
        )
        return context
