"""BaseStage — shared foundation for the pipeline stages.

Every stage receives the settings and an optional plugin manager at
construction time. Stages are stateless between calls; all state lives on
the form graph they operate on.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from twinform.config.settings import TwinformSettings
    from twinform.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class BaseStage:
    """Abstract base for the deserializer, validator, synchronizer and persister.

    Usage::

        class Synchronizer(BaseStage):
            def sync(self, form: Form) -> list[str]:
                ...
                self._dispatch_event("post_sync", warnings, form=form)
    """

    def __init__(
        self,
        settings: TwinformSettings,
        plugins: PluginManager | None = None,
    ) -> None:
        self._settings = settings
        self._plugins = plugins

    @property
    def separator(self) -> str:
        return self._settings.validation.path_separator

    def _dispatch_event(self, hook_name: str, warnings: list[str], **payload: Any) -> None:
        """Call a pipeline hook. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        try:
            getattr(self._plugins.hook, hook_name)(**payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
