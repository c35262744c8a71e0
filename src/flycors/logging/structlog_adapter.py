# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""StructlogAdapter — configures structlog and stdlib levels from ``flycors.logging``.

Example ``flycors.yaml``::

    flycors:
      logging:
        format: json
        cors: DEBUG          # flycors.cors + flycors.web.cors
        level:
          root: INFO
          flycors.web: WARNING

``cors`` is a shortcut for the two loggers that report CORS decisions, so
rejected origins (``cors_origin_rejected``) can be traced without raising
the root level.  It can also be set with ``FLYCORS_LOGGING_CORS=DEBUG``.
Explicit ``level`` entries win over the shortcut.
"""

from __future__ import annotations

import logging
import sys

import structlog

from flycors.core.config import Config

CORS_LOGGERS: tuple[str, ...] = ("flycors.cors", "flycors.web.cors")


def _level_value(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


class StructlogAdapter:
    """Default logging adapter backed by structlog."""

    def __init__(self) -> None:
        self._root_level = "INFO"
        self._format = "console"
        self._levels: dict[str, str] = {}

    @property
    def levels(self) -> dict[str, str]:
        """Effective per-logger levels applied by the last :meth:`configure`."""
        return dict(self._levels)

    def configure(self, config: Config) -> None:
        level_section = dict(config.get_section("flycors.logging.level"))
        self._root_level = str(level_section.pop("root", "INFO")).upper()
        self._format = str(config.get("flycors.logging.format", "console")).lower()

        levels: dict[str, str] = {}
        cors_level = config.get("flycors.logging.cors")
        if cors_level:
            levels.update(dict.fromkeys(CORS_LOGGERS, str(cors_level).upper()))
        levels.update({name: str(level).upper() for name, level in level_section.items()})
        self._levels = levels

        self._setup_structlog()
        for name, level in self._levels.items():
            self.set_level(name, level)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_level_value(level))

    def _setup_structlog(self) -> None:
        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer() if self._format == "json" else structlog.dev.ConsoleRenderer()
        )
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=_level_value(self._root_level),
            force=True,
        )
