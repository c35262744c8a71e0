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
"""Path and origin pattern matching.

Both pattern kinds are compiled to a regular expression once, when the
policy is built, and matched with ``fullmatch`` afterwards.

Path patterns use Ant-style syntax:

- ``?`` matches one character within a segment
- ``*`` matches zero or more characters within a segment
- ``**`` matches zero or more whole segments
- ``{name}`` matches one non-empty segment

Origin patterns are globs over the full ``scheme://host[:port]`` value:

- ``*`` matches any substring, so ``http://localhost*`` matches
  ``http://localhost:3000``
- a trailing ``:[8080,8081]`` restricts the port to the listed values
- a trailing ``:[*]`` allows any port, or none
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from flycors.kernel.exceptions import CorsConfigurationException

_SEGMENT_TOKEN_RE = re.compile(r"\{[^}]+\}|\*|\?")

_ANY_PORT = r"(:\d+)?"


def _segment_regex(segment: str) -> str:
    parts: list[str] = []
    pos = 0
    for match in _SEGMENT_TOKEN_RE.finditer(segment):
        parts.append(re.escape(segment[pos : match.start()]))
        token = match.group()
        if token == "*":
            parts.append("[^/]*")
        elif token == "?":
            parts.append("[^/]")
        else:
            parts.append("[^/]+")
        pos = match.end()
    parts.append(re.escape(segment[pos:]))
    return "".join(parts)


def compile_path_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an Ant-style path pattern; a trailing slash on the path is tolerated."""
    if pattern in ("/**", "**"):
        return re.compile(r".*")

    regex = ""
    for segment in pattern.strip("/").split("/"):
        if segment == "**":
            regex += r"(?:/[^/]*)*"
        else:
            regex += "/" + _segment_regex(segment)
    return re.compile(regex + "/?")


def compile_origin_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an origin glob pattern, including an optional port list."""
    value = pattern.strip().rstrip("/")
    if value == "*":
        return re.compile(r".*")

    port_regex = ""
    if value.endswith("]"):
        index = value.rfind(":[")
        if index == -1:
            raise CorsConfigurationException(
                f"Malformed port list in origin pattern '{pattern}'",
                code="CORS_ORIGIN_PATTERN",
                context={"pattern": pattern},
            )
        ports = value[index + 2 : -1]
        value = value[:index]
        if ports == "*":
            port_regex = _ANY_PORT
        else:
            port_list = [p.strip() for p in ports.split(",")]
            if not port_list or not all(p.isdigit() for p in port_list):
                raise CorsConfigurationException(
                    f"Origin pattern '{pattern}' has a non-numeric port list",
                    code="CORS_ORIGIN_PATTERN",
                    context={"pattern": pattern},
                )
            port_regex = ":(" + "|".join(port_list) + ")"

    regex = ".*".join(re.escape(piece) for piece in value.split("*"))
    return re.compile(regex + port_regex)


@dataclass(frozen=True)
class PathPattern:
    """Compiled Ant-style request path pattern."""

    pattern: str
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.pattern:
            raise CorsConfigurationException("Path pattern must not be empty", code="CORS_PATH_PATTERN")
        object.__setattr__(self, "_regex", compile_path_pattern(self.pattern))

    def matches(self, path: str) -> bool:
        return self._regex.fullmatch(path or "/") is not None


@dataclass(frozen=True)
class OriginPattern:
    """Compiled origin glob pattern."""

    pattern: str
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.pattern.strip():
            raise CorsConfigurationException("Origin pattern must not be empty", code="CORS_ORIGIN_PATTERN")
        object.__setattr__(self, "_regex", compile_origin_pattern(self.pattern))

    def matches(self, origin: str) -> bool:
        """Return ``True`` when *origin* (trailing slash ignored) matches this pattern."""
        return self._regex.fullmatch(origin.rstrip("/")) is not None
