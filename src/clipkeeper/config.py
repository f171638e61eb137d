#!/usr/bin/env python3
"""Engine configuration.

EngineConfig is a plain value owned by the surrounding application and
handed to the engine explicitly. Changing settings at runtime means building
a new EngineConfig and passing it to ClipboardHistory.apply_config(); the
`config` control command does this from settings given as text.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any

from clipkeeper.entry import DEFAULT_CONTENT_TYPES

# Default number of non-favorite entries kept in the history.
DEFAULT_HISTORY_SIZE: int = 15

# Default delay in seconds before a cycled selection is written to the clipboard.
DEFAULT_PUSH_DELAY: float = 0.75

# Default preview length in characters for menu labels and listings.
DEFAULT_PREVIEW_LENGTH: int = 50

# Maximum size of a captured payload in bytes (10 MB).
MAX_PAYLOAD_SIZE: int = 10485760

# Accepted spellings of boolean setting values.
TRUE_VALUES = ("1", "on", "true", "yes")
FALSE_VALUES = ("0", "off", "false", "no")


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings for the clipboard history engine.

    Attributes:
        history_size: Maximum number of non-favorite entries. Favorites are
            never counted against this cap.
        content_types: Content types tried in priority order on capture.
        move_item_first: Move a non-favorite entry to the front of the
            history when its content is reused.
        defer_push: When cycling, write the chosen entry to the clipboard
            only after push_delay seconds without further cycling.
        push_delay: Delay in seconds used by defer_push.
        cache_only_favorites: Persist only favorite entries.
        strip_text: Strip leading and trailing whitespace from captured text.
        preview_length: Maximum label length for text previews.
        max_payload_size: Larger payloads are ignored on capture.
    """

    history_size: int = DEFAULT_HISTORY_SIZE
    content_types: tuple[str, ...] = DEFAULT_CONTENT_TYPES
    move_item_first: bool = False
    defer_push: bool = False
    push_delay: float = DEFAULT_PUSH_DELAY
    cache_only_favorites: bool = False
    strip_text: bool = False
    preview_length: int = DEFAULT_PREVIEW_LENGTH
    max_payload_size: int = MAX_PAYLOAD_SIZE

    def validated(self) -> EngineConfig:
        """Check value ranges and normalize content_types to a tuple.

        Returns:
            The validated configuration.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.history_size < 1:
            raise ValueError(f"history_size must be at least 1, got {self.history_size}")
        if self.push_delay < 0:
            raise ValueError(f"push_delay must not be negative, got {self.push_delay}")
        if self.preview_length < 1:
            raise ValueError(f"preview_length must be at least 1, got {self.preview_length}")
        if self.max_payload_size < 1:
            raise ValueError(f"max_payload_size must be positive, got {self.max_payload_size}")
        content_types = tuple(t.strip() for t in self.content_types if t.strip())
        if not content_types:
            raise ValueError("content_types must name at least one content type")
        for content_type in content_types:
            if "/" not in content_type:
                raise ValueError(f"{content_type!r} is not a content type")
        if len(set(content_types)) != len(content_types):
            raise ValueError("content_types must not contain duplicates")
        return replace(self, content_types=content_types)

    def as_dict(self) -> dict[str, Any]:
        """Return the settings as JSON-compatible values."""
        settings = asdict(self)
        settings["content_types"] = list(self.content_types)
        return settings

    def with_settings(self, settings: dict[str, str]) -> EngineConfig:
        """Return a validated copy with settings given as text applied.

        Booleans accept on/off, true/false, yes/no and 1/0. content_types is
        a comma-separated list.

        Args:
            settings: Setting names mapped to their new values.

        Returns:
            The validated configuration.

        Raises:
            ValueError: On an unknown setting or an invalid value.
        """
        types = {f.name: f.type for f in fields(self)}
        changes: dict[str, Any] = {}
        for name, value in settings.items():
            if name not in types:
                raise ValueError(f"unknown setting {name!r}")
            changes[name] = _parse_setting(name, types[name], value)
        return replace(self, **changes).validated()


def _parse_setting(name: str, annotation: str, value: str) -> Any:
    # Annotations are strings under postponed evaluation
    if annotation == "bool":
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ValueError(f"{name} expects on or off, got {value!r}")
    if annotation == "int":
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"{name} expects an integer, got {value!r}") from None
    if annotation == "float":
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"{name} expects a number, got {value!r}") from None
    return tuple(value.split(","))
