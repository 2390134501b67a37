import logging
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)


class ConfigParam(NamedTuple):
    key: str
    value: str


class ConfigParams(list):
    """Ordered key/value pairs. Duplicate keys are kept."""

    def get_by_key(self, key: str) -> Optional[ConfigParam]:
        wanted = key.lower()
        for param in self:
            if param.key.lower() == wanted:
                return param
        return None

    def contains_key(self, key: str) -> bool:
        return self.get_by_key(key) is not None


class SectionBuilder:
    """
    Accumulates the directives of one Fluent Bit config section and renders it.
    Rendering keeps insertion order and never deduplicates.
    """

    def __init__(self, name: str):
        self.name = name
        self.params = ConfigParams()

    def add_config_param(self, key: str, value: str) -> "SectionBuilder":
        self.params.append(ConfigParam(key, value))
        return self

    def add_if_not_empty(self, key: str, value: str) -> "SectionBuilder":
        if value.strip():
            self.add_config_param(key, value)
        return self

    def add_if_not_empty_or_default(self, key: str, value: str, default: str) -> "SectionBuilder":
        if value.strip():
            return self.add_config_param(key, value)
        return self.add_config_param(key, default)

    def build(self) -> str:
        lines = [f"[{self.name}]"]
        lines.extend(f"    {p.key}  {p.value}" for p in self.params)
        # Empty line closes the section
        lines.append("")
        return "\n".join(lines) + "\n"


def new_output_section_builder() -> SectionBuilder:
    return SectionBuilder("OUTPUT")


def parse_multiline(content: str) -> ConfigParams:
    """
    Parses 'key value' lines of a custom output, keeping their order.
    Blank lines, comment lines ("# ...") and lines without a value are skipped.
    """
    result = ConfigParams()
    for lineno, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        parts = line.split(None, 1)
        # A lone "#" token starts a comment, "#key value" is still a pair
        if parts[0] == "#":
            continue
        if len(parts) != 2:
            logger.debug("Skipping custom output line %d without value: %r", lineno, line)
            continue
        key, value = parts
        result.append(ConfigParam(key, value.strip()))
    return result
