from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from wimctl.domain.errors import MissingUpdateCommand, UnsupportedUpdateCommand


class UpdateVerb(str, Enum):
    ADD = "add"
    DELETE = "delete"
    RENAME = "rename"


# add: <source on disk> <destination in image>
# delete: <path in image> <unused>
# rename: <old path in image> <new path in image>
_TEMPLATES: dict[UpdateVerb, str] = {
    UpdateVerb.ADD: 'add "{input}" "{output}"',
    UpdateVerb.DELETE: 'delete "{input}" "{output}"',
    UpdateVerb.RENAME: 'rename "{input}" "{output}"',
}


def _quote_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def parse_verb(raw: object) -> UpdateVerb:
    if isinstance(raw, UpdateVerb):
        return raw
    try:
        return UpdateVerb(str(raw))
    except ValueError:
        raise UnsupportedUpdateCommand(
            f"command {raw} not supported",
            details={"type": str(raw)},
            hint="Use one of: add, delete, rename",
        ) from None


@dataclass(frozen=True)
class UpdateCommand:
    verb: UpdateVerb
    input: str
    output: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "verb", parse_verb(self.verb))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> UpdateCommand:
        return cls(
            verb=parse_verb(raw.get("type")),
            input=str(raw.get("input", "")),
            output=str(raw.get("output", "")),
        )

    def render(self) -> str:
        return _TEMPLATES[self.verb].format(
            input=_quote_escape(self.input), output=_quote_escape(self.output)
        )


def coerce_update_command(
    command: UpdateCommand | Mapping[str, Any] | None,
) -> UpdateCommand:
    if not command:
        raise MissingUpdateCommand("A command must be specified")
    if isinstance(command, UpdateCommand):
        return command
    return UpdateCommand.from_mapping(command)
