from dataclasses import dataclass

from wimctl.domain.metadata import JsonDict


@dataclass
class WimError(Exception):
    message: str
    details: JsonDict | None = None
    hint: str | None = None
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


class UnsupportedUpdateCommand(WimError):
    pass


class MissingUpdateCommand(WimError):
    pass
