from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping
from xml.etree.ElementTree import ParseError

from wimctl.adapters.errors import (
    AdapterError,
    CommandFailed,
    IntegrityCheckFailed,
    ListingRetrievalError,
    MetadataRetrievalError,
)
from wimctl.adapters.runner.subprocess_runner import SubprocessCommandRunner
from wimctl.domain.encoding import XML_FLAG, requests_xml
from wimctl.domain.metadata import JsonDict, parse_wim_xml
from wimctl.domain.options import DEFAULT_IMAGEX_BIN, ImagexOptions, build_option_args
from wimctl.domain.update_command import UpdateCommand, coerce_update_command
from wimctl.ports.command_runner import CommandResult, CommandRunnerPort

logger = logging.getLogger(__name__)


def _details(action: str, path: str, result: CommandResult) -> JsonDict:
    return {
        "action": action,
        "path": path,
        "exit_code": result.exit_code,
        "stderr": result.stderr.strip(),
    }


class Wim:
    """Drive wimlib-imagex for capture, extract, info, update, verify and dir.

    Each call spawns one process and blocks until it exits. The only state is
    the binary path and the runner, so one instance can be shared between
    threads.
    """

    def __init__(
        self,
        imagex_bin: str | None = None,
        runner: CommandRunnerPort | None = None,
    ) -> None:
        self.imagex_bin = imagex_bin or DEFAULT_IMAGEX_BIN
        self.runner = runner or SubprocessCommandRunner()

    def _spawn(self, action: str, *args: str | int) -> CommandResult:
        argv = [self.imagex_bin, action, *(str(arg) for arg in args)]
        return self.runner.run(argv, output_is_xml=requests_xml(argv))

    def _raise_on_failure(
        self,
        action: str,
        path: str,
        result: CommandResult,
        error: type[AdapterError],
        message: str,
        require_output: bool = False,
    ) -> None:
        if result.exit_code == 0 and (result.stdout or not require_output):
            return
        logger.warning(
            "%s %s failed with exit code %d", action, path, result.exit_code
        )
        raise error(message, details=_details(action, path, result))

    def capture(
        self, output_wim: str, source: str, options: ImagexOptions | None = None
    ) -> None:
        options = options or ImagexOptions()
        result = self._spawn("capture", source, output_wim, *build_option_args(options))
        self._raise_on_failure(
            "capture",
            output_wim,
            result,
            CommandFailed,
            f"Cannot capture {source} into {output_wim}",
        )

    def extract(
        self,
        input_wim: str,
        input_path: str,
        output_dir: str | None = None,
        options: ImagexOptions | None = None,
    ) -> str:
        options = (options or ImagexOptions()).with_default_image()
        if output_dir:
            options = replace(options, dest_dir=output_dir)
        result = self._spawn(
            "extract",
            input_wim,
            options.image,
            input_path,
            *build_option_args(options),
        )
        self._raise_on_failure(
            "extract",
            input_wim,
            result,
            CommandFailed,
            f"Cannot extract {input_path} from {input_wim}",
        )
        return result.stdout

    def info(self, input_wim: str) -> JsonDict:
        result = self._spawn("info", XML_FLAG, input_wim)
        message = f"Cannot retrieve WIM metadata from {input_wim}"
        self._raise_on_failure(
            "info",
            input_wim,
            result,
            MetadataRetrievalError,
            message,
            require_output=True,
        )
        try:
            return parse_wim_xml(result.stdout)
        except ParseError as e:
            raise MetadataRetrievalError(
                message, details=_details("info", input_wim, result), cause=e
            ) from e

    def update(
        self,
        input_wim: str,
        command: UpdateCommand | Mapping[str, Any] | None,
        options: ImagexOptions | None = None,
    ) -> None:
        options = (options or ImagexOptions()).with_default_image()
        rendered = coerce_update_command(command).render()
        result = self._spawn(
            "update",
            input_wim,
            options.image,
            rendered,
            *build_option_args(options),
        )
        self._raise_on_failure(
            "update",
            input_wim,
            result,
            CommandFailed,
            f"Cannot update {input_wim} with {rendered}",
        )

    def verify(self, input_wim: str) -> None:
        result = self._spawn("verify", input_wim)
        self._raise_on_failure(
            "verify",
            input_wim,
            result,
            IntegrityCheckFailed,
            f"Integrity of {input_wim} file seems compromised",
        )

    def dir(self, input_wim: str) -> str:
        result = self._spawn("dir", input_wim)
        self._raise_on_failure(
            "dir",
            input_wim,
            result,
            ListingRetrievalError,
            f"Cannot retrieve WIM directories and files from {input_wim}",
            require_output=True,
        )
        return result.stdout
