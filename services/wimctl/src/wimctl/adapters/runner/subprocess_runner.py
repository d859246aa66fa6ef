from __future__ import annotations

import logging
import subprocess
import threading
from typing import IO

from wimctl.domain.encoding import choose_capture_encoding, decode_capture
from wimctl.ports.command_runner import CommandResult

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _drain(stream: IO[bytes], sink: list[bytes]) -> None:
    for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
        sink.append(chunk)


class SubprocessCommandRunner:
    """Run a command to completion, buffering stdout chunk by chunk.

    Decoding happens once the process has exited because the Windows XML
    cleanup needs the whole buffer. Spawn failures such as a missing binary
    are left to propagate.
    """

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform

    def run(self, args: list[str], output_is_xml: bool = False) -> CommandResult:
        encoding = choose_capture_encoding(self.platform, output_is_xml)
        logger.debug("Running %s (encoding=%s)", " ".join(args), encoding)
        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        with subprocess.Popen(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        ) as process:
            assert process.stdout is not None and process.stderr is not None
            # both pipes must be read concurrently
            stderr_reader = threading.Thread(
                target=_drain, args=(process.stderr, stderr_chunks), daemon=True
            )
            stderr_reader.start()
            _drain(process.stdout, stdout_chunks)
            stderr_reader.join()
            exit_code = process.wait()
        logger.debug("%s exited with %d", args[0], exit_code)
        return CommandResult(
            exit_code=exit_code,
            stdout=decode_capture(b"".join(stdout_chunks), encoding, output_is_xml),
            stderr=b"".join(stderr_chunks).decode("utf-8", errors="replace"),
        )
