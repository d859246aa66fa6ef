import pytest

from wimctl.adapters.errors import (
    CommandFailed,
    IntegrityCheckFailed,
    ListingRetrievalError,
    MetadataRetrievalError,
)
from wimctl.adapters.imagex.wim import Wim
from wimctl.domain.errors import MissingUpdateCommand, UnsupportedUpdateCommand
from wimctl.domain.options import ImagexOptions
from wimctl.ports.command_runner import CommandResult


class FakeRunner:
    def __init__(self, exit_code: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.result = CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)
        self.calls: list[tuple[list[str], bool]] = []

    def run(self, args: list[str], output_is_xml: bool = False) -> CommandResult:
        self.calls.append((args, output_is_xml))
        return self.result


def test_default_binary_name():
    assert Wim(runner=FakeRunner()).imagex_bin == "wimlib-imagex"


def test_capture_passes_source_then_output():
    runner = FakeRunner()
    Wim("/opt/wimlib-imagex", runner).capture(
        "out.wim", "src", ImagexOptions(compress="none", unix_data=True)
    )
    assert runner.calls == [
        (
            ["/opt/wimlib-imagex", "capture", "src", "out.wim", "--compress=none", "--unix-data"],
            False,
        )
    ]


def test_capture_failure_names_output_path():
    with pytest.raises(CommandFailed) as exc:
        Wim(runner=FakeRunner(exit_code=1, stderr="denied")).capture("out.wim", "src")
    assert "out.wim" in str(exc.value)
    assert exc.value.details["stderr"] == "denied"


def test_extract_defaults_image_to_one():
    runner = FakeRunner()
    Wim(runner=runner).extract("in.wim", "/Windows")
    assert runner.calls[0][0] == ["wimlib-imagex", "extract", "in.wim", "1", "/Windows"]


def test_extract_output_dir_matches_dest_dir_option():
    via_arg = FakeRunner()
    via_option = FakeRunner()
    Wim(runner=via_arg).extract("in.wim", "/a", "out", ImagexOptions(no_globs=True))
    Wim(runner=via_option).extract(
        "in.wim", "/a", options=ImagexOptions(dest_dir="out", no_globs=True)
    )
    assert via_arg.calls == via_option.calls
    assert via_arg.calls[0][0][-2:] == ["--dest-dir=out", "--no-globs"]


def test_extract_does_not_mutate_caller_options():
    options = ImagexOptions()
    Wim(runner=FakeRunner()).extract("in.wim", "/a", "out", options)
    assert options.image is None
    assert options.dest_dir is None


def test_extract_returns_stdout():
    runner = FakeRunner(stdout="file contents")
    out = Wim(runner=runner).extract(
        "in.wim", "/a.txt", options=ImagexOptions(image=2, to_stdout=True)
    )
    assert out == "file contents"
    assert runner.calls[0][0] == [
        "wimlib-imagex", "extract", "in.wim", "2", "/a.txt", "--to-stdout"
    ]


def test_info_requests_xml_and_parses_it():
    runner = FakeRunner(stdout='<WIM><IMAGE INDEX="1"><NAME>Base</NAME></IMAGE></WIM>')
    data = Wim(runner=runner).info("in.wim")
    assert runner.calls == [(["wimlib-imagex", "info", "--xml", "in.wim"], True)]
    assert data["WIM"]["IMAGE"][0]["NAME"] == ["Base"]


def test_info_empty_output_raises_retrieval_error():
    with pytest.raises(MetadataRetrievalError) as exc:
        Wim(runner=FakeRunner(stdout="")).info("broken.wim")
    assert "broken.wim" in str(exc.value)


def test_info_nonzero_exit_raises_retrieval_error():
    with pytest.raises(MetadataRetrievalError):
        Wim(runner=FakeRunner(exit_code=2, stdout="<WIM/>")).info("broken.wim")


def test_info_malformed_xml_raises_retrieval_error():
    with pytest.raises(MetadataRetrievalError) as exc:
        Wim(runner=FakeRunner(stdout="<WIM>")).info("broken.wim")
    assert exc.value.cause is not None


def test_update_renders_command_and_defaults_image():
    runner = FakeRunner()
    Wim(runner=runner).update(
        "in.wim", {"type": "add", "input": "a", "output": "b"}, ImagexOptions(rebuild=True)
    )
    assert runner.calls[0][0] == [
        "wimlib-imagex", "update", "in.wim", "1", 'add "a" "b"', "--rebuild"
    ]


def test_update_rejects_unknown_command_before_spawning():
    runner = FakeRunner()
    with pytest.raises(UnsupportedUpdateCommand):
        Wim(runner=runner).update("in.wim", {"type": "move", "input": "a", "output": "b"})
    assert runner.calls == []


def test_update_requires_command():
    runner = FakeRunner()
    with pytest.raises(MissingUpdateCommand):
        Wim(runner=runner).update("in.wim", None)
    assert runner.calls == []


def test_verify_nonzero_exit_raises_integrity_error():
    with pytest.raises(IntegrityCheckFailed) as exc:
        Wim(runner=FakeRunner(exit_code=1)).verify("corrupt.wim")
    assert "corrupt.wim" in str(exc.value)


def test_verify_success_is_silent():
    runner = FakeRunner()
    Wim(runner=runner).verify("ok.wim")
    assert runner.calls == [(["wimlib-imagex", "verify", "ok.wim"], False)]


def test_dir_returns_raw_listing():
    listing = "/\n/Windows\n/Windows/System32\n"
    assert Wim(runner=FakeRunner(stdout=listing)).dir("in.wim") == listing


def test_dir_empty_output_raises_retrieval_error():
    with pytest.raises(ListingRetrievalError) as exc:
        Wim(runner=FakeRunner()).dir("empty.wim")
    assert "empty.wim" in str(exc.value)


def test_spawn_failure_is_not_wrapped():
    class MissingBinary:
        def run(self, args, output_is_xml=False):
            raise FileNotFoundError(args[0])

    with pytest.raises(FileNotFoundError):
        Wim(runner=MissingBinary()).verify("in.wim")


def test_dir_nonzero_exit_with_output_raises_retrieval_error():
    with pytest.raises(ListingRetrievalError) as exc:
        Wim(runner=FakeRunner(exit_code=1, stdout="/\n")).dir("partial.wim")
    assert exc.value.details["exit_code"] == 1


def test_extract_failure_raises_command_failed():
    with pytest.raises(CommandFailed) as exc:
        Wim(runner=FakeRunner(exit_code=1)).extract("in.wim", "/missing")
    assert "in.wim" in str(exc.value)
    assert exc.value.details["action"] == "extract"


def test_update_failure_raises_command_failed():
    with pytest.raises(CommandFailed) as exc:
        Wim(runner=FakeRunner(exit_code=1)).update(
            "in.wim", {"type": "delete", "input": "/tmp", "output": ""}
        )
    assert "in.wim" in str(exc.value)
    assert exc.value.details["action"] == "update"
