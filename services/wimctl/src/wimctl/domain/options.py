from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_IMAGE = 1
DEFAULT_IMAGEX_BIN = "wimlib-imagex"


@dataclass(frozen=True)
class ImagexOptions:
    """Switches forwarded to wimlib-imagex.

    ``image`` selects the image inside a multi-image WIM and is passed as a
    positional argument by the operations that need it; it never becomes a
    flag.
    """

    image: int | None = None
    dest_dir: str | None = None
    to_stdout: bool = False
    source_list: bool = False
    compress: str | None = None
    no_acls: bool = False
    unix_data: bool = False
    rebuild: bool = False
    check: bool = False
    no_globs: bool = False

    def with_default_image(self) -> ImagexOptions:
        if self.image:
            return self
        return replace(self, image=DEFAULT_IMAGE)


def build_option_args(options: ImagexOptions | None) -> list[str]:
    if options is None:
        return []
    args: list[str] = []
    if options.dest_dir:
        args.append(f"--dest-dir={options.dest_dir}")
    if options.to_stdout:
        args.append("--to-stdout")
    if options.source_list:
        args.append("--source-list")
    if options.compress:
        args.append(f"--compress={options.compress}")
    if options.no_acls:
        args.append("--no-acls")
    if options.unix_data:
        args.append("--unix-data")
    if options.rebuild:
        args.append("--rebuild")
    if options.check:
        args.append("--check")
    if options.no_globs:
        args.append("--no-globs")
    return args
