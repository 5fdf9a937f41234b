"""Transform command implementation for the CLI."""

from __future__ import annotations

from typing import final

from jitmod.application import create_loader
from jitmod.features.transform import detect_syntax
from jitmod.platform.filesystem import read_source
from jitmod.shared.models import TransformExtras, TransformOptions
from jitmod.ui.cli.args.options import TransformArgs
from jitmod.ui.cli.display.transform import TransformDisplay


@final
class TransformCommand:
    """Command printing the code the loader would execute for a file."""

    def __init__(self, args: TransformArgs, display: TransformDisplay | None = None) -> None:
        self.args = args
        self.display = display or TransformDisplay()

    def execute(self) -> str:
        """Execute the transform command and return the generated code."""

        path = self.args.file
        source = read_source(path)
        with create_loader(path, **self.args.flags.overrides()) as loader:
            options = loader.options
            code = loader.transform(
                TransformOptions(
                    source=source,
                    filename=str(path),
                    syntax=detect_syntax(path, source),
                    retain_lines=self.args.retain_lines,
                    is_async=self.args.is_async,
                    engine_version=options.cache_version,
                    interop_default=options.interop_default,
                    source_maps=options.source_maps,
                    extra=TransformExtras(options.transform_extra),
                )
            )
        self.display.show_code(path, code)
        return code
