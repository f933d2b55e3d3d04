"""
Compile-on-save pipeline.

For one saved file:

1. Check the workspace is live and its configuration active
2. Resolve the path relative to the workspace root
3. Match it against the include/exclude patterns
4. Derive ``<name>.js`` and ``<name>.js.map`` next to the source
5. Read, compile, write the source map (if any), write the code

Skips in steps 1-3 are silent. Any error while reading, compiling or writing
is caught here, reported once through the notifier and never propagated, so
one broken file cannot stop other files from compiling.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from coffeewatch.cancellation import ShutdownToken
from coffeewatch.compiler import COMPILER_NAME, CompilerProtocol, normalize_result
from coffeewatch.config import CompileConfig
from coffeewatch.matching import matches
from coffeewatch.notifications import NotifierProtocol, format_error
from coffeewatch.paths import normalize_path, to_relative_path

if TYPE_CHECKING:
    from coffeewatch.workspace import Workspace

logger = logging.getLogger(__name__)


class CompileOutcome(Enum):
    """What happened to a saved file."""

    SKIPPED = "skipped"  # not contained, not matched, or inactive
    COMPILED = "compiled"  # output written
    FAILED = "failed"  # error reported to the user
    ABORTED = "aborted"  # shutdown/disposal began before writing


@dataclass(frozen=True)
class CompileRequest:
    """Paths involved in compiling one source file."""

    source_path: Path
    output_path: Path
    source_map_path: Path

    @classmethod
    def for_source(cls, source_file: str) -> "CompileRequest":
        """Derive the output and source map paths for a source file."""
        source_path = Path(normalize_path(source_file))
        output_path = source_path.with_name(source_path.stem + ".js")
        source_map_path = output_path.with_name(output_path.name + ".map")
        return cls(source_path, output_path, source_map_path)

    @property
    def source_name(self) -> str:
        return self.source_path.name

    @property
    def output_name(self) -> str:
        return self.output_path.name

    @property
    def source_map_name(self) -> str:
        return self.source_map_path.name


def compose_code(code: str, config: CompileConfig, source_map_name: str) -> str:
    """Append the external source map comments when the map is not inlined."""
    if not config.inline_map and config.source_map:
        code += f"\n\n//# sourceMappingURL={source_map_name}\n//# sourceURL={COMPILER_NAME}"
    return code


def _write_text(path: Path, text: str) -> None:
    # Bytes keep line endings exactly as generated
    path.write_bytes(text.encode("utf-8"))


class CompilePipeline:
    """
    Compiles saved files of a workspace.

    Holds no per-file state, so compiles of different files may overlap.

    Args:
        compiler: Compiler used for every file
        notifier: Where compile failures are reported
    """

    def __init__(self, compiler: CompilerProtocol, notifier: NotifierProtocol) -> None:
        self.compiler = compiler
        self.notifier = notifier

    async def run(
        self,
        workspace: "Workspace",
        source_file: str,
        token: Optional[ShutdownToken] = None,
    ) -> CompileOutcome:
        """
        Compile a saved file if the workspace configuration selects it.

        Args:
            workspace: Workspace the file was saved in
            source_file: Path of the saved file
            token: Shutdown token checked before writing output

        Returns:
            CompileOutcome describing what happened
        """
        if workspace.is_in_finalize_state:
            return CompileOutcome.SKIPPED

        config = workspace.current_config()
        if config is None or not config.is_active:
            logger.debug(f"[{workspace.name}] Inactive, skipping {source_file}")
            return CompileOutcome.SKIPPED

        relative_path = to_relative_path(workspace.root_path, source_file)
        if relative_path is None:
            return CompileOutcome.SKIPPED

        if not matches(relative_path, config.include_patterns(), config.exclude_patterns()):
            return CompileOutcome.SKIPPED

        request = CompileRequest.for_source(source_file)
        try:
            return await self._execute(workspace, request, config, token)
        except Exception as e:
            logger.debug(
                f"[{workspace.name}] Failed to compile {relative_path}: {e}",
                exc_info=True,
            )
            self.notifier.show_error(format_error(e))
            return CompileOutcome.FAILED

    async def _execute(
        self,
        workspace: "Workspace",
        request: CompileRequest,
        config: CompileConfig,
        token: Optional[ShutdownToken],
    ) -> CompileOutcome:
        # Bytes, so CRLF line endings reach the compiler unchanged
        raw_source = await asyncio.to_thread(request.source_path.read_bytes)
        source = raw_source.decode("utf-8")

        raw_result = await asyncio.to_thread(
            self.compiler.compile, source, config.compiler_options()
        )
        result = normalize_result(raw_result)

        if self._should_abort(workspace, token):
            logger.info(f"[{workspace.name}] Shutting down, not writing {request.output_name}")
            return CompileOutcome.ABORTED

        # The map file is written whenever a map was generated, inline or not
        if result.raw_source_map is not None:
            generated_map = result.raw_source_map.generate(
                request.output_name, [request.source_name]
            )
            if generated_map:
                await asyncio.to_thread(
                    _write_text,
                    request.source_map_path,
                    json.dumps(generated_map, separators=(",", ":")),
                )

        code = compose_code(str(result.code), config, request.source_map_name)

        if self._should_abort(workspace, token):
            return CompileOutcome.ABORTED

        await asyncio.to_thread(_write_text, request.output_path, code)
        logger.info(f"[{workspace.name}] Compiled {request.source_name} -> {request.output_name}")
        return CompileOutcome.COMPILED

    @staticmethod
    def _should_abort(workspace: "Workspace", token: Optional[ShutdownToken]) -> bool:
        if token is not None and token.is_cancelled:
            return True
        return workspace.is_in_finalize_state
