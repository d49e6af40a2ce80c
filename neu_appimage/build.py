"""Build orchestration for AppImage packages."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import requests
from loguru import logger

from .archive import entry_filter_for, extract_archive
from .build_config import DEFAULT_ICON, BuildContext, BuildVariant, IconPolicy
from .errors import BuildFailure, ConfigurationError, ExtractError, PackagingError
from .invoker import LineSink, run_builder
from .launcher import copy_icon, make_executable, write_apprun, write_desktop_entry
from .staging import StagingLayout, create_layout, remove_staging
from .tooling import ProgressCallback, ensure_tool, remove_tool

ConfirmOverwrite = Callable[[Path], bool]


class PipelineState(str, Enum):
    INIT = "init"
    CONFLICT_CHECK = "conflict_check"
    STAGING = "staging"
    EXTRACTING = "extracting"
    METADATA = "metadata"
    TOOL_READY = "tool_ready"
    BUILDING = "building"
    CLEANUP = "cleanup"
    SUCCESS = "success"
    FAILED = "failed"


def builder_invocation(context: BuildContext, layout: StagingLayout) -> Tuple[List[str], Dict[str, str]]:
    """Arguments and environment for the selected builder."""
    env = dict(context.environ)
    if context.variant is BuildVariant.APPIMAGETOOL:
        return [str(layout.root), str(context.image_path)], env
    env["ARCH"] = context.arch
    return ["--appdir", str(layout.root), "--output", "appimage"], env


class AppImageBuild:
    """One packaging run: stage the AppDir, fetch the builder, run it, clean up.

    Stages run strictly one after another. Every failure, expected or not, is
    routed through :meth:`_cleanup`, which removes the AppDir; the downloaded
    builder is removed as well once the build step has been reached.
    """

    def __init__(
        self,
        context: BuildContext,
        *,
        confirm_overwrite: ConfirmOverwrite,
        progress: Optional[ProgressCallback] = None,
        session: Optional[requests.Session] = None,
        on_stdout: Optional[LineSink] = None,
        on_stderr: Optional[LineSink] = None,
    ) -> None:
        self.context = context
        self.confirm_overwrite = confirm_overwrite
        self.progress = progress
        self.session = session
        self.on_stdout = on_stdout
        self.on_stderr = on_stderr
        self.state = PipelineState.INIT
        self.history: List[PipelineState] = [PipelineState.INIT]

    def _advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug("Pipeline state -> {}", state.value)

    def _fail(self, exc: PackagingError) -> int:
        logger.error("ERROR {}: {}", type(exc).__name__, exc)
        return exc.exit_code

    def resolve_icon(self) -> Path:
        icon = self.context.icon
        if icon is not None:
            return icon
        if self.context.icon_policy is IconPolicy.STRICT:
            logger.warning("No icon configured in neutralino.config.json")
            raise ConfigurationError("An icon is required; set 'icon' in neutralino.config.json")
        logger.warning("No icon included, the default icon will be used")
        return DEFAULT_ICON

    def run(self) -> int:
        context = self.context
        try:
            icon = self.resolve_icon()
        except PackagingError as exc:
            code = self._fail(exc)
            self._advance(PipelineState.FAILED)
            return code

        self._advance(PipelineState.CONFLICT_CHECK)
        if context.app_dir.exists():
            if not self.confirm_overwrite(context.app_dir):
                logger.info("closing...")
                self._advance(PipelineState.FAILED)
                return 1
            if not remove_staging(context.app_dir):
                self._advance(PipelineState.FAILED)
                return 1

        try:
            layout = self._stage(icon)
            self._advance(PipelineState.TOOL_READY)
            tool_path = ensure_tool(context.tool, progress=self.progress, session=self.session)
        except PackagingError as exc:
            code = self._fail(exc)
            self._cleanup(dispose_tool=False)
            self._advance(PipelineState.FAILED)
            return code
        except Exception:
            self._cleanup(dispose_tool=False)
            self._advance(PipelineState.FAILED)
            raise

        self._advance(PipelineState.BUILDING)
        logger.info("Building AppImage")
        args, env = builder_invocation(context, layout)
        try:
            code = run_builder(
                tool_path,
                args,
                env,
                cwd=context.project_root,
                min_stderr_length=context.tool.min_stderr_length,
                on_stdout=self.on_stdout,
                on_stderr=self.on_stderr,
            )
        except PackagingError as exc:
            code = self._fail(exc)
            self._cleanup(dispose_tool=True)
            self._advance(PipelineState.FAILED)
            return code
        except Exception:
            self._cleanup(dispose_tool=True)
            self._advance(PipelineState.FAILED)
            raise

        self._cleanup(dispose_tool=True)
        if code != 0:
            self._fail(BuildFailure(code))
            self._advance(PipelineState.FAILED)
            return code

        if not context.image_path.exists():
            logger.warning("Builder finished but {} was not found", context.image_path.name)
        logger.success("Your AppImage has been built successfully: {}", context.image_path)
        self._advance(PipelineState.SUCCESS)
        return 0

    def _stage(self, icon: Path) -> StagingLayout:
        context = self.context
        self._advance(PipelineState.STAGING)
        logger.info("Creating AppDir")
        layout = create_layout(context)

        self._advance(PipelineState.EXTRACTING)
        logger.info("Extracting {}", context.archive_path.name)
        extract_archive(context.archive_path, layout.bin_dir, entry_filter_for(context))
        executable = layout.bin_dir / context.executable_name
        if not executable.is_file():
            raise ExtractError(f"{context.archive_path.name} does not contain {context.executable_name}")
        make_executable(executable)

        self._advance(PipelineState.METADATA)
        logger.info("Configuring AppDir")
        copied = copy_icon(layout, icon)
        write_desktop_entry(layout, context.app_id, context.executable_name, copied)
        write_apprun(layout, context.executable_name)
        return layout

    def _cleanup(self, *, dispose_tool: bool) -> None:
        self._advance(PipelineState.CLEANUP)
        remove_staging(self.context.app_dir)
        if dispose_tool:
            remove_tool(self.context.tool)


def build_appimage(context: BuildContext, *, confirm_overwrite: ConfirmOverwrite, **options) -> int:
    return AppImageBuild(context, confirm_overwrite=confirm_overwrite, **options).run()


__all__ = ["AppImageBuild", "ConfirmOverwrite", "PipelineState", "build_appimage", "builder_invocation"]
