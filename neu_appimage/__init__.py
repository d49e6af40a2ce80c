"""Package neutralino release archives as AppImages."""

from .build import AppImageBuild, PipelineState, build_appimage
from .build_config import BuildContext, BuildVariant, IconPolicy, ProjectConfig, ToolSpec
from .errors import PackagingError

__all__ = [
    "AppImageBuild",
    "BuildContext",
    "BuildVariant",
    "IconPolicy",
    "PackagingError",
    "PipelineState",
    "ProjectConfig",
    "ToolSpec",
    "build_appimage",
]
