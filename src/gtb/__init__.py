from .model import ToolSpec, BuildOutcome
from .config import load_config, select_tools
from .workspace import Workspace
from .builders import Builder, BuildFailure, CloneBuild, FetchBuild
from .admission import AdmissionController
from .scheduler import Scheduler, run_tools

__all__ = [
    "ToolSpec",
    "BuildOutcome",
    "load_config",
    "select_tools",
    "Workspace",
    "Builder",
    "BuildFailure",
    "CloneBuild",
    "FetchBuild",
    "AdmissionController",
    "Scheduler",
    "run_tools",
]
