"""
Scaffold generation.

Renders deployment templates for an analyzed project and walks the
four-step workflow: analyze, generate, configure environment, verify.

Usage:
    viteship generate              # Render and write all files
    viteship generate --only ci    # One generator
    viteship generate --dry-run    # Preview without writing
"""

from .envcheck import EnvironmentReport, check_environment
from .generator import Generator, GeneratorResult
from .generators import GeneratorRegistry
from .placeholders import PLACEHOLDERS, Placeholder, ResolvedPlaceholder, resolve_placeholders
from .runner import FileAction, PlannedFile, ScaffoldResult, ScaffoldRunner
from .templates import TemplateSpec, TemplateStore, build_context, get_template, list_templates
from .verify import VerificationResult, build_image, verify_scaffold
from .workflow import WORKFLOW, WorkflowStep

__all__ = [
    # Templates
    "TemplateSpec",
    "TemplateStore",
    "build_context",
    "get_template",
    "list_templates",
    # Placeholders
    "PLACEHOLDERS",
    "Placeholder",
    "ResolvedPlaceholder",
    "resolve_placeholders",
    # Generation
    "Generator",
    "GeneratorResult",
    "GeneratorRegistry",
    "ScaffoldRunner",
    "ScaffoldResult",
    "PlannedFile",
    "FileAction",
    # Environment and verification
    "EnvironmentReport",
    "check_environment",
    "VerificationResult",
    "verify_scaffold",
    "build_image",
    # Workflow
    "WORKFLOW",
    "WorkflowStep",
]
