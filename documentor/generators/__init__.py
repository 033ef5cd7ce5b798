"""Documentation, diagram, and narrative generators."""

from .documentation import DocumentationGenerator
from .mermaid import MermaidGenerator
from .narratives import DeploymentTarget, build_deployment_guide, build_troubleshooting, detect_deployment_targets

__all__ = [
    "DocumentationGenerator",
    "MermaidGenerator",
    "DeploymentTarget",
    "build_deployment_guide",
    "build_troubleshooting",
    "detect_deployment_targets",
]
