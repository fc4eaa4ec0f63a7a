"""Render the security group CloudFormation template."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import jinja2
import structlog

from .errors import RenderError
from .security_group import DeploymentSpec
from .utils import read_text_file, write_text_file

TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_TEMPLATE = TEMPLATE_DIR / "security_group.yaml.j2"
DEFAULT_OUTPUT = Path("template.yml")

logger = structlog.get_logger(__name__)


class TemplateRenderer(Protocol):
    """Protocol implemented by template renderers."""

    def render(self, spec: DeploymentSpec) -> Path:
        """Write the rendered deployment document and return its path."""


class JinjaTemplateRenderer:
    """Fill the packaged Jinja2 template and write it to a fixed local path."""

    def __init__(self, template_path: Path = DEFAULT_TEMPLATE, output_path: Path = DEFAULT_OUTPUT) -> None:
        self.template_path = Path(template_path)
        self.output_path = Path(output_path)
        self._environment = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def render_text(self, spec: DeploymentSpec) -> str:
        try:
            source = read_text_file(self.template_path)
        except OSError as exc:
            raise RenderError(f"unable to read template {self.template_path}: {exc}") from exc
        try:
            template = self._environment.from_string(source)
            return template.render(**spec.to_template_context())
        except jinja2.TemplateError as exc:
            raise RenderError(f"unable to render template {self.template_path}: {exc}") from exc

    def render(self, spec: DeploymentSpec) -> Path:
        document = self.render_text(spec)
        try:
            write_text_file(self.output_path, document)
        except OSError as exc:
            raise RenderError(f"unable to write template {self.output_path}: {exc}") from exc
        logger.info("template_rendered", template=str(self.template_path), output=str(self.output_path))
        return self.output_path
