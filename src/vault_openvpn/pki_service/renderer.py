"""Rendering of OpenVPN configuration templates."""

from pathlib import Path
from typing import TextIO
import logging

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, TemplateNotFound

from ..errors import TemplateRenderError
from .models import TemplateContext

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Fills client.conf / server.conf templates with certificate material."""

    def __init__(self, template_path: Path):
        """
        Initialize the renderer.

        Args:
            template_path: Directory the templates are read from
        """
        self.template_path = Path(template_path)
        self.environment = Environment(
            loader=FileSystemLoader(str(self.template_path)),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def render(self, template_name: str, context: TemplateContext, stream: TextIO) -> None:
        """
        Render a template into stream.

        Args:
            template_name: File name below the template directory
            context: Certificate material
            stream: Output stream

        Raises:
            TemplateRenderError: If the template is missing, invalid or
                references an unknown variable
        """
        try:
            template = self.environment.get_template(template_name)
            output = template.render(**context.model_dump())
        except TemplateNotFound as e:
            raise TemplateRenderError(
                f"Template {template_name} not found in {self.template_path}"
            ) from e
        except TemplateError as e:
            raise TemplateRenderError(f"Unable to render {template_name}: {e}") from e

        logger.debug(f"Rendered {template_name} for {context.common_name}")
        stream.write(output)
