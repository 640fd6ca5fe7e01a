"""Template manager for loading and rendering Jinja2 prompt templates.

Provides a centralized interface for rendering the documentation and
update-suggestion prompts from templates stored in templates/prompts/.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATES_DIR = Path(__file__).parent.parent / "templates" / "prompts"


class TemplateManager:
    """Loads and renders Jinja2 prompt templates.

    User code is substituted verbatim; autoescaping is off because the
    output is a plain-text prompt, not HTML.
    """

    def __init__(self, templates_dir: Optional[str] = None) -> None:
        """Initialize the template manager.

        Args:
            templates_dir: Path to the templates directory. Uses the
                packaged templates/prompts/ directory if not specified.
        """
        self._templates_path = (
            Path(templates_dir) if templates_dir else _DEFAULT_TEMPLATES_DIR
        )

        if not self._templates_path.exists():
            logger.warning("Templates directory not found: %s", self._templates_path)

        self._env = Environment(
            loader=FileSystemLoader(str(self._templates_path)),
            autoescape=False,
            keep_trailing_newline=True,
        )
        logger.debug("Template manager initialized with: %s", self._templates_path)

    def render_documentation_prompt(self, source_code: str) -> str:
        """Render the full-documentation prompt for a code blob.

        Args:
            source_code: Code to document.

        Returns:
            Rendered prompt string ready for LLM submission.
        """
        return self._render("generate_doc.j2", source_code=source_code)

    def render_update_prompt(self, original_code: str, updated_code: str) -> str:
        """Render the update-suggestion prompt for two code versions.

        Args:
            original_code: Code before the change.
            updated_code: Code after the change.

        Returns:
            Rendered prompt string ready for LLM submission.
        """
        return self._render(
            "suggest_update.j2",
            original_code=original_code,
            updated_code=updated_code,
        )

    def _render(self, template_name: str, **kwargs: Any) -> str:
        """Render a template with the given context variables.

        Raises:
            TemplateNotFound: If the template file does not exist.
        """
        template = self._env.get_template(template_name)
        rendered = template.render(**kwargs)
        logger.debug("Rendered template %s (%d chars)", template_name, len(rendered))
        return rendered

    def list_templates(self) -> list[str]:
        """List all available template files."""
        return self._env.list_templates()
