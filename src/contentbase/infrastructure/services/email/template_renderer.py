"""Sandboxed rendering of notification templates."""

from collections.abc import Mapping

from jinja2 import StrictUndefined, Template, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from contentbase.core.logging import get_logger

logger = get_logger(__name__)


class TemplateRenderer:
    """Renders template sources with HTML autoescaping.

    Template code runs sandboxed and an unset variable raises
    ``UndefinedError`` instead of rendering as an empty string. Compiled
    templates are kept per source since the notification set is fixed.
    """

    def __init__(self) -> None:
        self.env = SandboxedEnvironment(
            autoescape=True,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._compiled: dict[str, Template] = {}

    def _template(self, source: str) -> Template:
        template = self._compiled.get(source)
        if template is None:
            template = self._compiled[source] = self.env.from_string(source)
        return template

    def render(self, source: str, variables: Mapping[str, str]) -> str:
        try:
            return self._template(source).render(variables)
        except TemplateError as e:
            logger.warning(
                "Template rendering failed",
                error=str(e),
                error_type=type(e).__name__,
                variables=sorted(variables),
            )
            raise

    def render_many(
        self, sources: Mapping[str, str], variables: Mapping[str, str]
    ) -> dict[str, str]:
        """Render several named sources against the same variables."""
        return {name: self.render(source, variables) for name, source in sources.items()}
