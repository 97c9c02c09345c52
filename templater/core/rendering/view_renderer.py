"""
View Renderer
=============

Substitutes ``{{identifier}}`` placeholders of a view with resolved values.
HTML views are autoescaped, text views are rendered verbatim.

View text is not a Jinja2 template: only ``{{identifier}}`` tokens are
substituted and every other character is emitted as written. Each view is
translated into a Jinja2 source in which placeholders read from a single
``record`` mapping and literal braces are emitted as constants, so no tag,
comment or expression written in a view is ever evaluated.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
import re

import jinja2

from templater.config.logging import get_logger
from templater.config.settings import get_settings
from templater.core.errors import RenderError, UnknownViewError
from templater.models.schemas import ParsedTemplate, RenderMode, ViewTemplate

logger = get_logger(__name__)

RenderFunction = Callable[[ViewTemplate, Mapping[str, Any]], str]

REGEXP_PLACEHOLDER = re.compile(r"\{\{\s*(?P<name>[a-z][a-z_]*)\s*\}\}")
RECORD_NAME = "record"
LITERAL_BRACE = "{{ '{' }}"


def to_jinja_source(text: str) -> str:
    """
    Translate view text into a Jinja2 source that only substitutes placeholders.

    Args:
        text: Raw view text

    Returns:
        Jinja2 source reading placeholder values from ``record``
    """
    parts: List[str] = []
    position = 0
    for match in REGEXP_PLACEHOLDER.finditer(text):
        parts.append(text[position : match.start()].replace("{", LITERAL_BRACE))
        parts.append(f"{{{{ {RECORD_NAME}['{match.group('name')}'] }}}}")
        position = match.end()
    parts.append(text[position:].replace("{", LITERAL_BRACE))
    return "".join(parts)


class ViewRenderer:
    """Jinja2-based view renderer."""

    def __init__(
        self,
        undefined_placeholder: Optional[str] = None,
        array_separator: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.logger: Any = logger.bind(component="renderer")  # structlog.BoundLoggerBase
        self.undefined_placeholder = (
            settings.undefined_placeholder if undefined_placeholder is None else undefined_placeholder
        )
        self.array_separator = settings.array_separator if array_separator is None else array_separator
        self._environments = {
            RenderMode.HTML: self._create_environment(autoescape=True),
            RenderMode.TEXT: self._create_environment(autoescape=False),
        }
        self._compiled: Dict[Tuple[RenderMode, str], Tuple[jinja2.Template, Tuple[str, ...]]] = {}

    def _create_environment(self, autoescape: bool) -> jinja2.Environment:
        return jinja2.Environment(
            autoescape=autoescape,
            finalize=self._finalize,
            keep_trailing_newline=True,
        )

    def _finalize(self, value: Any) -> Any:
        """Convert resolved values into their string form."""
        if value is None:
            return self.undefined_placeholder
        if isinstance(value, (list, tuple)):
            return self.array_separator.join(str(item) for item in value)
        return value

    def _compile(self, view: ViewTemplate) -> Tuple[jinja2.Template, Tuple[str, ...]]:
        """Compiled template and placeholder names of a view, cached per mode and text."""
        key = (view.mode, view.text)
        if key not in self._compiled:
            names = tuple(dict.fromkeys(m.group("name") for m in REGEXP_PLACEHOLDER.finditer(view.text)))
            template = self._environments[view.mode].from_string(to_jinja_source(view.text))
            self._compiled[key] = (template, names)
        return self._compiled[key]

    def render(self, view: ViewTemplate, values: Mapping[str, Any]) -> str:
        """
        Render a view with resolved values.

        Args:
            view: View template
            values: Value record

        Returns:
            Rendered text

        Raises:
            RenderError: If the view text cannot be rendered
        """
        try:
            template, names = self._compile(view)
            # Every placeholder is present, unresolved ones as None
            record = {name: values.get(name) for name in names}
            text = template.render({RECORD_NAME: record})
        except jinja2.TemplateError as e:
            error_msg = f'Rendering view "{view.name}" failed: {e}'
            self.logger.error("View rendering failed", view=view.name, error=error_msg)
            raise RenderError(error_msg) from e

        self.logger.debug("View rendered", view=view.name, mode=view.mode.value, length=len(text))
        return text


def render_view(
    view: ViewTemplate, values: Mapping[str, Any], renderer: Optional[RenderFunction] = None
) -> str:
    """
    Render one view.

    Args:
        view: View template
        values: Value record
        renderer: Optional replacement render function

    Returns:
        Rendered text
    """
    render = renderer or ViewRenderer().render
    return render(view, values)


def render_views(
    template: ParsedTemplate,
    values: Mapping[str, Any],
    names: Optional[Iterable[str]] = None,
    renderer: Optional[RenderFunction] = None,
) -> Dict[str, str]:
    """
    Render several views of a parsed template.

    Args:
        template: Parsed template
        values: Value record
        names: View names to render, all views when omitted
        renderer: Optional replacement render function

    Returns:
        Mapping of view name to rendered text

    Raises:
        UnknownViewError: If a requested view is not defined
    """
    selected = list(template.views) if names is None else list(names)
    for name in selected:
        if name not in template.views:
            raise UnknownViewError(name)

    render = renderer or ViewRenderer().render
    return {name: render(template.views[name], values) for name in selected}
