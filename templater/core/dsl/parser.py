"""
Template Parser
===============

Core parsing engine for converting template text into a resolution context
(variables and service instances) and a set of named view templates.
No dependency analysis happens here; see ``templater.core.graph.builder``.
"""

from typing import Dict, List, Optional, Tuple
import re
import time

from templater.config.logging import get_logger
from templater.core.dsl.preprocessor import iter_logical_lines, split_lines
from templater.core.errors import TemplateSyntaxError
from templater.models.schemas import (
    ConstantVariable,
    Dependency,
    ParsedTemplate,
    ParseResult,
    ReferenceVariable,
    RenderMode,
    ResolutionContext,
    ServiceInstance,
    Variable,
    ViewTemplate,
)

logger = get_logger(__name__)

TAG_DATA = "#data"
TAG_VIEW = "#view"

SIGIL_VARIABLE = "$"
SIGIL_SERVICE = "@"
RESERVED_PREFIX = "internal_"

DEFAULT_VIEW_NAME = "default"
DEFAULT_RENDER_MODE = RenderMode.HTML

REGEXP_HEAD_DATA = re.compile(r"^#data\s*$")
REGEXP_HEAD_VIEW = re.compile(r"^#view(?:\((?P<name>[a-z_]+)\))?(?:\[(?P<mode>[a-z]+)\])?\s*$")

REGEXP_IDENTIFIER = re.compile(r"^[@$][a-z][a-z_]*$")
REGEXP_STRING_LITERAL = re.compile(r"^'(?P<value>.*)'$", re.DOTALL)
REGEXP_REFERENCE = re.compile(r"^(?P<field>[a-z][a-z_]*)\s*<-\s*@(?P<service>[a-z][a-z_]*)$")
REGEXP_ALIAS = re.compile(r"^\$(?P<name>[a-z][a-z_]*)$")
REGEXP_SERVICE = re.compile(r"^(?P<provider>[A-Z][A-Za-z0-9]*)\s*(?P<body>\{.*\})?$", re.DOTALL)
REGEXP_SERVICE_BODY = re.compile(r"^(?:\s*[a-z][a-z_]*\s*=\s*\$[a-z][a-z_]*\s*;)*\s*$")
REGEXP_SERVICE_ARGUMENT = re.compile(r"(?P<argument>[a-z][a-z_]*)\s*=\s*\$(?P<variable>[a-z][a-z_]*)\s*;")


class TemplateParser:
    """Single-use parser for one template text."""

    def __init__(self, text: str) -> None:
        self.logger = logger.bind(component="parser")
        self._text = text
        self._variables: Dict[str, Variable] = {}
        self._services: Dict[str, ServiceInstance] = {}

    def parse(self) -> ParsedTemplate:
        """
        Parse the template text.

        Returns:
            ParsedTemplate with views and resolution context

        Raises:
            TemplateSyntaxError: If the text violates the grammar
        """
        lines = split_lines(self._text)
        data_index, view_indexes = self._split_regions(lines)

        views = self._parse_views(lines, view_indexes)
        self._parse_data_region(lines[data_index + 1 : view_indexes[0]], first_line=data_index + 2)

        context = ResolutionContext(variables=self._variables, services=self._services)
        self.logger.debug(
            "Template parsed",
            variables=len(self._variables),
            services=len(self._services),
            views=list(views),
        )
        return ParsedTemplate(views=views, context=context)

    # Regions

    def _split_regions(self, lines: List[str]) -> Tuple[int, List[int]]:
        """Locate the data header and all view headers."""
        data_indexes = [i for i, line in enumerate(lines) if line.startswith(TAG_DATA)]
        view_indexes = [i for i, line in enumerate(lines) if line.startswith(TAG_VIEW)]

        if not data_indexes:
            raise TemplateSyntaxError(f"required region {TAG_DATA} not found")
        if len(data_indexes) > 1:
            raise TemplateSyntaxError(
                f"region {TAG_DATA} announced several times", line=data_indexes[1] + 1
            )
        if not view_indexes:
            raise TemplateSyntaxError(f"required region {TAG_VIEW} not found")

        data_index = data_indexes[0]
        if data_index > view_indexes[0]:
            raise TemplateSyntaxError(
                f"region {TAG_VIEW} must be after region {TAG_DATA}", line=view_indexes[0] + 1
            )
        if not REGEXP_HEAD_DATA.match(lines[data_index]):
            raise TemplateSyntaxError(
                f'no characters are allowed after the {TAG_DATA} header - "{lines[data_index]}"',
                line=data_index + 1,
            )
        return data_index, view_indexes

    def _parse_views(self, lines: List[str], view_indexes: List[int]) -> Dict[str, ViewTemplate]:
        views: Dict[str, ViewTemplate] = {}
        bounds = view_indexes[1:] + [len(lines)]

        for index, end in zip(view_indexes, bounds):
            head = lines[index]
            match = REGEXP_HEAD_VIEW.match(head)
            if not match:
                raise TemplateSyntaxError(f'incorrect title for {TAG_VIEW} region - "{head}"', line=index + 1)

            name = match.group("name") or DEFAULT_VIEW_NAME
            mode_name = match.group("mode")
            try:
                mode = RenderMode(mode_name) if mode_name else DEFAULT_RENDER_MODE
            except ValueError:
                raise TemplateSyntaxError(f'unknown render mode "{mode_name}"', line=index + 1)

            if name in views:
                raise TemplateSyntaxError(f'view "{name}" announced several times', line=index + 1)

            views[name] = ViewTemplate(
                name=name, mode=mode, text="\n".join(lines[index + 1 : end]), line=index + 1
            )
        return views

    # Declarations

    def _parse_data_region(self, lines: List[str], first_line: int) -> None:
        for logical in iter_logical_lines(lines, first_line=first_line):
            self._parse_declaration(logical.text, logical.line)

    def _parse_declaration(self, text: str, line: int) -> None:
        identifier, separator, assignment = text.partition("=")
        identifier = identifier.strip()
        assignment = assignment.strip()

        if not separator:
            raise TemplateSyntaxError(f'expected "identifier = value" - "{text}"', line=line)
        if not REGEXP_IDENTIFIER.match(identifier):
            raise TemplateSyntaxError(f'invalid identifier "{identifier}"', line=line)

        name = identifier[1:]
        if name.startswith(RESERVED_PREFIX):
            raise TemplateSyntaxError(
                f'prefix "{RESERVED_PREFIX}" is not publicly available - "{identifier}"', line=line
            )

        if identifier.startswith(SIGIL_SERVICE):
            self._services[name] = self._parse_service(name, assignment, line)
        else:
            self._variables[name] = self._parse_variable(assignment, line)

    def _parse_variable(self, assignment: str, line: int) -> Variable:
        literal = REGEXP_STRING_LITERAL.match(assignment)
        if literal:
            return ConstantVariable(value=literal.group("value"))

        reference = REGEXP_REFERENCE.match(assignment)
        if reference:
            return ReferenceVariable(
                service=reference.group("service"), field_key=reference.group("field")
            )

        alias = REGEXP_ALIAS.match(assignment)
        if alias:
            target = alias.group("name")
            if target not in self._variables:
                raise TemplateSyntaxError(f'alias target "${target}" is not defined', line=line)
            # Descriptors are frozen, sharing the instance copies it
            return self._variables[target]

        raise TemplateSyntaxError(f'invalid variable value "{assignment}"', line=line)

    def _parse_service(self, name: str, assignment: str, line: int) -> ServiceInstance:
        match = REGEXP_SERVICE.match(assignment)
        if not match:
            raise TemplateSyntaxError(f'invalid service declaration "{assignment}"', line=line)

        body = match.group("body")
        dependencies: List[Dependency] = []
        if body is not None:
            inner = body[1:-1]
            if not REGEXP_SERVICE_BODY.match(inner):
                raise TemplateSyntaxError(
                    f'invalid arguments for service "@{name}" - "{body}"', line=line
                )
            seen = set()
            for argument in REGEXP_SERVICE_ARGUMENT.finditer(inner):
                argument_name = argument.group("argument")
                if argument_name in seen:
                    raise TemplateSyntaxError(
                        f'argument "{argument_name}" assigned several times in service "@{name}"',
                        line=line,
                    )
                seen.add(argument_name)
                dependencies.append(
                    Dependency(argument=argument_name, variable=argument.group("variable"))
                )

        return ServiceInstance(
            name=name, provider=match.group("provider"), dependencies=tuple(dependencies)
        )


def parse_template(text: str) -> ParsedTemplate:
    """
    Parse template text into views and a resolution context.

    Args:
        text: Raw template text

    Returns:
        ParsedTemplate

    Raises:
        TemplateSyntaxError: If the text violates the grammar
    """
    if not text or not text.strip():
        raise TemplateSyntaxError("empty template provided")
    return TemplateParser(text).parse()


def check_template(text: str) -> ParseResult:
    """
    Parse template text without raising.

    Args:
        text: Raw template text

    Returns:
        ParseResult containing the parsed template or errors
    """
    start_time = time.time()
    try:
        template = parse_template(text)
    except TemplateSyntaxError as e:
        logger.info("Template check failed", error=str(e))
        return ParseResult(
            success=False,
            template=None,
            errors=[str(e)],
            processing_time=time.time() - start_time,
        )
    return ParseResult(
        success=True,
        template=template,
        errors=[],
        processing_time=time.time() - start_time,
    )


def validate_template_syntax(text: Optional[str]) -> bool:
    """
    Validate template syntax without returning the parse output.

    Args:
        text: Raw template text

    Returns:
        True if syntax is valid, False otherwise
    """
    if not text:
        return False
    return check_template(text).success
