"""Reference and health checks for decoded Documents.

Errors are problems that break the Document's invariants (dangling
references, duplicate ids); decoding and encoding refuse such Documents
unless reference checking is switched off. Warnings are oddities the
editor itself tolerates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from wtgcodec.const import GENERATED_GLOBAL_PREFIX, PRIMITIVE_TYPES
from wtgcodec.enums import ParameterKind
from wtgcodec.errors import MalformedStructure

if TYPE_CHECKING:
    from wtgcodec.model.document import Document, Trigger, Variable

ERROR = 'error'
WARNING = 'warning'


@dataclass
class Problem:
    severity: str
    message: str
    location: str = ''

    def __str__(self) -> str:
        prefix = f'{self.location}: ' if self.location else ''
        return f'{self.severity}: {prefix}{self.message}'


@dataclass
class HealthReport:
    """Problems found in one Document."""

    problems: list[Problem] = field(default_factory=list)

    def add(self, severity: str, message: str, location: str = '') -> None:
        self.problems.append(Problem(severity, message, location))

    @property
    def errors(self) -> list[Problem]:
        return [p for p in self.problems if p.severity == ERROR]

    @property
    def warnings(self) -> list[Problem]:
        return [p for p in self.problems if p.severity == WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors


def initial_value_matches(variable: Variable) -> bool:
    """Whether a primitive variable's initial value parses as its type."""
    value = variable.initial_value
    if variable.type_name == 'integer':
        try:
            int(value)
        except ValueError:
            return False
        return True
    if variable.type_name == 'real':
        try:
            float(value)
        except ValueError:
            return False
        return True
    if variable.type_name == 'boolean':
        return value in ('true', 'false')
    return True


def _check_variables(document: Document, report: HealthReport) -> None:
    for name, variable in document.variables.items():
        location = f'variable {name!r}'
        if name != variable.name:
            report.add(ERROR, f'keyed under {name!r} but named {variable.name!r}', location)
        if variable.array_size < 1:
            report.add(WARNING, f'array size {variable.array_size}', location)
        if (
            variable.is_initialized
            and variable.type_name in PRIMITIVE_TYPES
            and not initial_value_matches(variable)
        ):
            report.add(
                WARNING,
                f'initial value {variable.initial_value!r} is not a valid {variable.type_name}',
                location,
            )


def _check_trigger(document: Document, trigger: Trigger, category_ids: set[int], report: HealthReport) -> None:
    location = f'trigger {trigger.name!r}'
    if trigger.category_id not in category_ids:
        report.add(ERROR, f'category {trigger.category_id} does not exist', location)

    if not trigger.is_comment and not trigger.is_custom_text and not trigger.events:
        report.add(WARNING, 'has no events and can only run when called', location)

    for function in trigger.walk():
        if not function.name:
            report.add(ERROR, 'function with an empty name', location)

    for function in trigger.functions:
        for parameter in function.iter_parameters():
            if parameter.kind != ParameterKind.VARIABLE:
                continue
            if not parameter.value:
                report.add(ERROR, 'variable parameter with no variable name', location)
            elif parameter.value not in document.variables and not parameter.value.startswith(
                GENERATED_GLOBAL_PREFIX
            ):
                report.add(ERROR, f'variable {parameter.value!r} is not declared', location)


def check_document(document: Document) -> HealthReport:
    """Run every reference and health check over a Document."""
    report = HealthReport()

    category_ids: set[int] = set()
    for category in document.categories:
        if category.id in category_ids:
            report.add(ERROR, f'duplicate category id {category.id}', f'category {category.name!r}')
        category_ids.add(category.id)

    _check_variables(document, report)
    for trigger in document.triggers:
        _check_trigger(document, trigger, category_ids, report)

    return report


def ensure_valid(document: Document) -> None:
    """Raise MalformedStructure if the Document breaks a reference invariant."""
    errors = check_document(document).errors
    if errors:
        more = f' (and {len(errors) - 1} more)' if len(errors) > 1 else ''
        first = errors[0]
        prefix = f'{first.location}: ' if first.location else ''
        raise MalformedStructure(f'Invalid reference, {prefix}{first.message}{more}')
