"""Label selector parsing and query generation.

A selector is a comma-separated list of requirements, all of which must hold:

    env=prod            label 'env' has value 'prod' (also 'env==prod')
    env!=prod           no label 'env' with value 'prod'
    env in (prod,dev)   label 'env' has one of the values
    env notin (prod)    no label 'env' with any of the values
    env                 label 'env' exists
    !env                label 'env' does not exist

Keys may carry a DNS-style prefix, e.g. 'example.com/env'.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import or_, select

EQUAL = "="
NOT_EQUAL = "!="
IN = "in"
NOT_IN = "notin"
EXISTS = "exists"
NOT_EXISTS = "not_exists"

_KEY = r"(?:[A-Za-z0-9.\-]+/)?[A-Za-z0-9]([A-Za-z0-9_.\-]*[A-Za-z0-9])?"
_VALUE = r"(?:[A-Za-z0-9]([A-Za-z0-9_.\-]*[A-Za-z0-9])?)?"

EQUALITY_PATTERN = re.compile(rf"^\s*(?P<key>{_KEY})\s*(?P<op>==|!=|=)\s*(?P<value>{_VALUE})\s*$")
SET_PATTERN = re.compile(rf"^\s*(?P<key>{_KEY})\s+(?P<op>in|notin)\s+\((?P<values>[^()]*)\)\s*$")
EXISTENCE_PATTERN = re.compile(rf"^\s*(?P<bang>!)?\s*(?P<key>{_KEY})\s*$")
VALUE_PATTERN = re.compile(rf"^{_VALUE}$")


class LabelSelectorParseError(ValueError):
    """Raised when a label selector is not syntactically valid."""


@dataclass(frozen=True)
class LabelSelectorRequirement:
    key_prefix: Optional[str]
    key_name: str
    operator: str
    values: Tuple[str, ...] = ()


def _split_requirements(selector: str) -> List[str]:
    """Split on commas that are not inside a parenthesised value set."""
    parts = []
    depth = 0
    current: List[str] = []

    for char in selector:
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth < 0:
                raise LabelSelectorParseError(f"Unbalanced parentheses in label selector: '{selector}'")
        if char == ',' and depth == 0:
            parts.append(''.join(current))
            current = []
        else:
            current.append(char)

    if depth != 0:
        raise LabelSelectorParseError(f"Unbalanced parentheses in label selector: '{selector}'")
    parts.append(''.join(current))
    return parts


def _split_key(key: str) -> Tuple[Optional[str], str]:
    if '/' in key:
        prefix, name = key.split('/', 1)
        return prefix, name
    return None, key


def _parse_requirement(text: str) -> LabelSelectorRequirement:
    match = EQUALITY_PATTERN.match(text)
    if match:
        prefix, name = _split_key(match.group('key'))
        operator = NOT_EQUAL if match.group('op') == '!=' else EQUAL
        return LabelSelectorRequirement(prefix, name, operator, (match.group('value'),))

    match = SET_PATTERN.match(text)
    if match:
        prefix, name = _split_key(match.group('key'))
        values = tuple(v.strip() for v in match.group('values').split(','))
        for value in values:
            if not value or not VALUE_PATTERN.match(value):
                raise LabelSelectorParseError(f"Invalid value '{value}' in label selector requirement '{text.strip()}'")
        operator = IN if match.group('op') == 'in' else NOT_IN
        return LabelSelectorRequirement(prefix, name, operator, values)

    match = EXISTENCE_PATTERN.match(text)
    if match:
        prefix, name = _split_key(match.group('key'))
        operator = NOT_EXISTS if match.group('bang') else EXISTS
        return LabelSelectorRequirement(prefix, name, operator)

    raise LabelSelectorParseError(f"Invalid label selector requirement: '{text.strip()}'")


def parse_label_selector(selector: str) -> List[LabelSelectorRequirement]:
    """Parse a selector string into its requirements."""
    if selector is None or not selector.strip():
        raise LabelSelectorParseError("Label selector must not be empty")
    return [_parse_requirement(part) for part in _split_requirements(selector)]


def _matching_label_rows(label_model, requirement: LabelSelectorRequirement):
    """Select resource guids with a label row matching the requirement's key (and values)."""
    conditions = [label_model.key_name == requirement.key_name]
    if requirement.key_prefix:
        conditions.append(label_model.key_prefix == requirement.key_prefix)
    else:
        conditions.append(or_(label_model.key_prefix.is_(None), label_model.key_prefix == ''))

    if requirement.operator in (EQUAL, NOT_EQUAL, IN, NOT_IN):
        conditions.append(label_model.value.in_(requirement.values))

    return select(label_model.resource_guid).where(*conditions)


def add_selector_queries(label_model, resource_model, query, requirements: List[LabelSelectorRequirement]):
    """
    Attach one predicate per requirement to a resource query.

    Args:
        label_model: Label model with resource_guid, key_prefix, key_name, value
        resource_model: The labelled model (matched on its guid column)
        query: SQLAlchemy query over resource_model
        requirements: Parsed requirements, combined with AND

    Returns:
        The query with the predicates attached (still unexecuted)
    """
    for requirement in requirements:
        matching = _matching_label_rows(label_model, requirement)
        if requirement.operator in (EQUAL, IN, EXISTS):
            query = query.filter(resource_model.guid.in_(matching))
        else:
            query = query.filter(~resource_model.guid.in_(matching))
    return query
