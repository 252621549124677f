"""
Mapping from XML element and attribute names to span types, fields and structural roles.

The builder asks a TagMapping once per element, at open time, for the element's
categories; span elements are then resolved to a SpanType and their attributes
to FieldHandles.
"""

import enum
import logging
from typing import Dict, Iterable, Mapping, Optional, Union


class ElementCategory(enum.Flag):
    """Roles an element can play; an element may combine several of them."""
    PLAIN = 0
    SPAN = enum.auto()
    OTHER_DATA = enum.auto()
    PARAGRAPH_BREAK = enum.auto()
    INLINE_SPLIT = enum.auto()


class FieldHandle:
    """Named span field; write() is the attribute-to-field writer."""

    def __init__(self, name, coerce=str):
        self.name = name
        self.coerce = coerce

    def write(self, span, value):
        span.attributes[self.name] = self.coerce(value)

    def __repr__(self):
        return f"FieldHandle({self.name!r})"


class SpanType:
    """
    A span type with its known fields.

    Args:
        name: type name carried by the spans of this type
        fields: mapping of attribute name to FieldHandle (or to a field name)
        accept_all: resolve any unknown attribute to a string field of the same name
    """

    def __init__(self, name, fields=None, accept_all=False):
        self.name = name
        self.fields = {}
        for key, field in (fields or {}).items():
            if not isinstance(field, FieldHandle):
                field = FieldHandle(field)
            self.fields[key] = field
        self.accept_all = accept_all

    def field(self, key):
        field = self.fields.get(key)
        if field is None and self.accept_all:
            return FieldHandle(key)
        return field

    def __eq__(self, other):
        return isinstance(other, SpanType) and other.name == self.name

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return f"SpanType({self.name!r})"


class TagMapping:
    """Interface consulted by the builder; subclasses provide the actual tables."""

    def is_span_element(self, name: str) -> bool:
        return False

    def is_other_data(self, name: str) -> bool:
        return False

    def is_paragraph_break(self, name: str) -> bool:
        return False

    def is_inline_split_marker(self, name: str) -> bool:
        return False

    def resolve_span_type(self, name: str, attrs: Mapping[str, str]) -> Optional[SpanType]:
        return None

    def resolve_field(self, span_type: SpanType, key: str) -> Optional[FieldHandle]:
        return None

    def categorize(self, name: str) -> ElementCategory:
        category = ElementCategory.PLAIN
        if self.is_span_element(name):
            category |= ElementCategory.SPAN
        if self.is_other_data(name):
            category |= ElementCategory.OTHER_DATA
        if self.is_paragraph_break(name):
            category |= ElementCategory.PARAGRAPH_BREAK
        if self.is_inline_split_marker(name):
            category |= ElementCategory.INLINE_SPLIT
        return category


class StaticTagMapping(TagMapping):
    """
    TagMapping built from fixed name tables.

    span_types maps element names to SpanType instances or to type names; a plain
    iterable of element names maps each one to a type of the same name that
    accepts every attribute as a string field.
    """

    def __init__(self,
                 span_types: Union[Mapping[str, Union[SpanType, str]], Iterable[str]] = (),
                 other_data: Iterable[str] = (),
                 paragraph_breaks: Iterable[str] = (),
                 inline_split_markers: Iterable[str] = ()):
        self.span_types: Dict[str, SpanType] = {}
        if isinstance(span_types, Mapping):
            for name, span_type in span_types.items():
                if not isinstance(span_type, SpanType):
                    span_type = SpanType(span_type, accept_all=True)
                self.span_types[name] = span_type
        else:
            for name in span_types:
                self.span_types[name] = SpanType(name, accept_all=True)
        self.other_data = frozenset(other_data)
        self.paragraph_breaks = frozenset(paragraph_breaks)
        self.inline_split_markers = frozenset(inline_split_markers)
        logging.getLogger(__name__).debug(
            "tag mapping: %d span type(s), %d other data, %d paragraph break(s), %d split marker(s)",
            len(self.span_types), len(self.other_data), len(self.paragraph_breaks),
            len(self.inline_split_markers))

    def is_span_element(self, name):
        return name in self.span_types

    def is_other_data(self, name):
        return name in self.other_data

    def is_paragraph_break(self, name):
        return name in self.paragraph_breaks

    def is_inline_split_marker(self, name):
        return name in self.inline_split_markers

    def resolve_span_type(self, name, attrs):
        return self.span_types.get(name)

    def resolve_field(self, span_type, key):
        return span_type.field(key)
