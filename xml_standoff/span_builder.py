"""Builds spans from element names and attribute maps through a TagMapping."""

import logging

from .spans import Span


class SpanBuilder:

    def __init__(self, tag_mapping):
        self.tag_mapping = tag_mapping

    def build(self, name, attrs, begin):
        """
        Create a span for element name starting at begin, fields filled from attrs.

        Returns None when the mapping has no type for the element. Attributes
        without a matching field are logged and skipped.
        """
        logger = logging.getLogger(__name__)
        span_type = self.tag_mapping.resolve_span_type(name, attrs)
        if span_type is None:
            logger.warning("Can't create span: no type found for element %s", name)
            return None

        span = Span(span_type.name, begin)
        for key, value in attrs.items():
            field = self.tag_mapping.resolve_field(span_type, key)
            if field is None:
                logger.warning("Can't set field value: no field found in type %s for attribute %s in element %s",
                               span_type.name, key, name)
                continue
            field.write(span, value)
        return span
