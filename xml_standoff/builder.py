"""
Streaming construction of normalized text and standoff spans from XML events.

The AnnotationGraphBuilder receives SAX-like events for one document at a time:

    builder.document_start(info)
    builder.start_element(name, attrs) / builder.characters(text) / builder.end_element(name)
    doc = builder.document_end()

Character data is accumulated and only flushed through the TextFilter when a
structural event occurs, so every span offset is taken from the filtered output
buffer, never from the source. Paragraph segmentation runs inside the builder:
paragraph-break elements close the pending paragraph and open the next one.
"""

import logging
import re

from .buffer import OutputBuffer
from .errors import ConfigurationError, SpanStackError
from .path_tracker import PathTracker
from .span_builder import SpanBuilder
from .spans import Paragraph, StandoffDocument, debug_log_spans
from .tag_mapping import ElementCategory
from .text_filter import TextFilter

EOL = "\n"
NO_ID = ""

_WORD_CHAR = re.compile(r'\w')


class _OpenElement:
    """Entry of the open-element stack: categories are decided once, at open time."""
    __slots__ = ("name", "category", "span")

    def __init__(self, name, category, span=None):
        self.name = name
        self.category = category
        self.span = span


class AnnotationGraphBuilder:
    """
    Builds (text, spans) pairs from XML events, one document at a time.

    Args:
        tag_mapping: TagMapping deciding element roles; required when annotate
            or make_paragraphs is on
        text_filter: TextFilter used when filter_text is on (a default one is
            created when omitted)
        filter_text: normalize character data through the text filter
        annotate: create spans from span elements
        make_paragraphs: segment the output into paragraph spans
        on_document: callable receiving each finished StandoffDocument
        on_other_data: callable(start, name, path, attrs) for other-data elements
        strict: raise SpanStackError on unbalanced events instead of logging them
    """

    def __init__(self, tag_mapping=None, text_filter=None, filter_text=True, annotate=True,
                 make_paragraphs=True, on_document=None, on_other_data=None, strict=False):
        if (annotate or make_paragraphs) and tag_mapping is None:
            raise ConfigurationError("a tag mapping is required to create spans or paragraphs")
        if filter_text and text_filter is None:
            text_filter = TextFilter()
        self.tag_mapping = tag_mapping
        self.text_filter = text_filter
        self.filter_text = filter_text
        self.annotate = annotate
        self.make_paragraphs = make_paragraphs
        self.on_document = on_document
        self.on_other_data = on_other_data
        self.strict = strict
        self.span_builder = SpanBuilder(tag_mapping) if tag_mapping is not None else None
        self.path = PathTracker()
        self._open = False
        self._clear()

    # ======================= events ======================= #

    def document_start(self, info=None):
        logger = logging.getLogger(__name__)
        if self._open:
            logger.warning("document %s started before the previous one ended, discarding it", self._doc_id)
        self._clear()
        self.info = info
        self._doc_id = info.id if info is not None else NO_ID
        self.path.reset(self._doc_id)
        self._open = True
        if self.make_paragraphs:
            self._break_paragraph()

    def characters(self, text):
        self._check_open("characters")
        if text:
            self._pending.append(text)

    def start_element(self, name, attrs=None):
        self._check_open("start_element")
        attrs = attrs or {}
        category = self._categorize(name)
        path = self.path.push(name)

        self._flush()

        if category & ElementCategory.PARAGRAPH_BREAK:
            self._break_paragraph()

        span = None
        if category & ElementCategory.SPAN:
            span = self.span_builder.build(name, attrs, len(self.output))
            if span is not None:
                self._span_stack.append(span)

        if category & ElementCategory.OTHER_DATA:
            self.process_other_data(len(self.output), name, path, attrs)

        self._elements.append(_OpenElement(name, category, span))

    def end_element(self, name):
        self._check_open("end_element")
        if not self._elements:
            self._unbalanced("end of element %s with no open element in document %s", name, self._doc_id)
            return
        entry = self._elements.pop()
        if entry.name != name:
            self._unbalanced("end of element %s does not match open element %s in document %s",
                             name, entry.name, self._doc_id)
        self.path.pop()

        self._flush()

        if entry.category & ElementCategory.INLINE_SPLIT:
            self._process_inline(name)

        if entry.category & ElementCategory.PARAGRAPH_BREAK:
            self._break_paragraph()

        # spans are pushed and popped together with their element entries
        if entry.span is not None:
            self._finish_span(self._span_stack.pop())

    def document_end(self):
        """Flush pending data, close the last paragraph and emit the finished document."""
        self._check_open("document_end")
        logger = logging.getLogger(__name__)
        self._flush()

        if self._paragraph is not None:
            self._finish_span(self._paragraph)
            self._paragraph = None

        if self._span_stack:
            self._unbalanced("%d span(s) left open at the end of document %s: %s",
                             len(self._span_stack), self._doc_id,
                             ", ".join(s.type for s in self._span_stack))

        text = self.output.getvalue()
        doc = StandoffDocument(text, self._spans, self.info)
        logger.debug("document %s: %d character(s), %d span(s), %d paragraph(s)",
                     self._doc_id, len(text), len(self._spans), self._para_count)
        debug_log_spans(text, self._spans, logger)

        self._clear()
        if self.on_document is not None:
            self.on_document(doc)
        return doc

    def reset(self):
        """Discard all per-document state without emitting anything."""
        self._clear()

    # ================ overridable hooks ================ #

    def process_other_data(self, start, name, path, attrs):
        """
        Handle an element flagged as other (non-span) data.

        start is the current output offset and path the element's location. The
        default implementation forwards to on_other_data, if set.
        """
        if self.on_other_data is not None:
            self.on_other_data(start, name, path, attrs)

    # ===================== internals ===================== #

    def _clear(self):
        self.output = OutputBuffer()
        self.info = None
        self._doc_id = NO_ID
        self._pending = []
        self._span_stack = []
        self._elements = []
        self._spans = []
        self._paragraph = None
        self._para_count = 0
        self._split_mark = None
        self.path.reset()
        self._open = False

    def _check_open(self, event):
        if not self._open:
            raise SpanStackError(f"{event} received outside of a document")

    def _unbalanced(self, msg, *args):
        if self.strict:
            raise SpanStackError(msg % args)
        logging.getLogger(__name__).warning(msg, *args)

    def _categorize(self, name):
        if self.tag_mapping is None:
            return ElementCategory.PLAIN
        category = self.tag_mapping.categorize(name)
        if not self.annotate:
            category &= ~(ElementCategory.SPAN | ElementCategory.OTHER_DATA)
        if not self.make_paragraphs:
            category &= ~ElementCategory.PARAGRAPH_BREAK
        if not self.filter_text:
            category &= ~ElementCategory.INLINE_SPLIT
        return category

    def _flush(self):
        if not self._pending:
            return
        data = "".join(self._pending)
        self._pending = []
        if self.filter_text:
            if self.text_filter.append(self.output, data, self._split_mark):
                self._split_mark = None
        else:
            self.output.append(data)

    def _break_paragraph(self):
        if self._paragraph is not None:
            # nothing was added since the last break: keep the pending paragraph
            if self._paragraph.begin == len(self.output):
                return
            self._finish_span(self._paragraph)
            self.output.append(EOL)
        self._paragraph = Paragraph(self._para_count, len(self.output))
        self._para_count += 1

    def _finish_span(self, span):
        span.end = len(self.output)
        self._spans.append(span)

    def _process_inline(self, name):
        """
        Layout marks such as line or page breaks may sit between two fragments
        of the same word; flag the next chunk for a split decision.
        """
        if _WORD_CHAR.match(self.output.last_char()):
            self._split_mark = name
