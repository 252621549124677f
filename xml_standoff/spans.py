"""
Span and document containers produced by the builder, plus debugging views.

Offsets always refer to the normalized output text. Spans render to the
standoff dict layout {"cstart": ..., "cend": ..., <fields>}.
"""

import logging

PARAGRAPH_TYPE = "paragraph"


class Span:

    def __init__(self, type, begin, end=None, attributes=None):
        self.type = type
        self.begin = begin
        self.end = begin if end is None else end
        self.attributes = dict(attributes or {})

    def covered_text(self, text):
        return text[self.begin:self.end]

    def to_dict(self):
        # offsets win over fields of the same name
        res = dict(self.attributes)
        res["cstart"] = self.begin
        res["cend"] = self.end
        return res

    def __eq__(self, other):
        return (isinstance(other, Span) and type(other) is type(self)
                and (other.type, other.begin, other.end, other.attributes)
                == (self.type, self.begin, self.end, self.attributes))

    def __repr__(self):
        return f"Span({self.type!r}, {self.begin}, {self.end}, {self.attributes!r})"


class Paragraph(Span):
    """Paragraph segment; ids are sequential per document, starting at 0."""

    def __init__(self, id, begin, end=None):
        super().__init__(PARAGRAPH_TYPE, begin, end)
        self.id = id

    def to_dict(self):
        res = super().to_dict()
        res["id"] = self.id
        return res

    def __eq__(self, other):
        return super().__eq__(other) and other.id == self.id

    def __repr__(self):
        return f"Paragraph({self.id}, {self.begin}, {self.end})"


class DocumentInfo:
    """Identity metadata attached to a document and passed through untouched."""

    def __init__(self, id="", uri=None, collection="", index=0, xpath="", is_last=False):
        self.id = id
        self.uri = uri
        self.collection = collection
        self.index = index
        self.xpath = xpath
        self.is_last = is_last

    def to_dict(self):
        return {
            "id": self.id,
            "uri": self.uri,
            "collection": self.collection,
            "index": self.index,
            "xpath": self.xpath,
            "is_last": self.is_last,
        }

    def __repr__(self):
        return f"DocumentInfo(id={self.id!r}, index={self.index}, is_last={self.is_last})"


class StandoffDocument:
    """Normalized text of one document with its span forest, in commit order."""

    def __init__(self, text, spans, info=None):
        self.text = text
        self.spans = spans
        self.info = info

    def paragraphs(self):
        return [s for s in self.spans if isinstance(s, Paragraph)]

    def spans_of_type(self, type):
        return [s for s in self.spans if s.type == type]

    def annotations(self):
        """Group spans by type into the standoff dict layout."""
        return group_annotations(self.spans)

    def to_dict(self):
        res = self.info.to_dict() if self.info is not None else {}
        res["text"] = self.text
        res["annotations"] = self.annotations()
        return res

    def __repr__(self):
        doc_id = self.info.id if self.info is not None else None
        return f"StandoffDocument(id={doc_id!r}, chars={len(self.text)}, spans={len(self.spans)})"


def group_annotations(spans):
    annotations = {}
    for span in spans:
        annotations.setdefault(span.type, []).append(span.to_dict())
    return annotations


def debug_annotations(text, spans):
    """Create a debug view of text with span boundaries marked."""
    boundaries = []
    for i, span in enumerate(spans):
        if span.begin == span.end:
            boundaries.append((span.begin, 2, i, f"[{span.type}][/{span.type}]"))
            continue
        # at one offset: closes (innermost first), then opens (outermost first), then empty spans
        boundaries.append((span.end, 0, (-span.begin, i), f"[/{span.type}]"))
        boundaries.append((span.begin, 1, (-span.end, -i), f"[{span.type}]"))
    boundaries.sort(key=lambda b: b[:3])

    parts = []
    last = 0
    for position, _, _, marker in boundaries:
        parts.append(text[last:position])
        parts.append(marker)
        last = position
    parts.append(text[last:])
    return "".join(parts)


def _format_context_snippet(text, position, marker, radius=10):
    """Return a snippet of text around position with marker inserted."""
    position = max(0, min(len(text), position))
    start = max(0, position - radius)
    end = min(len(text), position + radius)
    snippet = f"{text[start:position]}{marker}{text[position:end]}"
    return snippet.replace("\n", "\\n")


def debug_log_spans(text, spans, logger=None):
    """Emit debug logs with the context around each span boundary."""
    logger = logger or logging.getLogger(__name__)
    if not logger.isEnabledFor(logging.DEBUG):
        return
    if not spans:
        logger.debug("Spans: none found")
        return
    logger.debug("Spans (%d entries):", len(spans))
    for span in spans:
        start_snippet = _format_context_snippet(text, span.begin, f"[{span.type}]")
        end_snippet = _format_context_snippet(text, span.end, f"[/{span.type}]")
        logger.debug("  %s %d-%d -> %s ... %s", span.type, span.begin, span.end, start_snippet, end_snippet)
