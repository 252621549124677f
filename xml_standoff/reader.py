"""
XML event source driving an AnnotationGraphBuilder from lxml trees.

Each selected element (the root, or every node matched by an XPath expression)
becomes one document: the reader calls document_start(), replays the element
as start/characters/end events in document order and collects the result of
document_end().

Main API:
    for doc in read_documents("file.xml", builder, xpath="//tei:text", namespaces=NS):
        doc.text, doc.spans, doc.info
"""

import io
import logging
import os
import re

from lxml import etree

from .fs_utils import open_binary, source_stem, source_uri
from .spans import DocumentInfo


def _local_name(tag):
    return etree.QName(tag).localname


def _attributes(element):
    """Attribute map keyed by local attribute name (xml:id becomes id)."""
    return {_local_name(k): v for k, v in element.attrib.items()}


def _start(element, handler):
    handler.start_element(_local_name(element.tag), _attributes(element))
    if element.text:
        handler.characters(element.text)


def emit_events(element, handler):
    """
    Replay element and its subtree as start_element/characters/end_element calls.

    Comments, processing instructions and entity references produce no events
    of their own; their tail text is still delivered. The tail of element
    itself is not part of the document.
    """
    _start(element, handler)
    stack = [(element, iter(element))]
    while stack:
        node, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            handler.end_element(_local_name(node.tag))
            if stack and node.tail:
                handler.characters(node.tail)
            continue
        if isinstance(child.tag, str):
            _start(child, handler)
            stack.append((child, iter(child)))
        elif child.tail:
            handler.characters(child.tail)


def _make_parser():
    return etree.XMLParser(remove_comments=True, remove_pis=True, resolve_entities=False)


def parse_source(source):
    """
    Parse source into an lxml root element.

    source may be an lxml element or tree, bytes holding XML content, a binary
    file object, or a local path / s3:// URL. A str is always taken as a path;
    use read_string for XML held in a string.
    """
    if isinstance(source, etree._Element):
        return source
    if isinstance(source, etree._ElementTree):
        return source.getroot()
    parser = _make_parser()
    if isinstance(source, bytes):
        return etree.fromstring(source, parser)
    if hasattr(source, "read"):
        return etree.parse(source, parser).getroot()
    with open_binary(source) as f:
        return etree.parse(f, parser).getroot()


def _is_path(source):
    return isinstance(source, (str, os.PathLike))


def make_document_id(stem, xpath, index):
    """Build a document id from a source name, the selecting XPath and the element index."""
    if not xpath:
        return stem
    return f"{stem}{re.sub(r'/+', '-', xpath)}-{index}"


def select_documents(root, xpath=None, namespaces=None):
    """Return the elements that make up documents: the root, or the XPath matches."""
    if not xpath:
        return [root]
    logger = logging.getLogger(__name__)
    nodes = root.xpath(xpath, namespaces=namespaces)
    if not isinstance(nodes, list):
        raise etree.XPathEvalError(f"XPath expression {xpath} does not select nodes")
    elements = []
    for node in nodes:
        if isinstance(node, etree._Element) and isinstance(node.tag, str):
            elements.append(node)
        else:
            logger.warning("Skipping non-element result of %s: %r", xpath, node)
    return elements


def read_documents(source, handler, xpath=None, namespaces=None, collection="",
                   doc_id=None, is_last_source=True):
    """
    Convert every document of a single source with handler.

    Args:
        source: path, s3:// URL, bytes, file object or lxml element
        handler: an AnnotationGraphBuilder (or any object with the same event methods)
        xpath: optional XPath selecting the document elements
        namespaces: prefix map for xpath
        collection: collection name recorded in each DocumentInfo
        doc_id: base id; defaults to the file stem for paths and "" otherwise
        is_last_source: whether this source is the last one of its collection

    Yields:
        StandoffDocument for each selected element. Parse errors propagate
        before anything is yielded; an error while replaying a document resets
        the handler and propagates.
    """
    logger = logging.getLogger(__name__)
    if doc_id is None:
        doc_id = source_stem(source) if _is_path(source) else ""
    uri = source_uri(source) if _is_path(source) else None

    root = parse_source(source)
    elements = select_documents(root, xpath, namespaces)
    message = f"Reading {uri or doc_id or 'XML data'}."
    if xpath:
        message += f" Found {len(elements)} nodes with expression {xpath}."
    logger.info(message)

    for i, element in enumerate(elements, start=1):
        info = DocumentInfo(
            id=make_document_id(doc_id, xpath, i),
            uri=uri,
            collection=collection,
            index=i,
            xpath=xpath or "",
            is_last=is_last_source and i == len(elements),
        )
        handler.document_start(info)
        try:
            emit_events(element, handler)
            doc = handler.document_end()
        except Exception:
            handler.reset()
            raise
        yield doc


def read_string(xml, handler, **kwargs):
    """Convenience wrapper converting XML given as a string; returns a list of documents."""
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    return list(read_documents(io.BytesIO(xml), handler, **kwargs))
