#!/usr/bin/env python3
import argparse
import json
import logging
import sys

import argcomplete
import fs.errors
from argcomplete.completers import FilesCompleter, ChoicesCompleter
from lxml import etree
from natsort import natsorted

from .builder import AnnotationGraphBuilder
from .fs_utils import open_binary
from .reader import read_documents
from .spans import debug_annotations
from .tag_mapping import StaticTagMapping
from .text_filter import DEFAULT_RULES, AlwaysSplit, LexiconSplit, NeverSplit, TextFilter

SPLIT_POLICIES = {
    "never": NeverSplit,
    "always": AlwaysSplit,
}


def parse_namespace(ns):
    """Parse a prefix=uri namespace binding."""
    prefix, sep, uri = ns.partition("=")
    if not sep or not prefix or not uri:
        raise argparse.ArgumentTypeError(f"invalid namespace binding {ns}, must be in the form prefix=uri")
    return prefix, uri


def read_lexicon(path):
    """Read a word list (one word per line). Ignores blank lines and comments."""
    words = []
    with open_binary(path) as f:
        for line in f.read().decode("utf-8").splitlines():
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            words.append(s)
    logging.info("read %d word(s) from %s", len(words), path)
    return words


def make_split_decision(args):
    if args.lexicon:
        return LexiconSplit(read_lexicon(args.lexicon))
    return SPLIT_POLICIES[args.split_policy]()


def make_builder(args):
    """Build the tag mapping, text filter and builder described by the command line."""
    mapping = StaticTagMapping(
        span_types=args.span_tags,
        other_data=args.other_data_tags,
        paragraph_breaks=args.paragraph_tags,
        inline_split_markers=args.split_tags,
    )
    rules = args.rule if args.rule else DEFAULT_RULES
    text_filter = TextFilter(
        rules=rules,
        whitespace_collisions=not args.keep_whitespace_collisions,
        split_decision=make_split_decision(args),
    )
    return AnnotationGraphBuilder(
        tag_mapping=mapping,
        text_filter=text_filter,
        filter_text=not args.no_filter,
        annotate=not args.no_spans,
        make_paragraphs=not args.no_paragraphs,
        strict=args.strict,
    )


def convert_files(args):
    """
    Convert each input file and write one JSON object per document.

    Returns the number of files that could not be converted.
    """
    builder = make_builder(args)
    namespaces = dict(args.namespace) if args.namespace else None
    files = natsorted(args.files)
    failures = 0
    out = open(args.output, "w", encoding="utf-8") if args.output else sys.stdout
    try:
        for i, path in enumerate(files):
            try:
                for doc in read_documents(path, builder, xpath=args.xpath, namespaces=namespaces,
                                          collection=args.collection, is_last_source=(i == len(files) - 1)):
                    if args.debug_view:
                        out.write(f"== {doc.info.id}\n{debug_annotations(doc.text, doc.spans)}\n")
                    else:
                        out.write(json.dumps(doc.to_dict(), ensure_ascii=False) + "\n")
            except (etree.XMLSyntaxError, etree.XPathError, OSError, fs.errors.FSError) as e:
                logging.error("could not convert %s: %s", path, e)
                failures += 1
    finally:
        if out is not sys.stdout:
            out.close()
    logging.info("converted %d file(s), %d failure(s)", len(files) - failures, failures)
    return failures


def _set_completer(parser, option_flag, completer):
    """Attach an argcomplete completer to the option if present."""
    for action in getattr(parser, "_actions", []):
        if option_flag in getattr(action, "option_strings", []):
            action.completer = completer
            break


def main(argv=None):
    parser = argparse.ArgumentParser(prog='xml-standoff',
                                     description='Convert XML documents to normalized text with standoff spans')
    parser.add_argument('--log-level', default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help='Logging level')
    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    convert_parser = subparsers.add_parser('convert', help='Convert XML files to JSON lines')
    convert_parser.add_argument('files', nargs='+', help='XML files (local paths or s3:// URLs)')
    convert_parser.add_argument('--xpath', help='XPath selecting the document elements (default: the root)')
    convert_parser.add_argument('--namespace', action='append', type=parse_namespace,
                                help='Namespace binding for --xpath, as prefix=uri (repeatable)')
    convert_parser.add_argument('--collection', default="", help='Collection name recorded for each document')
    convert_parser.add_argument('--span-tags', nargs='*', default=[], help='Elements that produce spans')
    convert_parser.add_argument('--other-data-tags', nargs='*', default=[], help='Elements reported as other data')
    convert_parser.add_argument('--paragraph-tags', nargs='*', default=[], help='Elements that break paragraphs')
    convert_parser.add_argument('--split-tags', nargs='*', default=[],
                                help='Inline elements that may split a word (line or page breaks)')
    convert_parser.add_argument('--split-policy', default="never", choices=sorted(SPLIT_POLICIES),
                                help='Whether text around a split element is separated by a space')
    convert_parser.add_argument('--lexicon', help='Word list: join split fragments only when the fused word is listed')
    convert_parser.add_argument('--rule', nargs=2, action='append', metavar=('PATTERN', 'REPLACEMENT'),
                                help='Rewrite rule replacing the default whitespace rules (repeatable, applied in order)')
    convert_parser.add_argument('--no-filter', action='store_true', help='Keep character data as is')
    convert_parser.add_argument('--no-spans', action='store_true', help='Do not create spans')
    convert_parser.add_argument('--no-paragraphs', action='store_true', help='Do not segment paragraphs')
    convert_parser.add_argument('--keep-whitespace-collisions', action='store_true',
                                help='Do not drop leading whitespace after whitespace')
    convert_parser.add_argument('--strict', action='store_true', help='Fail on unbalanced element events')
    convert_parser.add_argument('--output', help='Output file (default: stdout)')
    convert_parser.add_argument('--debug-view', action='store_true',
                                help='Print text with inline span markers instead of JSON')
    convert_parser.set_defaults(func=convert_files)

    _set_completer(convert_parser, '--lexicon', FilesCompleter())
    _set_completer(convert_parser, '--output', FilesCompleter())
    _set_completer(convert_parser, '--split-policy', ChoicesCompleter(sorted(SPLIT_POLICIES)))

    # Users should also enable shell integration; see argcomplete's documentation.
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))
    failures = args.func(args)
    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
