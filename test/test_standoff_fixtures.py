"""Tests for XML to standoff conversion.

Tests are data-driven using XML fixtures and corresponding JSON expectation files.
Each JSON file holds the tag configuration used for the conversion, the expected
text and the expected annotations grouped by span type.
"""
import unittest
import sys
import os
import json
import glob

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from xml_standoff.builder import AnnotationGraphBuilder
from xml_standoff.reader import read_documents
from xml_standoff.spans import debug_annotations
from xml_standoff.tag_mapping import StaticTagMapping
from xml_standoff.text_filter import AlwaysSplit, LexiconSplit, NeverSplit, TextFilter

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), 'fixtures', 'standoff')


def builder_from_config(config):
    """Build a builder from the "config" section of an expectation file."""
    mapping = StaticTagMapping(
        span_types=config.get("span_tags", []),
        other_data=config.get("other_data_tags", []),
        paragraph_breaks=config.get("paragraph_tags", []),
        inline_split_markers=config.get("split_tags", []),
    )
    if "lexicon" in config:
        decision = LexiconSplit(config["lexicon"])
    elif config.get("split_policy") == "always":
        decision = AlwaysSplit()
    else:
        decision = NeverSplit()
    return AnnotationGraphBuilder(mapping, TextFilter(split_decision=decision))


def find_fixtures():
    cases = []
    for xml_file in sorted(glob.glob(os.path.join(FIXTURES_DIR, '*.xml'))):
        base_name = os.path.splitext(xml_file)[0]
        json_file = base_name + '.json'
        if os.path.exists(json_file):
            cases.append({
                'name': os.path.basename(base_name),
                'xml_file': xml_file,
                'json_file': json_file
            })
    return cases


class TestStandoffFromFixtures(unittest.TestCase):
    """Test conversion using XML fixtures and JSON expectation files."""

    def _test_fixture(self, test_case):
        with open(test_case['json_file'], 'r', encoding='utf-8') as f:
            expected = json.load(f)

        builder = builder_from_config(expected.get('config', {}))
        docs = list(read_documents(test_case['xml_file'], builder))
        self.assertEqual(len(docs), 1, f"Document count mismatch in {test_case['name']}")
        doc = docs[0]

        self.assertEqual(doc.text, expected['text'],
                         f"Text mismatch in {test_case['name']}:\n{debug_annotations(doc.text, doc.spans)}")
        self.assertEqual(doc.annotations(), expected['annotations'],
                         f"Annotations mismatch in {test_case['name']}")

        for span in doc.spans:
            self.assertTrue(0 <= span.begin <= span.end <= len(doc.text),
                            f"Span {span!r} out of bounds in {test_case['name']}")

        self.assertEqual(doc.info.id, test_case['name'])
        self.assertTrue(doc.info.is_last)

    def test_fixtures_present(self):
        self.assertGreater(len(find_fixtures()), 0)


def _add_fixture_tests():
    """Generate one test method per fixture."""
    for test_case in find_fixtures():
        test_name = f"test_{test_case['name'].replace('-', '_')}"

        def make_test(tc):
            def test(self):
                self._test_fixture(tc)
            return test

        test_method = make_test(test_case)
        test_method.__name__ = test_name
        test_method.__doc__ = f"Test conversion for {test_case['name']}"
        setattr(TestStandoffFromFixtures, test_name, test_method)


_add_fixture_tests()


if __name__ == '__main__':
    unittest.main()
