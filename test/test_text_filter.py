"""Tests for text normalization and word split reconciliation."""
import unittest
from unittest.mock import Mock
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from xml_standoff.buffer import OutputBuffer
from xml_standoff.errors import ConfigurationError
from xml_standoff.text_filter import AlwaysSplit, LexiconSplit, NeverSplit, TextFilter


def filled_buffer(text):
    buf = OutputBuffer()
    buf.append(text)
    return buf


class TestOutputBuffer(unittest.TestCase):

    def test_last_word_across_chunks(self):
        buf = OutputBuffer()
        buf.append("the do")
        buf.append("cu")
        buf.append("ment")
        self.assertEqual(buf.last_word(), "document")
        self.assertEqual(len(buf), 12)
        self.assertEqual(buf.getvalue(), "the document")

    def test_last_word_after_whitespace(self):
        self.assertEqual(filled_buffer("word ").last_word(), "")
        self.assertEqual(OutputBuffer().last_word(), "")
        self.assertEqual(OutputBuffer().last_char(), "")

    def test_empty_chunks_ignored(self):
        buf = filled_buffer("abc")
        buf.append("")
        self.assertEqual(buf.last_char(), "c")
        self.assertEqual(len(buf), 3)


class TestNormalize(unittest.TestCase):

    def test_default_rules_collapse_whitespace(self):
        f = TextFilter()
        self.assertEqual(f.normalize("a\n\n  b\t c"), "a b c")

    def test_normalize_is_idempotent(self):
        f = TextFilter()
        for chunk in ["  x \n y  ", "\n", "plain", "a\t\tb\r\nc"]:
            once = f.normalize(chunk)
            self.assertEqual(f.normalize(once), once)

    def test_rules_applied_in_order(self):
        f = TextFilter(rules=["a", "b", "b", "c"])
        self.assertEqual(f.normalize("a"), "c")
        f = TextFilter(rules=[("b", "c"), ("a", "b")])
        self.assertEqual(f.normalize("a"), "b")

    def test_group_references(self):
        f = TextFilter(rules=[r'(\w)\s+([.,;])', r'\1\2'])
        self.assertEqual(f.normalize("end ."), "end.")

    def test_empty_chunk_short_circuits(self):
        f = TextFilter(rules=[r'^\s+$', '', r'^$', 'never'])
        self.assertEqual(f.normalize("   "), "")

    def test_odd_rule_list_is_fatal(self):
        with self.assertRaises(ConfigurationError):
            TextFilter(rules=[r'\s+', ' ', r'x'])

    def test_bad_pattern_is_fatal(self):
        with self.assertRaises(ConfigurationError):
            TextFilter(rules=['(unclosed', ''])

    def test_no_rules(self):
        self.assertEqual(TextFilter(rules=[]).normalize(" a\n"), " a\n")


class TestAppend(unittest.TestCase):

    def test_whitespace_collision_suppressed(self):
        f = TextFilter()
        buf = filled_buffer("Hello ")
        f.append(buf, " world")
        self.assertEqual(buf.getvalue(), "Hello world")
        self.assertNotIn("  ", buf.getvalue())

    def test_leading_whitespace_dropped_on_empty_buffer(self):
        f = TextFilter()
        buf = OutputBuffer()
        f.append(buf, "\n   text")
        self.assertEqual(buf.getvalue(), "text")

    def test_whitespace_collisions_disabled(self):
        f = TextFilter(whitespace_collisions=False)
        buf = filled_buffer("Hello ")
        f.append(buf, " world")
        self.assertEqual(buf.getvalue(), "Hello  world")

    def test_chunk_empty_after_normalization_is_noop(self):
        f = TextFilter(rules=[r'\s+', ''])
        buf = filled_buffer("x")
        f.append(buf, "  \n ")
        self.assertEqual(buf.getvalue(), "x")

    def test_split_declined_joins_words(self):
        decision = Mock()
        decision.decide.return_value = False
        f = TextFilter(split_decision=decision)
        buf = filled_buffer("the cur")
        self.assertTrue(f.append(buf, "rent value", split_mark="linebreak"))
        decision.decide.assert_called_once_with("cur", "rent", "linebreak")
        self.assertEqual(buf.getvalue(), "the current value")

    def test_split_accepted_inserts_space(self):
        decision = Mock()
        decision.decide.return_value = True
        f = TextFilter(split_decision=decision)
        buf = filled_buffer("the cur")
        f.append(buf, "rent value", split_mark="linebreak")
        decision.decide.assert_called_once_with("cur", "rent", "linebreak")
        self.assertEqual(buf.getvalue(), "the cur rent value")

    def test_split_not_consulted_when_chunk_starts_with_space(self):
        decision = Mock()
        f = TextFilter(split_decision=decision)
        buf = filled_buffer("cur")
        self.assertTrue(f.append(buf, " rent", split_mark="lb"))
        decision.decide.assert_not_called()
        self.assertEqual(buf.getvalue(), "cur rent")

    def test_empty_chunk_does_not_consume_mark(self):
        decision = Mock()
        f = TextFilter(split_decision=decision)
        buf = filled_buffer("cur")
        self.assertFalse(f.append(buf, "", split_mark="pb"))
        decision.decide.assert_not_called()
        self.assertEqual(buf.getvalue(), "cur")

    def test_split_without_decision_just_appends(self):
        f = TextFilter()
        buf = filled_buffer("cur")
        f.append(buf, "rent", split_mark="lb")
        self.assertEqual(buf.getvalue(), "current")

    def test_no_mark_no_decision(self):
        decision = Mock()
        f = TextFilter(split_decision=decision)
        buf = filled_buffer("cur")
        f.append(buf, "rent")
        decision.decide.assert_not_called()
        self.assertEqual(buf.getvalue(), "current")

    def test_callable_decision(self):
        calls = []

        def decide(pre, post, mark):
            calls.append((pre, post, mark))
            return mark == "pb"

        f = TextFilter(split_decision=decide)
        buf = filled_buffer("a")
        f.append(buf, "b", split_mark="pb")
        f.append(buf, "c", split_mark="lb")
        self.assertEqual(buf.getvalue(), "a bc")
        self.assertEqual(calls, [("a", "b", "pb"), ("b", "c", "lb")])

    def test_filter_keeps_no_per_document_state(self):
        f = TextFilter(split_decision=AlwaysSplit())
        first, second = filled_buffer("cur"), filled_buffer("ex")
        f.append(first, "rent", split_mark="lb")
        f.append(second, "tract")
        self.assertEqual(first.getvalue(), "cur rent")
        self.assertEqual(second.getvalue(), "extract")


class TestSplitPolicies(unittest.TestCase):

    def test_fixed_policies(self):
        self.assertFalse(NeverSplit().decide("cur", "rent", "lb"))
        self.assertTrue(AlwaysSplit().decide("cur", "rent", "lb"))

    def test_lexicon(self):
        lexicon = LexiconSplit(["Current", "document", ""])
        self.assertFalse(lexicon.decide("cur", "rent", "lb"))
        self.assertFalse(lexicon.decide("(docu", "ment),", "pb"))
        self.assertTrue(lexicon.decide("ex", "tract", "lb"))

    def test_lexicon_case_sensitive(self):
        lexicon = LexiconSplit(["Current"], case_sensitive=True)
        self.assertTrue(lexicon.decide("cur", "rent", "lb"))
        self.assertFalse(lexicon.decide("Cur", "rent", "lb"))


if __name__ == '__main__':
    unittest.main()
