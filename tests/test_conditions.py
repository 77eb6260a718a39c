import unittest
import os
import sys

# Add src directory to path for package import
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from exim2sieve import conditions
from exim2sieve.conditions import FieldKind
from exim2sieve.model import Rule


class TestGlob(unittest.TestCase):

    def test_anchors(self):
        self.assertEqual(conditions.simple_regex_to_glob('^Suspended:'), 'Suspended:*')
        self.assertEqual(conditions.simple_regex_to_glob('^Suspended:$'), 'Suspended:')
        self.assertEqual(conditions.simple_regex_to_glob('Suspended:$'), '*Suspended:')

    def test_rejected(self):
        self.assertIsNone(conditions.simple_regex_to_glob('Sus*ended'))
        self.assertIsNone(conditions.simple_regex_to_glob('^foo.bar'))
        self.assertIsNone(conditions.simple_regex_to_glob('(a|b)$'))
        self.assertIsNone(conditions.simple_regex_to_glob('plain'))
        self.assertIsNone(conditions.simple_regex_to_glob(''))
        self.assertIsNone(conditions.simple_regex_to_glob('^$'))


class TestFieldMapping(unittest.TestCase):

    def test_known_parts(self):
        self.assertEqual(conditions.map_part('$header_from:').headers, ('From',))
        self.assertEqual(conditions.map_part('$header_from:').kind, FieldKind.ADDRESS)
        self.assertEqual(conditions.map_part('$h_to:').headers, ('To',))
        self.assertEqual(conditions.map_part('$header_subject:').kind, FieldKind.HEADER)
        self.assertEqual(conditions.map_part('any_recipient').headers, ('To', 'Cc', 'Bcc'))
        self.assertEqual(conditions.map_part('$header_reply-to:').headers, ('Reply-To',))
        self.assertEqual(conditions.map_part('$message_body').kind, FieldKind.BODY)
        self.assertEqual(conditions.map_part('body').kind, FieldKind.BODY)
        self.assertEqual(len(conditions.map_part('any_header').headers), 6)

    def test_unknown_part_is_header(self):
        field = conditions.map_part('$header_x-spam-status:')
        self.assertEqual(field.kind, FieldKind.HEADER)
        self.assertEqual(field.headers, ('X-Spam-Status',))

    def test_empty_part_defaults_to_subject(self):
        self.assertEqual(conditions.map_part('$header_:').headers, ('Subject',))
        self.assertEqual(conditions.map_part('').headers, ('Subject',))

    def test_header_expr(self):
        self.assertEqual(conditions.map_part('from').header_expr(), '"From"')
        self.assertEqual(conditions.map_part('any_recipient').header_expr(), '["To", "Cc", "Bcc"]')


class TestMatchMapping(unittest.TestCase):

    def test_table(self):
        self.assertEqual(conditions.map_match('contains', 'x'), (':contains', False, 'x'))
        self.assertEqual(conditions.map_match('does not contain', 'x'), (':contains', True, 'x'))
        self.assertEqual(conditions.map_match('does not contains', 'x'), (':contains', True, 'x'))
        self.assertEqual(conditions.map_match('equals', 'x'), (':is', False, 'x'))
        self.assertEqual(conditions.map_match('is not', 'x'), (':is', True, 'x'))
        self.assertEqual(conditions.map_match('begins with', 'x'), (':matches', False, 'x*'))
        self.assertEqual(conditions.map_match('does not begin', 'x'), (':matches', True, 'x*'))
        self.assertEqual(conditions.map_match('ends', 'x'), (':matches', False, '*x'))
        self.assertEqual(conditions.map_match('does not end with', 'x'), (':matches', True, '*x'))

    def test_unmapped(self):
        self.assertIsNone(conditions.map_match('contains', ''))
        self.assertIsNone(conditions.map_match('resembles', 'x'))

    def test_wildcards_in_value_are_literal(self):
        self.assertEqual(conditions.map_match('begins', 'a*b'), (':matches', False, 'a\\*b*'))


class TestCompileCondition(unittest.TestCase):

    def test_address_is(self):
        cond, body = conditions.compile_condition(Rule('$header_from:', 'is', 'a@b.com'))
        self.assertEqual(cond, 'address :is "From" "a@b.com"')
        self.assertFalse(body)

    def test_from_contains_uses_header_test(self):
        cond, _ = conditions.compile_condition(Rule('$header_from:', 'contains', 'foo'))
        self.assertEqual(cond, 'header :contains "From" "foo"')

    def test_negated(self):
        cond, _ = conditions.compile_condition(Rule('$header_subject:', 'does not begin', 'WHMCS'))
        self.assertEqual(cond, 'not (header :matches "Subject" "WHMCS*")')

    def test_body(self):
        cond, body = conditions.compile_condition(Rule('$message_body', 'does not contain', 'x'))
        self.assertEqual(cond, 'not (body :contains "x")')
        self.assertTrue(body)

    def test_multi_header(self):
        cond, _ = conditions.compile_condition(Rule('any_recipient', 'is', 'a@b.com'))
        self.assertEqual(cond, 'address :is ["To", "Cc", "Bcc"] "a@b.com"')

    def test_matches_glob(self):
        cond, body = conditions.compile_condition(Rule('$header_subject:', 'matches', '^Suspended:'))
        self.assertEqual(cond, 'header :matches "Subject" "Suspended:*"')
        self.assertFalse(body)
        cond, body = conditions.compile_condition(Rule('$message_body', 'matches', 'bye$'))
        self.assertEqual(cond, 'body :matches "*bye"')
        self.assertTrue(body)

    def test_matches_not_globbable_is_false(self):
        cond, body = conditions.compile_condition(Rule('$header_subject:', 'matches', '^[0-9]+$'))
        self.assertTrue(cond.startswith('false /*'))
        self.assertTrue(cond.endswith('*/'))
        self.assertFalse(body)

    def test_regex_is_false(self):
        cond, _ = conditions.compile_condition(Rule('$header_subject:', 'matches_regex', 'a.*b'))
        self.assertTrue(cond.startswith('false /*'))
        self.assertIn('$header_subject:', cond)
        cond, _ = conditions.compile_condition(Rule('$header_subject:', 'does not match', 'x'))
        self.assertTrue(cond.startswith('false /*'))

    def test_unknown_operator_is_true(self):
        cond, _ = conditions.compile_condition(Rule('$header_subject:', 'resembles', 'x'))
        self.assertTrue(cond.startswith('true /*'))
        cond, _ = conditions.compile_condition(Rule('$header_subject:', 'contains', ''))
        self.assertTrue(cond.startswith('true /*'))

    def test_comment_cannot_be_closed_by_value(self):
        cond, _ = conditions.compile_condition(Rule('$header_subject:', 'matches_regex', 'a*/b'))
        self.assertEqual(cond.count('*/'), 1)

    def test_quoting(self):
        cond, _ = conditions.compile_condition(Rule('$header_subject:', 'contains', 'Say "Hi" \\o/'))
        self.assertEqual(cond, 'header :contains "Subject" "Say \\"Hi\\" \\\\o/"')

    def test_operator_case_insensitive(self):
        cond, _ = conditions.compile_condition(Rule('$HEADER_SUBJECT:', 'Contains', 'x'))
        self.assertEqual(cond, 'header :contains "Subject" "x"')


class TestCompileConditions(unittest.TestCase):

    def test_single_rule_is_not_wrapped(self):
        cond, _ = conditions.compile_conditions([Rule('$header_subject:', 'contains', 'x')])
        self.assertEqual(cond, 'header :contains "Subject" "x"')

    def test_mixed_join_collapses_to_anyof(self):
        rules = [
            Rule('$header_subject:', 'contains', 'a', opt='or'),
            Rule('$header_from:', 'is', 'b@c.d', opt='and'),
        ]
        cond, _ = conditions.compile_conditions(rules)
        self.assertTrue(cond.startswith('anyof ('))
        self.assertNotIn('allof', cond)

    def test_all_and_gives_allof(self):
        rules = [
            Rule('$header_subject:', 'contains', 'a', opt='and'),
            Rule('$header_to:', 'contains', 'b', opt='and'),
        ]
        cond, _ = conditions.compile_conditions(rules)
        self.assertEqual(cond, 'allof (\n'
                               '    header :contains "Subject" "a",\n'
                               '    header :contains "To" "b"\n'
                               ')')

    def test_empty_opt_counts_as_or(self):
        rules = [Rule('subject', 'contains', 'a', opt=''), Rule('subject', 'contains', 'b', opt='and')]
        cond, _ = conditions.compile_conditions(rules)
        self.assertTrue(cond.startswith('anyof'))

    def test_body_flag_from_any_rule(self):
        rules = [Rule('subject', 'contains', 'a'), Rule('body', 'contains', 'b')]
        cond, body = conditions.compile_conditions(rules)
        self.assertTrue(body)
        self.assertIn('body :contains "b"', cond)
        # no trailing comma before the closing paren
        self.assertNotIn(',\n)', cond)


if __name__ == '__main__':
    unittest.main()
