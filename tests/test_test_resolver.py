import unittest

from support import sample_environment

from evalshell.errors import ConfigError
# aliased so pytest does not collect the Test* classes
from evalshell.runtime.model import Describe, Environment, Package
from evalshell.runtime.model import Test as Case
from evalshell.testing.resolver import TestSelectionSpec as SelectionSpec
from evalshell.testing.resolver import find_base_scope, resolve, select_tests


def _names(tests):
    return [t.name for t in tests]


class TestSelectionSpecTests(unittest.TestCase):
    def test_filter_and_scoped_options_are_exclusive(self):
        for kwargs in ({"file": "a.wtest"}, {"describe": "d"}, {"test": "t"}):
            spec = SelectionSpec(filter="sum", **kwargs)
            with self.subTest(kwargs=kwargs), self.assertRaises(ConfigError) as cm:
                spec.validate()
            self.assertIn("You should either use filter by full name or file/describe/test.", str(cm.exception))

    def test_describe_match(self):
        self.assertEqual(SelectionSpec().describe_match(), "")
        self.assertEqual(SelectionSpec(filter="sum").describe_match(), "matching 'sum'")
        self.assertEqual(
            SelectionSpec(file="a.wtest", test="t1").describe_match(),
            "matching 'a.wtest'.*.'t1'",
        )


class TestResolve(unittest.TestCase):
    def setUp(self):
        self.env = sample_environment()

    def test_no_filters_selects_every_test_in_declaration_order(self):
        self.assertEqual(
            _names(resolve(self.env, SelectionSpec())),
            ['"testSum"', '"testSub"', '"testSumNeg"', '"concat"', '"upper works"'],
        )

    def test_free_text_filter_matches_fqn_substring(self):
        self.assertEqual(
            _names(resolve(self.env, SelectionSpec(filter="sum"))),
            ['"testSum"', '"testSumNeg"'],
        )

    def test_free_text_filter_ignores_quotes(self):
        tests = resolve(self.env, SelectionSpec(filter='"upper"."upper works"'))
        self.assertEqual(_names(tests), ['"upper works"'])

    def test_file_scope(self):
        tests = resolve(self.env, SelectionSpec(file="tests/strings.wtest"))
        self.assertEqual(_names(tests), ['"concat"', '"upper works"'])

    def test_missing_file_is_a_miss_not_an_error(self):
        selection = select_tests(self.env, SelectionSpec(file="nope.wtest"))
        self.assertEqual(selection.tests, [])
        self.assertEqual(selection.miss, "File 'nope.wtest' not found")

    def test_missing_describe_is_a_miss(self):
        selection = select_tests(self.env, SelectionSpec(file="tests/strings.wtest", describe="arithmetic"))
        self.assertEqual(selection.tests, [])
        self.assertEqual(selection.miss, "Describe 'arithmetic' not found")

    def test_describe_and_test_name(self):
        tests = resolve(self.env, SelectionSpec(describe="arithmetic", test="testSub"))
        self.assertEqual(_names(tests), ['"testSub"'])
        self.assertEqual(tests[0].fully_qualified_name, 'tests.arithmetic."arithmetic"."testSub"')

    def test_test_name_is_an_exact_match(self):
        self.assertEqual(resolve(self.env, SelectionSpec(test="testSu")), [])

    def test_only_test_wins_over_everything(self):
        env = Environment(
            children=[
                Package(
                    "a",
                    [Describe('"d"', [Case('"t1"'), Case('"t2"', is_only=True), Case('"t3"')])],
                    file_name="a.wtest",
                )
            ]
        )
        self.assertEqual(_names(resolve(env, SelectionSpec(file="a.wtest"))), ['"t2"'])
        self.assertEqual(_names(resolve(env, SelectionSpec(filter="t1"))), ['"t2"'])

    def test_only_test_outside_scope_is_ignored(self):
        env = sample_environment()
        strings = env.get_node_by_fqn("tests.strings")
        strings.add_child(Case('"solo"', is_only=True))
        tests = resolve(env, SelectionSpec(file="tests/arithmetic.wtest"))
        self.assertEqual(len(tests), 3)

    def test_filter_scope_is_whole_environment(self):
        resolution = find_base_scope(self.env, SelectionSpec(filter="x"))
        self.assertIs(resolution.scope, self.env)
        self.assertIsNone(resolution.miss)

    def test_resolving_has_no_side_effects(self):
        spec = SelectionSpec(filter="sum")
        self.assertEqual(resolve(self.env, spec), resolve(self.env, spec))


if __name__ == "__main__":
    unittest.main()
