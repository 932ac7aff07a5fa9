"""
Dispatcher behavioral tests (selection, splitting, coercion, invocation, faults).

Scope
- Validate task selection: default task, aliases, unmatched names, dynamic fallback.
- Validate option splitting: spaced and inline values, short aliases, '--', flags.
- Validate coercion: numeric values, defaults, required options, omitted options.
- Validate faults raised to the caller and the shell front-end of Script.start.

Conventions
- Test method names follow CamelCase per project convention.
- Core tests build definitions with Builder; handlers receive (args, options).
"""

from __future__ import annotations

import contextlib
import io
import unittest
import warnings
from unittest import TestCase

from thorn import (
    AmbiguousAliasError,
    Builder,
    Definition,
    Dispatcher,
    FaultCode,
    Invocation,
    InvalidOptionValueError,
    MissingRequiredOptionError,
    Script,
    TaskNotFoundError,
    UnknownOptionWarning,
    desc,
    map_aliases,
    method_options,
    option,
    tokenize,
)


def handler(args, options):
    return list(args), options


def zoo():
    definition = Definition("Zoo")
    definition.default = "zoo"
    map_aliases(definition, {"-T": "animal", "-x": "missing"})
    builder = Builder(definition)
    builder.desc("zoo").method_options(force=option("boolean", "-f"), times="numeric")
    builder.declare("zoo", handler)
    builder.desc("animal TYPE").method_options(other="optional", level=option("string", default="info"))
    builder.declare("animal", handler)
    builder.desc("feed FOOD").method_options(keeper="required")
    builder.declare("feed", handler)
    return definition


class TestSelection(TestCase):
    """Behavioral tests for task selection."""

    def testEmptyArgvRunsDefaultTask(self):
        self.assertEqual(Dispatcher(zoo()).dispatch([]), ([], {}))

    def testAliasSelectsTask(self):
        self.assertEqual(Dispatcher(zoo()).dispatch(["-T", "fish"]), (["fish"], {"level": "info"}))

    def testAliasToMissingTask(self):
        with self.assertRaises(AmbiguousAliasError) as context:
            Dispatcher(zoo()).dispatch(["-x"])
        self.assertEqual(context.exception.options["target"], "missing")
        self.assertIs(context.exception.code, FaultCode.AMBIGUOUS_ALIAS)

    def testUnknownTaskWithoutDynamicHandler(self):
        with self.assertRaises(TaskNotFoundError) as context:
            Dispatcher(zoo()).dispatch(["zooo"])
        self.assertIn("did you mean 'zoo'", context.exception.options["hint"])

    def testUnknownTaskRoutedToDynamicHandler(self):
        calls = []
        dispatcher = Dispatcher(zoo(), dynamic=lambda *call: calls.append(call) or "dynamic")
        self.assertEqual(dispatcher.dispatch(["fly", "--high", "away"]), "dynamic")
        self.assertEqual(calls, [("fly", ("--high", "away"), {})])

    def testDynamicHandlerMustBeCallable(self):
        with self.assertRaises(TypeError):
            Dispatcher(zoo(), dynamic="fly")


class TestSplit(TestCase):
    """Behavioral tests for argument and option splitting."""

    def testSpacedAndInlineValues(self):
        dispatcher = Dispatcher(zoo())
        self.assertEqual(dispatcher.dispatch(["zoo", "--times", "2"]), ([], {"times": 2}))
        self.assertEqual(dispatcher.dispatch(["zoo", "--times=2.5"]), ([], {"times": 2.5}))

    def testShortAliasForOption(self):
        self.assertEqual(Dispatcher(zoo()).dispatch(["zoo", "-f"]), ([], {"force": True}))

    def testPositionalsKeepOrder(self):
        args, options = Dispatcher(zoo()).dispatch(["animal", "bird", "--other", "tweets", "fish"])
        self.assertEqual(args, ["bird", "fish"])
        self.assertEqual(options, {"other": "tweets", "level": "info"})

    def testTerminatorEndsOptions(self):
        args, options = Dispatcher(zoo()).dispatch(["zoo", "--", "--force", "-f"])
        self.assertEqual(args, ["--force", "-f"])
        self.assertEqual(options, {})

    def testLastRepeatedValueWins(self):
        self.assertEqual(Dispatcher(zoo()).dispatch(["zoo", "--times", "1", "--times", "3"]), ([], {"times": 3}))

    def testNegativeNumbersAreValues(self):
        self.assertEqual(Dispatcher(zoo()).dispatch(["zoo", "--times", "-1"]), ([], {"times": -1}))

    def testUnknownSwitchWarnsAndStaysPositional(self):
        with self.assertWarns(UnknownOptionWarning) as context:
            args, options = Dispatcher(zoo()).dispatch(["zoo", "--forse"])
        self.assertEqual(args, ["--forse"])
        self.assertEqual(context.warning.options["suggestions"], ["--force"])

    def testFlagRejectsInlineValue(self):
        with self.assertRaises(InvalidOptionValueError) as context:
            Dispatcher(zoo()).dispatch(["zoo", "--force=yes"])
        self.assertEqual(context.exception.options["index"], 2)

    def testValueOptionNeedsValue(self):
        with self.assertRaises(InvalidOptionValueError) as context:
            Dispatcher(zoo()).dispatch(["zoo", "--times"])
        self.assertIn("expects a value", context.exception.message)


class TestCoercion(TestCase):
    """Behavioral tests for option coercion and required options."""

    def testNonNumericValueRejected(self):
        with self.assertRaises(InvalidOptionValueError) as context:
            Dispatcher(zoo()).dispatch(["zoo", "--times", "many"])
        self.assertIn("at second position", context.exception.message)
        self.assertEqual(context.exception.options["task"], "zoo")

    def testMissingRequiredOption(self):
        with self.assertRaises(MissingRequiredOptionError) as context:
            Dispatcher(zoo()).dispatch(["feed", "fish"])
        self.assertEqual(context.exception.options["input"], "--keeper")

    def testRequiredOptionGiven(self):
        self.assertEqual(Dispatcher(zoo()).dispatch("feed fish --keeper 'Ana Lee'"), (["fish"], {"keeper": "Ana Lee"}))


class TestParse(TestCase):
    """Behavioral tests for parse() and tokenize()."""

    def testParseDoesNotInvoke(self):
        called = []
        definition = Definition("Quiet")
        Builder(definition).declare("zoo", lambda *call: called.append(call))
        invocation = Dispatcher(definition).parse(["zoo", "fish"])
        self.assertIsInstance(invocation, Invocation)
        self.assertEqual(invocation.task.name, "zoo")
        self.assertEqual(invocation.args, ("fish",))
        self.assertEqual(called, [])

    def testTokenize(self):
        self.assertEqual(tokenize("animal 'big bird' --force"), ["animal", "big bird", "--force"])
        self.assertEqual(tokenize(("zoo",)), ["zoo"])
        with self.assertRaises(TypeError):
            tokenize(["zoo", 1])
        with self.assertRaises(TypeError):
            tokenize(42)


class Kennel(Script):
    default_task = "bark"

    @desc("bark [TIMES]", "bark at the mailman")
    @method_options(loud="boolean", name="required")
    def bark(self, times="1"):
        return [times, self.options]

    def __dynamic__(self, name, *args):
        return [name, *args]


class TestScript(TestCase):
    """Behavioral tests for script-level dispatch."""

    def testMethodGetsArgumentsAndOptions(self):
        self.assertEqual(Kennel.start(["bark", "3", "--loud", "--name", "rex"]), ["3", {"loud": True, "name": "rex"}])

    def testDynamicMethod(self):
        self.assertEqual(Kennel.start(["howl", "twice"]), ["howl", "twice"])

    def testFaultsRaiseByDefault(self):
        with self.assertRaises(MissingRequiredOptionError):
            Kennel.start(["bark"])

    def testShellPrintsAndExits(self):
        buffer = io.StringIO()
        with contextlib.redirect_stderr(buffer), self.assertRaises(SystemExit) as context:
            Kennel.start(["bark"], shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)
        output = buffer.getvalue()
        self.assertIn("bark [TIMES] [--loud] --name=NAME", output)
        self.assertIn("task 'bark' requires option '--name'", output)

    def testShellPrintsWarningsWithoutRaising(self):
        buffer = io.StringIO()
        with contextlib.redirect_stderr(buffer), warnings.catch_warnings():
            warnings.simplefilter("error")
            result = Kennel.start(["bark", "--name", "rex", "--quiet"], shell=True, colorful=False)
        self.assertEqual(result, ["--quiet", {"name": "rex"}])
        self.assertIn("unknown option '--quiet'", buffer.getvalue())


if __name__ == "__main__":
    unittest.main()
