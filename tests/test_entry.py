"""Tests for ipsbench.entry: benchmarked items and their actions."""

from __future__ import annotations

import unittest

from ipsbench.config import ConfigurationError
from ipsbench.entry import CallableAction, Entry, SourceAction, make_entry


class TestCallableAction(unittest.TestCase):
    def test_no_arg_callable_called_per_cycle(self) -> None:
        calls: list[int] = []
        action = CallableAction(lambda: calls.append(1))
        self.assertFalse(action.takes_batch_size)
        action.call_times(7)
        self.assertEqual(len(calls), 7)

    def test_batch_callable_receives_count(self) -> None:
        received: list[int] = []
        action = CallableAction(lambda n: received.append(n))
        self.assertTrue(action.takes_batch_size)
        action.call_times(42)
        self.assertEqual(received, [42])

    def test_defaulted_parameter_is_not_batch_size(self) -> None:
        calls: list[int] = []

        def func(x: int = 0) -> None:
            calls.append(x)

        action = CallableAction(func)
        self.assertFalse(action.takes_batch_size)
        action.call_times(3)
        self.assertEqual(calls, [0, 0, 0])

    def test_bound_method_without_args(self) -> None:
        class Counter:
            def __init__(self) -> None:
                self.n = 0

            def bump(self) -> None:
                self.n += 1

        c = Counter()
        CallableAction(c.bump).call_times(4)
        self.assertEqual(c.n, 4)

    def test_builtin_without_signature(self) -> None:
        # Must not raise even where introspection is unavailable.
        CallableAction(dict).call_times(2)

    def test_not_callable(self) -> None:
        with self.assertRaises(ConfigurationError):
            CallableAction(42)  # type: ignore[arg-type]


class TestSourceAction(unittest.TestCase):
    def test_runs_code_times(self) -> None:
        hits: list[int] = []
        action = SourceAction("hits.append(1)", namespace={"hits": hits})
        action.call_times(5)
        self.assertEqual(len(hits), 5)

    def test_setup_runs_once_in_same_namespace(self) -> None:
        log: list[str] = []
        action = SourceAction(
            "data.append(len(data))",
            setup="log.append('setup')\ndata = []",
            namespace={"log": log},
        )
        action.call_times(3)
        action.call_times(2)
        self.assertEqual(log, ["setup"])

    def test_multiline_code(self) -> None:
        out: list[int] = []
        code = """
        total = 0
        for x in range(4):
            total += x
        out.append(total)
        """
        SourceAction(code, namespace={"out": out}).call_times(2)
        self.assertEqual(out, [6, 6])

    def test_empty_code_is_a_no_op(self) -> None:
        SourceAction("").call_times(3)

    def test_syntax_error(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            SourceAction("x = = 1", label="broken")
        self.assertIn("broken", str(ctx.exception))

    def test_setup_syntax_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            SourceAction("pass", setup="import")


class TestMakeEntry(unittest.TestCase):
    def test_from_callable(self) -> None:
        e = make_entry("f", func=lambda: None)
        self.assertIsInstance(e, Entry)
        self.assertEqual(e.label, "f")
        self.assertIsInstance(e.action, CallableAction)

    def test_from_code(self) -> None:
        e = make_entry("c", "1 + 1")
        self.assertIsInstance(e.action, SourceAction)

    def test_both_given(self) -> None:
        with self.assertRaises(ConfigurationError):
            make_entry("x", "pass", lambda: None)

    def test_neither_given(self) -> None:
        with self.assertRaises(ConfigurationError):
            make_entry("x")

    def test_entry_call_times_delegates(self) -> None:
        received: list[int] = []
        e = make_entry("b", func=lambda n: received.append(n))
        e.call_times(9)
        self.assertEqual(received, [9])


if __name__ == "__main__":
    unittest.main()
