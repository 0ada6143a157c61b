"""Benchmarked items.

An ``Entry`` pairs a label with an action that can be invoked a given
number of times in one tight batch.  Two kinds of action exist:

- ``CallableAction`` wraps a Python callable.  A callable that accepts a
  positional argument is handed the batch size and is expected to loop
  itself; a no-argument callable is called once per cycle.
- ``SourceAction`` compiles a source string into a looping function once,
  at registration time, in the same way ``timeit`` builds its inner loop.
"""

from __future__ import annotations

import inspect
import textwrap
from dataclasses import dataclass, field
from typing import Any, Callable

from ipsbench.config import ConfigurationError

_LOOP_TEMPLATE = """
def call_times(_ips_total):
    for _ips_i in range(_ips_total):
{body}
"""


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


def _accepts_batch_size(func: Callable[..., Any]) -> bool:
    """True if *func* takes at least one positional parameter."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures are called plainly.
        return False
    for param in sig.parameters.values():
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            if param.default is param.empty:
                return True
        elif param.kind is param.VAR_POSITIONAL:
            return False
    return False


class CallableAction:
    """Action backed by a function reference."""

    def __init__(self, func: Callable[..., Any]) -> None:
        if not callable(func):
            raise ConfigurationError(
                f"Invalid action {func!r}: must be callable or a source string."
            )
        self.func = func
        self.takes_batch_size = _accepts_batch_size(func)

    def call_times(self, times: int) -> None:
        if self.takes_batch_size:
            self.func(times)
            return
        func = self.func
        for _ in range(times):
            func()


class SourceAction:
    """Action compiled from Python source once, at registration time."""

    def __init__(
        self,
        source: str,
        *,
        setup: str = "",
        namespace: dict[str, Any] | None = None,
        label: str = "",
    ) -> None:
        self.source = source
        self.setup = setup
        body = textwrap.indent(textwrap.dedent(source).strip() or "pass", " " * 8)
        code_text = _LOOP_TEMPLATE.format(body=body)
        filename = f"<ipsbench:{label or 'source'}>"
        try:
            code = compile(code_text, filename, "exec")
            setup_code = compile(textwrap.dedent(setup), f"{filename}:setup", "exec")
        except SyntaxError as exc:
            raise ConfigurationError(
                f"Cannot compile code for entry '{label}': {exc.msg} (line {exc.lineno})"
            ) from exc

        ns: dict[str, Any] = dict(namespace or {})
        exec(setup_code, ns)  # noqa: S102
        exec(code, ns)  # noqa: S102
        self._call_times: Callable[[int], None] = ns["call_times"]

    def call_times(self, times: int) -> None:
        self._call_times(times)


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Entry:
    """A labelled unit of work."""

    label: str
    action: CallableAction | SourceAction = field(compare=False)

    def call_times(self, times: int) -> None:
        """Run the action *times* times in one batch."""
        self.action.call_times(times)


def make_entry(
    label: str,
    code: str | None = None,
    func: Callable[..., Any] | None = None,
    *,
    setup: str = "",
    namespace: dict[str, Any] | None = None,
) -> Entry:
    """Build an Entry from exactly one of *code* or *func*.

    Raises:
        ConfigurationError: If both or neither are given, if *func* is not
            callable, or if *code* does not compile.
    """
    if code is not None and func is not None:
        raise ConfigurationError(
            f"Entry '{label}': specify a callable or a code string, but not both."
        )
    if code is None and func is None:
        raise ConfigurationError(f"Entry '{label}': no callable or code string given.")

    action: CallableAction | SourceAction
    if code is not None:
        action = SourceAction(code, setup=setup, namespace=namespace, label=label)
    else:
        action = CallableAction(func)  # type: ignore[arg-type]
    return Entry(label=label, action=action)
