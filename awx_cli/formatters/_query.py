"""A small path filter for --query (``.items[0].id``, ``.items[].status``)."""

import re

from awx_cli.exceptions import CliError

_STEP_RE = re.compile(r'\.([A-Za-z_][\w-]*)|\."([^"]*)"|\[(-?\d+)?\]|\.(?=\[)')


def parse_query(expr):
    expr = (expr or "").strip()
    if expr in ("", "."):
        return []
    if not expr.startswith(".") and not expr.startswith("["):
        raise CliError(f"[ERROR] invalid --query {expr!r}: must start with '.'")
    steps = []
    pos = 0
    while pos < len(expr):
        m = _STEP_RE.match(expr, pos)
        if not m or m.end() == pos:
            raise CliError(f"[ERROR] invalid --query {expr!r} at position {pos}")
        name, quoted, index = m.group(1), m.group(2), m.group(3)
        if name is not None:
            steps.append(("key", name))
        elif quoted is not None:
            steps.append(("key", quoted))
        elif m.group(0).startswith("["):
            steps.append(("iter", None) if index is None else ("index", int(index)))
        pos = m.end()
    return steps


def apply_query(expr, data):
    """Evaluate *expr* against *data*, returning the list of results."""
    results = [data]
    for kind, arg in parse_query(expr):
        nxt = []
        for value in results:
            if kind == "key":
                if value is None:
                    nxt.append(None)
                elif isinstance(value, dict):
                    nxt.append(value.get(arg))
                else:
                    raise CliError(f"[ERROR] --query: cannot index {type(value).__name__} with {arg!r}")
            elif kind == "index":
                if not isinstance(value, list):
                    raise CliError(f"[ERROR] --query: cannot index {type(value).__name__} with [{arg}]")
                nxt.append(value[arg] if -len(value) <= arg < len(value) else None)
            else:
                if isinstance(value, dict):
                    nxt.extend(value.values())
                elif isinstance(value, list):
                    nxt.extend(value)
                else:
                    raise CliError(f"[ERROR] --query: cannot iterate over {type(value).__name__}")
        results = nxt
    return results
