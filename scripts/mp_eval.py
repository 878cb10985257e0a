"""Evaluate or sample a single-variable expression from the command line."""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path

from mp_jax import Engine, MPError, Mode, disassemble, format_tokens, format_tree, parse, tokenize


def _parse_binding(text: str) -> tuple[str, float]:
    name, sep, raw = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    try:
        return name.strip(), float(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid value in {text!r}") from exc


def _parse_range(text: str) -> tuple[float, float]:
    start, sep, end = text.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected START:END, got {text!r}")
    try:
        lo, hi = float(start), float(end)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid range {text!r}") from exc
    if hi < lo:
        raise argparse.ArgumentTypeError(f"range end {hi} is below start {lo}")
    return lo, hi


def _json_number(value: float) -> float | str:
    if math.isnan(value) or math.isinf(value):
        return repr(value)
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("expression", help="expression in x, e.g. 'sin(x)*2'")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in Mode],
        default=Mode.INTERPRET.value,
        help="execution strategy",
    )
    parser.add_argument(
        "--var",
        action="append",
        type=_parse_binding,
        default=[],
        metavar="NAME=VALUE",
        help="bind a variable before evaluating (repeatable)",
    )
    parser.add_argument("--tokens", action="store_true", help="print the token list")
    parser.add_argument("--tree", action="store_true", help="print the parse tree")
    parser.add_argument("--program", action="store_true", help="print the compiled bytecode (compile mode)")
    parser.add_argument("--sample", type=_parse_range, default=None, metavar="START:END", help="sample x across a range")
    parser.add_argument("--resolution", type=float, default=0.008, help="x step used with --sample")
    parser.add_argument("--capacity", type=int, default=8 * 1024, help="maximum samples kept with --sample")
    parser.add_argument("--json-out", default="", help="optional output JSON")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        if args.tokens:
            print(format_tokens(tokenize(args.expression)))
        if args.tree:
            print(format_tree(parse(args.expression).root))
        engine = Engine.from_source(args.expression, Mode(args.mode))
    except MPError as err:
        print(f"ERROR: Could not compile expression: {err}", file=sys.stderr)
        return 1

    with engine:
        if args.program and engine.program is not None:
            print(disassemble(engine.program))

        try:
            for name, value in args.var:
                engine.bind(name, value)
        except MPError as err:
            print(f"ERROR: {err}", file=sys.stderr)
            return 1

        status = 0
        payload: dict[str, object] = {"expression": args.expression, "mode": engine.mode.value}
        if args.sample is None:
            result = engine.evaluate()
            if result.error:
                reason = result.kind.message if result.kind is not None else "evaluation failed"
                print(f"ERROR: {reason}", file=sys.stderr)
                status = 1
            else:
                print(repr(result.value))
            payload["value"] = _json_number(result.value)
            payload["error"] = result.error
            payload["kind"] = None if result.kind is None else result.kind.value
        else:
            start, end = args.sample
            samples = engine.sample(start, end, resolution=args.resolution, capacity=args.capacity)
            for point in samples:
                y = "error" if point.error else repr(point.y)
                print(f"{point.x!r}\t{y}")
            payload["samples"] = [
                {"x": point.x, "y": _json_number(point.y), "error": point.error} for point in samples
            ]

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote JSON: {outpath}")
    return status


if __name__ == "__main__":
    raise SystemExit(main())
