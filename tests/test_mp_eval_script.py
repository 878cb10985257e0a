from __future__ import annotations

import contextlib
import importlib.util
import io
import json
import tempfile
import unittest
from pathlib import Path

JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


def _load_mp_eval_module():
    repo_root = Path(__file__).resolve().parents[1]
    path = repo_root / "scripts" / "mp_eval.py"
    spec = importlib.util.spec_from_file_location("mp_eval", path)
    if spec is None or spec.loader is None:
        raise RuntimeError(f"Unable to load module spec from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for CLI tests")
class MpEvalScriptTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.mod = _load_mp_eval_module()

    def _main(self, *argv: str) -> tuple[int, str, str]:
        out = io.StringIO()
        err = io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            status = self.mod.main(list(argv))
        return status, out.getvalue(), err.getvalue()

    def test_evaluates_expression(self) -> None:
        status, out, _ = self._main("2+3*4")
        self.assertEqual(status, 0)
        self.assertEqual(out.strip(), "14.0")

    def test_binds_variables_in_both_modes(self) -> None:
        for mode in ("interpret", "compile"):
            with self.subTest(mode=mode):
                status, out, _ = self._main("x*y", "--mode", mode, "--var", "x=3", "--var", "y=0.5")
                self.assertEqual(status, 0)
                self.assertEqual(out.strip(), "1.5")

    def test_compile_failure_exits_nonzero(self) -> None:
        status, out, err = self._main("ln(x)", "--mode", "compile")
        self.assertEqual(status, 1)
        self.assertEqual(out, "")
        self.assertIn("ERROR: Could not compile expression: Unsupported in bytecode backend", err)

    def test_evaluation_error_is_reported(self) -> None:
        status, _, err = self._main("1/x")
        self.assertEqual(status, 1)
        self.assertIn("ERROR: Division by zero", err)

    def test_bad_variable_name_is_reported(self) -> None:
        status, _, err = self._main("x", "--var", "X=1")
        self.assertEqual(status, 1)
        self.assertIn("ERROR:", err)

    def test_debug_listings(self) -> None:
        status, out, _ = self._main("2*x-1", "--mode", "compile", "--tokens", "--tree", "--program")
        self.assertEqual(status, 0)
        self.assertIn("0: TOKEN_NUMBER 2.000000", out)
        self.assertIn("sub(mul(2.000000,x),1.000000)", out)
        self.assertIn("2: MUL", out)

    def test_sample_prints_one_line_per_point(self) -> None:
        status, out, _ = self._main("1/x", "--sample=-0.5:0.5", "--resolution", "0.25")
        self.assertEqual(status, 0)
        lines = out.strip().splitlines()
        self.assertEqual(len(lines), 5)
        self.assertEqual(lines[2], "0.0\terror")
        self.assertEqual(lines[4], "0.5\t2.0")

    def test_json_output(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "out.json"
            status, out, _ = self._main("x+1", "--var", "x=2", "--json-out", str(path))
            self.assertEqual(status, 0)
            self.assertIn("Wrote JSON", out)
            payload = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(payload["expression"], "x+1")
        self.assertEqual(payload["mode"], "interpret")
        self.assertEqual(payload["value"], 3.0)
        self.assertFalse(payload["error"])
        self.assertIsNone(payload["kind"])

    def test_json_output_encodes_non_finite_values(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out.json"
            status, _, _ = self._main("1/0", "--mode", "compile", "--json-out", str(path))
            payload = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(status, 0)
        self.assertEqual(payload["value"], "inf")

    def test_argument_validation(self) -> None:
        parser = self.mod.build_parser()
        with contextlib.redirect_stderr(io.StringIO()):
            for argv in (["x", "--var", "x"], ["x", "--sample", "1"], ["x", "--sample=2:1"], ["x", "--mode", "jit"]):
                with self.subTest(argv=argv):
                    with self.assertRaises(SystemExit):
                        parser.parse_args(argv)


if __name__ == "__main__":
    unittest.main()
