from __future__ import annotations

import importlib.util
import math
import unittest

JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for engine tests")
class EngineFacadeTests(unittest.TestCase):
    def test_goldens_agree_across_modes(self) -> None:
        from mp_jax import Mode, create_with_mode, destroy, evaluate

        cases = {"2+3*4": 14.0, "10-3-2": 5.0, "(2+3)*4": 20.0, "2^10": 1024.0, "-2^2": -4.0}
        for mode in Mode:
            for source, expected in cases.items():
                with self.subTest(mode=mode.value, source=source):
                    engine = create_with_mode(source, mode)
                    self.assertIsNotNone(engine)
                    result = evaluate(engine)
                    self.assertFalse(result.error)
                    self.assertEqual(result.value, expected)
                    destroy(engine)

    def test_create_defaults_to_interpret_mode(self) -> None:
        from mp_jax import Mode, create, create_with_mode

        self.assertIs(create("x").mode, Mode.INTERPRET)
        self.assertIs(create_with_mode("x", "compile").mode, Mode.COMPILE)

    def test_create_returns_none_on_bad_source(self) -> None:
        from mp_jax import Mode, create, create_with_mode

        for source in (None, "", "2^2^2", "1$", "(1+2", "sqrtx(1)"):
            with self.subTest(source=source):
                self.assertIsNone(create(source))
                self.assertIsNone(create_with_mode(source, Mode.COMPILE))

    def test_long_sum_builds_and_evaluates_in_both_modes(self) -> None:
        from mp_jax import Mode, create_with_mode, evaluate

        source = "+".join(["x"] * 1500)
        for mode in Mode:
            with self.subTest(mode=mode.value):
                engine = create_with_mode(source, mode)
                self.assertIsNotNone(engine)
                engine.bind("x", 0.5)
                result = evaluate(engine)
                self.assertFalse(result.error)
                self.assertEqual(result.value, 750.0)

    def test_unknown_mode_is_a_construction_failure(self) -> None:
        from mp_jax import Engine, create_with_mode

        with self.assertLogs("mp_jax.engine", level="DEBUG") as logs:
            self.assertIsNone(create_with_mode("x", "jit"))
        self.assertTrue(any("Unknown engine mode 'jit'" in line for line in logs.output))
        with self.assertRaises(ValueError):
            Engine.from_source("x", "jit")

    def test_importing_the_package_enables_float64(self) -> None:
        import jax.numpy as jnp

        import mp_jax  # noqa: F401

        self.assertEqual(jnp.asarray(0.1).dtype, jnp.float64)
        self.assertEqual(mp_jax.create("1/3").evaluate().value, 1 / 3)

    def test_create_failure_is_logged(self) -> None:
        from mp_jax import create

        with self.assertLogs("mp_jax.engine", level="DEBUG") as logs:
            self.assertIsNone(create("2^2^2"))
        self.assertTrue(any("Could not build interpret engine" in line for line in logs.output))

    def test_from_source_raises_the_detailed_error(self) -> None:
        from mp_jax import CompileError, Engine, ErrorKind, Mode, ParseError, TokenizeError

        with self.assertRaises(ParseError) as ctx:
            Engine.from_source("2^2^2")
        self.assertIs(ctx.exception.kind, ErrorKind.INVALID_EXPRESSION)
        with self.assertRaises(TokenizeError):
            Engine.from_source("2 # 2", Mode.COMPILE)
        with self.assertRaises(CompileError):
            Engine.from_source("ln(x)", Mode.COMPILE)
        with self.assertRaises(TypeError):
            Engine.from_source(None)

    def test_functions_work_only_in_interpret_mode(self) -> None:
        from mp_jax import Mode, create_with_mode

        self.assertIsNone(create_with_mode("ln(x)", Mode.COMPILE))
        engine = create_with_mode("ln(x)", Mode.INTERPRET)
        engine.bind("x", math.e)
        self.assertAlmostEqual(engine.evaluate().value, 1.0, places=12)

    def test_rebinding_changes_the_next_result(self) -> None:
        from mp_jax import Mode, bind, create_with_mode, evaluate

        for mode in Mode:
            with self.subTest(mode=mode.value):
                engine = create_with_mode("x+1", mode)
                bind(engine, "x", 5.0)
                self.assertEqual(evaluate(engine).value, 6.0)
                bind(engine, "x", 10.0)
                self.assertEqual(evaluate(engine).value, 11.0)

    def test_unbound_variables_read_zero(self) -> None:
        from mp_jax import Mode, create_with_mode

        for mode in Mode:
            with self.subTest(mode=mode.value):
                self.assertEqual(create_with_mode("q+1", mode).evaluate().value, 1.0)

    def test_constants_are_pre_bound_and_overridable(self) -> None:
        from mp_jax import Mode, create_with_mode

        for mode in Mode:
            with self.subTest(mode=mode.value):
                engine = create_with_mode("p+e", mode)
                self.assertAlmostEqual(engine.evaluate().value, math.pi + math.e, places=12)
                engine.bind("p", 1.0)
                self.assertAlmostEqual(engine.evaluate().value, 1.0 + math.e, places=12)
                self.assertEqual(engine.variables["e"], math.e)

    def test_interpret_mode_reports_division_by_zero(self) -> None:
        from mp_jax import ErrorKind, EvaluationError, create

        engine = create("1/x")
        engine.bind("x", 0.0)
        result = engine.evaluate()
        self.assertTrue(result.error)
        self.assertIs(result.kind, ErrorKind.ZERO_DIVISION)
        self.assertTrue(math.isnan(result.value))
        with self.assertRaises(EvaluationError) as ctx:
            result.unwrap()
        self.assertIs(ctx.exception.kind, ErrorKind.ZERO_DIVISION)

        # An evaluation error does not poison the engine.
        engine.bind("x", 2.0)
        result = engine.evaluate()
        self.assertFalse(result.error)
        self.assertEqual(result.unwrap(), 0.5)

    def test_compile_mode_divides_by_zero_to_infinity(self) -> None:
        from mp_jax import Mode, create_with_mode

        result = create_with_mode("1/0", Mode.COMPILE).evaluate()
        self.assertFalse(result.error)
        self.assertEqual(result.value, math.inf)

    def test_unknown_function_fails_only_when_evaluated(self) -> None:
        from mp_jax import ErrorKind, create

        engine = create("foo(x)+1")
        self.assertIsNotNone(engine)
        result = engine.evaluate()
        self.assertTrue(result.error)
        self.assertIs(result.kind, ErrorKind.INVALID_FUNCTION)

    def test_evaluate_is_idempotent(self) -> None:
        from mp_jax import Mode, create_with_mode

        for mode in Mode:
            with self.subTest(mode=mode.value):
                engine = create_with_mode("x^2-3*x+p", mode)
                engine.bind("x", 1.5)
                first = engine.evaluate()
                self.assertEqual([engine.evaluate() for _ in range(3)], [first] * 3)

    def test_bind_rejects_names_outside_a_to_z(self) -> None:
        from mp_jax import Mode, VariableError, create_with_mode

        for mode in Mode:
            engine = create_with_mode("x", mode)
            for name in ("X", "xy", "", "_"):
                with self.subTest(mode=mode.value, name=name):
                    with self.assertRaises(VariableError):
                        engine.bind(name, 1.0)
                    with self.assertRaises(ValueError):
                        engine.bind(name, 1.0)

    def test_backend_accessors_follow_the_mode(self) -> None:
        from mp_jax import Mode, create_with_mode, disassemble, format_tree

        interpret = create_with_mode("x+1", Mode.INTERPRET)
        self.assertEqual(format_tree(interpret.tree.root), "add(x,1.000000)")
        self.assertIsNone(interpret.program)

        compiled = create_with_mode("x+1", Mode.COMPILE)
        self.assertIsNone(compiled.tree)
        self.assertEqual(disassemble(compiled.program), "0: PUSH_VAR x\n1: PUSH_NUM 1.000000\n2: ADD")

    def test_closed_engine(self) -> None:
        from mp_jax import EngineClosedError, Mode, create_with_mode, destroy, evaluate

        for mode in Mode:
            with self.subTest(mode=mode.value):
                engine = create_with_mode("x", mode)
                destroy(engine)
                destroy(engine)
                self.assertTrue(engine.closed)
                self.assertTrue(evaluate(engine).error)
                self.assertIsNone(engine.program)
                self.assertIsNone(engine.tree)
                with self.assertRaises(EngineClosedError):
                    engine.bind("x", 1.0)
                self.assertEqual(repr(engine), f"Engine(mode={mode.value}, closed)")
        destroy(None)
        self.assertTrue(evaluate(None).error)

    def test_context_manager_closes(self) -> None:
        from mp_jax import Engine

        with Engine.from_source("x") as engine:
            self.assertFalse(engine.closed)
        self.assertTrue(engine.closed)

    def test_engine_requires_its_own_backend(self) -> None:
        from mp_jax import Engine, Mode

        with self.assertRaises(ValueError):
            Engine(Mode.COMPILE)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for sampling tests")
class EngineSamplingTests(unittest.TestCase):
    def test_sample_steps_across_the_range(self) -> None:
        from mp_jax import Mode, Sample, create_with_mode

        for mode in Mode:
            with self.subTest(mode=mode.value):
                engine = create_with_mode("2*x", mode)
                self.assertEqual(
                    engine.sample(0.0, 1.0, resolution=0.25),
                    [Sample(0.0, 0.0), Sample(0.25, 0.5), Sample(0.5, 1.0), Sample(0.75, 1.5), Sample(1.0, 2.0)],
                )

    def test_sample_stops_at_capacity(self) -> None:
        from mp_jax import create

        samples = create("x").sample(0.0, 100.0, resolution=0.5, capacity=3)
        self.assertEqual([point.x for point in samples], [0.0, 0.5, 1.0])

    def test_sample_marks_errors_per_point(self) -> None:
        from mp_jax import Mode, create_with_mode

        interpret = create_with_mode("1/x", Mode.INTERPRET).sample(-0.5, 0.5, resolution=0.25)
        self.assertEqual([point.error for point in interpret], [False, False, True, False, False])
        self.assertTrue(math.isnan(interpret[2].y))
        self.assertEqual(interpret[3].y, 4.0)

        compiled = create_with_mode("1/x", Mode.COMPILE).sample(-0.5, 0.5, resolution=0.25)
        self.assertFalse(any(point.error for point in compiled))
        self.assertEqual(compiled[2].y, math.inf)

    def test_sample_other_variable(self) -> None:
        from mp_jax import create

        samples = create("t*t").sample(1.0, 2.0, resolution=1.0, variable="t")
        self.assertEqual([(point.x, point.y) for point in samples], [(1.0, 1.0), (2.0, 4.0)])

    def test_sample_rejects_bad_arguments(self) -> None:
        from mp_jax import create

        engine = create("x")
        with self.assertRaises(ValueError):
            engine.sample(0.0, 1.0, resolution=0.0)
        with self.assertRaises(ValueError):
            engine.sample(0.0, 1.0, capacity=0)
        self.assertEqual(engine.sample(1.0, 0.0), [])


if __name__ == "__main__":
    unittest.main()
