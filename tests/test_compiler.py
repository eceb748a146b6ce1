"""
NewLang - Driver and Command Line Tests
End-to-end runs through compile_source, compile_file and the CLI.
"""

import sys
import os
import io
import json
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from newlang import __version__
from newlang.compiler import compile_source, compile_file, CompilationError
from newlang.cli import main
from newlang.lexer import LexerError
from newlang.parser import ParseError
from newlang.semantic import SemanticError


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

PROGRAM = """
newfunction square(x: float) : float { confess x exp 2.0 }
newnum side is 3.0 plus 1.0
speak(square(side))
"""


def dump(source: str, output_type: str) -> dict:
    return json.loads(compile_source(source.strip(), output_type=output_type))


# ═══════════════════════════════════════════════════════════════════════════════
# compile_source
# ═══════════════════════════════════════════════════════════════════════════════

class TestCompileSource(unittest.TestCase):

    def test_default_output_is_javascript(self):
        out = compile_source(PROGRAM)
        self.assertEqual(
            out.splitlines(),
            [
                "function square_1(x_2) {",
                "    return (x_2 ** 2.0);",
                "}",
                "let side_3 = 4.0;",
                "console.log(square_1(side_3));",
            ],
        )

    def test_parsed_output(self):
        self.assertEqual(compile_source("speak(x)", output_type="parsed"), "Syntax is ok")

    def test_analyzed_keeps_binary_unfolded(self):
        tree = dump("newnum x is 1.0 plus 2.2", "analyzed")
        self.assertEqual(tree["_type"], "Program")
        decl = tree["statements"][0]
        self.assertEqual(decl["_type"], "VariableDeclaration")
        self.assertEqual(decl["variable"], {"_type": "Variable", "name": "x", "mutable": False, "type": "float"})
        self.assertEqual(decl["initializer"], {
            "_type": "BinaryExpression",
            "op": "+",
            "left": {"_type": "Literal", "value": 1.0, "type": "float"},
            "right": {"_type": "Literal", "value": 2.2, "type": "float"},
            "type": "float",
        })

    def test_optimized_folds(self):
        tree = dump("newnum x is 1.0 plus 2.2", "optimized")
        self.assertEqual(
            tree["statements"][0]["initializer"],
            {"_type": "Literal", "value": 1.0 + 2.2, "type": "float"},
        )

    def test_dump_refers_back_to_entities(self):
        tree = dump("newfunction f(n: int) : int { confess f(n) }", "analyzed")
        fun = tree["statements"][0]["fun"]
        self.assertEqual(fun["type"], "(int)->int")
        self.assertFalse(fun["intrinsic"])
        call = fun["body"][0]["expression"]
        self.assertEqual(call["callee"], {"_ref": "f"})
        self.assertEqual(call["args"], [{"_ref": "n"}])

    def test_opt_level_zero(self):
        self.assertEqual(compile_source("newnum x is 2 multiply 3", opt_level=0), "let x_1 = (2 * 3);")
        self.assertEqual(compile_source("newnum x is 2 multiply 3", opt_level=1), "let x_1 = 6;")

    def test_unknown_output_type(self):
        with self.assertRaisesRegex(CompilationError, "Unknown output type"):
            compile_source("speak 1", output_type="python")

    def test_errors_are_wrapped(self):
        cases = [
            ("newnum x is @", LexerError, r"^\[LexerError\] Line 1, col 13:"),
            ("newnum x 1", ParseError, r"^\[ParseError\] Line 1, col 10:"),
            ("speak(x)", SemanticError, r"^\[SemanticError\] Line 1, col 7: Identifier x not declared$"),
        ]
        for source, cause, message in cases:
            with self.subTest(source):
                with self.assertRaisesRegex(CompilationError, message) as ctx:
                    compile_source(source)
                self.assertIsInstance(ctx.exception.__cause__, cause)

    def test_semantic_errors_not_reported_for_parsed(self):
        self.assertEqual(compile_source("confess 1", output_type="parsed"), "Syntax is ok")

    def test_debug_logs_phases(self):
        err = io.StringIO()
        with redirect_stderr(err):
            compile_source("speak 1 plus 2", debug=True)
        log = err.getvalue()
        for phase in ("Phase 1", "Phase 2", "Phase 3", "Phase 4", "Phase 5"):
            self.assertIn(f"[newlang] {phase}", log)
        self.assertIn("[newlang]   1 top-level statements", log)
        self.assertIn("(level 1)", log)

    def test_no_logging_without_debug(self):
        err = io.StringIO()
        with redirect_stderr(err):
            compile_source("speak 1")
        self.assertEqual(err.getvalue(), "")

    def test_independent_compilations(self):
        first = compile_source("newnum x is 1")
        second = compile_source("newnum x is 1")
        self.assertEqual(first, second)

    def test_version(self):
        self.assertTrue(__version__)


# ═══════════════════════════════════════════════════════════════════════════════
# Files and command line
# ═══════════════════════════════════════════════════════════════════════════════

class TestFilesAndCLI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.source = os.path.join(self.tmp, "prog.nl")
        with open(self.source, "w", encoding="utf-8") as f:
            f.write(PROGRAM)

    def tearDown(self):
        shutil.rmtree(self.tmp)

    def _run(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with redirect_stdout(out), redirect_stderr(err):
            try:
                main(list(argv))
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()

    def _read(self, path):
        with open(path, encoding="utf-8") as f:
            return f.read()

    def test_compile_file(self):
        target = os.path.join(self.tmp, "out.js")
        compile_file(self.source, target)
        self.assertEqual(self._read(target), compile_source(PROGRAM) + "\n")

    def test_compile_file_rejects_surrogate_escape(self):
        bad = os.path.join(self.tmp, "surrogate.nl")
        with open(bad, "w", encoding="utf-8") as f:
            f.write('speak "\\u{D800}"\n')
        target = os.path.join(self.tmp, "surrogate.js")
        with self.assertRaisesRegex(CompilationError, "Surrogate code point not allowed") as ctx:
            compile_file(bad, target)
        self.assertIsInstance(ctx.exception.__cause__, LexerError)
        self.assertFalse(os.path.exists(target))

    def test_cli_default_output_path(self):
        code, out, _ = self._run(self.source)
        self.assertEqual(code, 0)
        target = os.path.join(self.tmp, "prog.js")
        self.assertTrue(os.path.exists(target))
        self.assertIn("console.log(square_1(side_3));", self._read(target))
        self.assertIn("Compiled", out)

    def test_cli_explicit_output(self):
        target = os.path.join(self.tmp, "elsewhere.js")
        code, _, _ = self._run(self.source, "-o", target, "--opt-level", "0")
        self.assertEqual(code, 0)
        self.assertIn("let side_3 = (3.0 + 1.0);", self._read(target))

    def test_cli_ast_dump(self):
        code, _, _ = self._run(self.source, "--emit", "optimized")
        self.assertEqual(code, 0)
        tree = json.loads(self._read(os.path.join(self.tmp, "prog.ast.json")))
        self.assertEqual(tree["_type"], "Program")

    def test_cli_parsed_prints(self):
        code, out, _ = self._run(self.source, "--emit", "parsed")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "Syntax is ok")
        self.assertFalse(os.path.exists(os.path.join(self.tmp, "prog.js")))

    def test_cli_debug(self):
        code, _, err = self._run(self.source, "--debug")
        self.assertEqual(code, 0)
        self.assertIn("[newlang] Phase 5: Code generation", err)

    def test_cli_missing_file(self):
        code, _, err = self._run(os.path.join(self.tmp, "missing.nl"))
        self.assertEqual(code, 1)
        self.assertIn("Input file not found", err)

    def test_cli_compilation_error(self):
        bad = os.path.join(self.tmp, "bad.nl")
        with open(bad, "w", encoding="utf-8") as f:
            f.write("newnum x is truth\n")
        code, _, err = self._run(bad)
        self.assertEqual(code, 1)
        self.assertIn("[SemanticError] Line 1, col 13: Expected a number", err)
        self.assertFalse(os.path.exists(os.path.join(self.tmp, "bad.js")))

    def test_cli_rejects_bad_option(self):
        code, _, _ = self._run(self.source, "--emit", "python")
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
