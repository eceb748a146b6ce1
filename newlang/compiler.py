"""
NewLang - Compiler Orchestrator
Runs all compiler phases in sequence and returns the requested output.
"""

import json
import sys

from .lexer import tokenize, LexerError
from .parser import Parser, ParseError
from .semantic import SemanticAnalyzer, SemanticError
from .optimizer import Optimizer
from .codegen import CodeGenerator, CodeGenError
from .core import Type, Variable, Function


OUTPUT_TYPES = ("parsed", "analyzed", "optimized", "js")


class CompilationError(Exception):
    """Unified compilation error wrapper."""
    pass


def compile_source(
    source: str,
    output_type: str = "js",
    opt_level: int = 1,
    debug: bool = False,
) -> str:
    """
    Compile NewLang source text.

    Parameters
    ----------
    source      : NewLang source code string
    output_type : "parsed"    – a confirmation that the syntax is valid
                  "analyzed"  – JSON dump of the typed AST
                  "optimized" – JSON dump of the optimized typed AST
                  "js"        – JavaScript source (default)
    opt_level   : 0 = no optimizations, 1 = all optimizations
    debug       : print each phase summary to stderr

    Returns
    -------
    Text of the requested output

    Raises
    ------
    CompilationError on any phase failure
    """
    if output_type not in OUTPUT_TYPES:
        raise CompilationError(f"Unknown output type {output_type!r}; expected one of {', '.join(OUTPUT_TYPES)}")

    def log(msg):
        if debug:
            print(f"[newlang] {msg}", file=sys.stderr)

    # ── Phase 1: Lexical Analysis ─────────────────────────────────────────────
    log("Phase 1: Lexical analysis")
    try:
        tokens = tokenize(source)
    except LexerError as e:
        raise CompilationError(str(e)) from e

    log(f"  {len(tokens)-1} tokens produced")

    # ── Phase 2: Parsing ──────────────────────────────────────────────────────
    log("Phase 2: Parsing")
    try:
        tree = Parser(tokens).parse()
    except ParseError as e:
        raise CompilationError(str(e)) from e

    log(f"  {len(tree.statements)} top-level statements")

    if output_type == "parsed":
        return "Syntax is ok"

    # ── Phase 3: Semantic Analysis ────────────────────────────────────────────
    log("Phase 3: Semantic analysis")
    try:
        program = SemanticAnalyzer().analyze(tree)
    except SemanticError as e:
        raise CompilationError(str(e)) from e

    if output_type == "analyzed":
        return _ast_to_json(program)

    # ── Phase 4: Optimization ─────────────────────────────────────────────────
    log(f"Phase 4: Optimization (level {opt_level})")
    program = Optimizer(opt_level=opt_level).optimize(program)

    if output_type == "optimized":
        return _ast_to_json(program)

    # ── Phase 5: Code Generation ──────────────────────────────────────────────
    log("Phase 5: Code generation")
    try:
        js_code = CodeGenerator().generate(program)
    except CodeGenError as e:
        raise CompilationError(str(e)) from e

    log("  Compilation successful")
    return js_code


def compile_file(
    input_path: str,
    output_path: str,
    output_type: str = "js",
    opt_level: int = 1,
    debug: bool = False,
) -> None:
    """Read a NewLang file and write the compiled output to output_path."""
    with open(input_path, "r", encoding="utf-8") as f:
        source = f.read()

    result = compile_source(source, output_type=output_type, opt_level=opt_level, debug=debug)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(result + "\n")


# ── AST serialization (for analyzed / optimized output) ───────────────────────

def _ast_to_json(node) -> str:
    return json.dumps(_node_to_dict(node, set()), indent=2, ensure_ascii=False)


def _node_to_dict(node, seen: set):
    if node is None:
        return None
    if isinstance(node, list):
        return [_node_to_dict(n, seen) for n in node]
    if isinstance(node, Type):
        return str(node)
    if not hasattr(node, '__dataclass_fields__'):
        return node  # primitive
    if isinstance(node, (Variable, Function)):
        # Entities are written out once; later references point back by name
        if id(node) in seen:
            return {"_ref": node.name}
        seen.add(id(node))
    d = {"_type": type(node).__name__}
    for field_name in node.__dataclass_fields__:
        val = getattr(node, field_name)
        d[field_name] = _node_to_dict(val, seen)
    return d
