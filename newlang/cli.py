"""
NewLang - Command Line Interface

Usage:
    newlang input.nl [-o output.js] [--emit parsed|analyzed|optimized|js]
                     [--opt-level 0|1] [--debug]
    python -m newlang input.nl
"""

import sys
import argparse
import os


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="newlang",
        description="NewLang compiler: translates NewLang programs to JavaScript",
    )
    parser.add_argument("input", help="Path to the NewLang source file")
    parser.add_argument("-o", "--output", help="Path for the generated file")
    parser.add_argument(
        "--emit",
        choices=["parsed", "analyzed", "optimized", "js"],
        default="js",
        dest="output_type",
        help="What to produce: parsed (syntax check only), analyzed / optimized "
             "(typed AST as JSON) or js (default)",
    )
    parser.add_argument(
        "--opt-level",
        type=int,
        choices=[0, 1],
        default=1,
        dest="opt_level",
        help="Optimization level: 0 = none, 1 = standard (default: 1)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print compilation phase info to stderr",
    )

    args = parser.parse_args(argv)

    from .compiler import compile_source, compile_file, CompilationError

    try:
        if args.output_type == "parsed":
            with open(args.input, "r", encoding="utf-8") as f:
                source = f.read()
            print(compile_source(source, output_type="parsed", debug=args.debug))
            return

        # Determine output path
        if args.output:
            output_path = args.output
        elif args.output_type == "js":
            output_path = os.path.splitext(args.input)[0] + ".js"
        else:
            output_path = os.path.splitext(args.input)[0] + ".ast.json"

        compile_file(
            args.input,
            output_path,
            output_type=args.output_type,
            opt_level=args.opt_level,
            debug=args.debug,
        )
        print(f"[newlang] Compiled {args.input!r} → {output_path!r}")
    except FileNotFoundError:
        print(f"[newlang] Error: Input file not found: {args.input!r}", file=sys.stderr)
        sys.exit(1)
    except CompilationError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
