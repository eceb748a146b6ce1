"""
NewLang - a small imperative language compiled to JavaScript.

    from newlang import compile_source
    print(compile_source('newnum x is 1.0 plus 2.2'))
"""

from .compiler import compile_source, compile_file, CompilationError

__version__ = "0.1.0"

__all__ = ["compile_source", "compile_file", "CompilationError", "__version__"]
