"""
NewLang - Lexer
Tokenizes NewLang source code into a flat token stream.
"""

import re
from dataclasses import dataclass
from typing import List
from enum import Enum, auto


class TokenType(Enum):
    # Literals
    INT        = auto()
    FLOAT      = auto()
    STRING     = auto()
    IDENTIFIER = auto()
    # Punctuation
    ARROW      = auto()   # ->
    UNWRAP     = auto()   # ??
    QUESTION   = auto()   # ?
    BANG       = auto()   # !
    MINUS      = auto()   # -
    COLON      = auto()   # :
    SEMICOLON  = auto()   # ;
    COMMA      = auto()   # ,
    # Brackets
    LBRACE     = auto()   # {
    RBRACE     = auto()   # }
    LBRACKET   = auto()   # [
    RBRACKET   = auto()   # ]
    LPAREN     = auto()   # (
    RPAREN     = auto()   # )
    # Reserved words (declarations, statements, operators, booleans)
    KEYWORD    = auto()
    # Sentinel
    EOF        = auto()


KEYWORDS = {
    "newnum", "newtext", "newbool", "newlist", "newfunction",
    "if", "elif", "else", "speak", "confess",
    "truth", "untruth",
    "is", "unis", "less", "lessis", "more", "moreis",
    "plus", "minus", "multiply", "divide", "remain", "exp",
    "and", "or",
}


@dataclass
class Token:
    type: TokenType
    value: str
    line: int
    column: int = 1

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, line={self.line}, col={self.column})"


class LexerError(Exception):
    def __init__(self, message: str, line: int, column: int = 1):
        super().__init__(f"[LexerError] Line {line}, col {column}: {message}")
        self.line = line
        self.column = column


# Token specification: ordered list of (TokenType, regex) pairs
_TOKEN_SPEC = [
    (TokenType.ARROW,      r'->'),
    (TokenType.UNWRAP,     r'\?\?'),
    (TokenType.FLOAT,      r'\d+(?:\.\d+(?:[Ee][+\-]?\d+)?|[Ee][+\-]?\d+)'),
    (TokenType.INT,        r'\d+'),
    (TokenType.IDENTIFIER, r'[^\W\d]\w*'),
    (TokenType.QUESTION,   r'\?'),
    (TokenType.BANG,       r'!'),
    (TokenType.MINUS,      r'-'),
    (TokenType.COLON,      r':'),
    (TokenType.SEMICOLON,  r';'),
    (TokenType.COMMA,      r','),
    (TokenType.LBRACE,     r'\{'),
    (TokenType.RBRACE,     r'\}'),
    (TokenType.LBRACKET,   r'\['),
    (TokenType.RBRACKET,   r'\]'),
    (TokenType.LPAREN,     r'\('),
    (TokenType.RPAREN,     r'\)'),
]

_MASTER_RE = re.compile(
    r'(?:' + '|'.join(f'(?P<T{i}>{spec[1]})' for i, spec in enumerate(_TOKEN_SPEC)) + r')'
)

_WHITESPACE_RE = re.compile(r'[ \t\r]+')
_COMMENT_RE    = re.compile(r'(?://|#)[^\n]*')
_NEWLINE_RE    = re.compile(r'\n')

_DANGLING_RE   = re.compile(r"\.|[Ee](?![A-Za-z_])")
_UNICODE_RE    = re.compile(r"u\{([0-9A-Fa-f]{1,6})\}")

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '\\': '\\', '"': '"', "'": "'"}


def tokenize(source: str) -> List[Token]:
    """
    Convert NewLang source string into a list of Tokens.
    Raises LexerError on unrecognized characters and malformed literals.
    """
    tokens: List[Token] = []
    line = 1
    line_start = 0
    pos = 0
    length = len(source)

    while pos < length:
        # Skip whitespace (not newlines)
        m = _WHITESPACE_RE.match(source, pos)
        if m:
            pos = m.end()
            continue

        # Skip comments
        m = _COMMENT_RE.match(source, pos)
        if m:
            pos = m.end()
            continue

        # Newlines
        m = _NEWLINE_RE.match(source, pos)
        if m:
            line += 1
            pos = m.end()
            line_start = pos
            continue

        column = pos - line_start + 1

        if source[pos] in ('"', "'"):
            value, pos = _scan_string(source, pos, line, line_start)
            tokens.append(Token(TokenType.STRING, value, line, column))
            continue

        # Try all token patterns
        m = _MASTER_RE.match(source, pos)
        if not m:
            raise LexerError(f"Unexpected character: {source[pos]!r}", line, column)

        raw = m.group(0)
        # Determine which group matched
        tok_type = None
        for i, (ttype, _) in enumerate(_TOKEN_SPEC):
            if m.group(f'T{i}') is not None:
                tok_type = ttype
                break

        # A numeral may not end in a bare "." or exponent marker (2. or 5E)
        if tok_type == TokenType.INT and _DANGLING_RE.match(source, m.end()):
            raise LexerError("Malformed number", line, m.end() - line_start + 1)

        # Reclassify identifiers that are reserved words
        if tok_type == TokenType.IDENTIFIER and raw in KEYWORDS:
            tok_type = TokenType.KEYWORD

        tokens.append(Token(tok_type, raw, line, column))
        pos = m.end()

    tokens.append(Token(TokenType.EOF, '', line, pos - line_start + 1))
    return tokens


def _scan_string(source: str, pos: int, line: int, line_start: int):
    """Scan a quoted string literal starting at pos; return (value, end)."""
    quote = source[pos]
    start_column = pos - line_start + 1
    chars = []
    i = pos + 1
    while True:
        if i >= len(source) or source[i] == '\n':
            raise LexerError("Unterminated string literal", line, start_column)
        ch = source[i]
        if ch == quote:
            return ''.join(chars), i + 1
        if ch != '\\':
            chars.append(ch)
            i += 1
            continue

        # Escape sequence
        if i + 1 >= len(source):
            raise LexerError("Unterminated string literal", line, start_column)
        esc = source[i + 1]
        if esc in _ESCAPES:
            chars.append(_ESCAPES[esc])
            i += 2
            continue
        if esc == 'u':
            m = _UNICODE_RE.match(source, i + 1)
            if not m:
                raise LexerError("Malformed unicode escape", line, i - line_start + 2)
            code = int(m.group(1), 16)
            if code > 0x10FFFF:
                raise LexerError("Code point out of range", line, m.end() - line_start)
            if 0xD800 <= code <= 0xDFFF:
                raise LexerError("Surrogate code point not allowed", line, m.end() - line_start)
            chars.append(chr(code))
            i = m.end()
            continue
        raise LexerError(f"Unknown escape sequence: \\{esc}", line, i - line_start + 2)
