"""
NewLang - Recursive Descent Parser
Converts a token stream into an (untyped) syntax tree.
"""

from typing import List, Optional
from .lexer import Token, TokenType, tokenize
from .syntax import (
    Program, VarDecl, Param, FunDecl, Block, If, Speak, Confess,
    Binary, Unary, Call, Index, ListLit, Identifier, NumberLit,
    StringLit, BoolLit, TypeName, ListTypeExpr, OptionalTypeExpr,
    FunctionTypeExpr, SyntaxNode
)


DECLARATION_KEYWORDS = {"newnum", "newtext", "newbool", "newlist"}
RELATIONAL_OPS       = {"less", "lessis", "more", "moreis", "is", "unis"}
ADDITIVE_OPS         = {"plus", "minus"}
MULTIPLICATIVE_OPS   = {"multiply", "divide", "remain"}

# Tokens that may begin an expression
_EXPRESSION_START = {
    TokenType.INT, TokenType.FLOAT, TokenType.STRING, TokenType.IDENTIFIER,
    TokenType.LPAREN, TokenType.LBRACKET, TokenType.BANG, TokenType.MINUS,
}


class ParseError(Exception):
    def __init__(self, message: str, line: int, column: int = 1):
        super().__init__(f"[ParseError] Line {line}, col {column}: {message}")
        self.line = line
        self.column = column


class Parser:
    def __init__(self, tokens: List[Token]):
        self._tokens = tokens
        self._pos = 0

    # ------------------------------------------------------------------ helpers

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _peek2(self) -> Optional[Token]:
        if self._pos + 1 < len(self._tokens):
            return self._tokens[self._pos + 1]
        return None

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, ttype: TokenType) -> Token:
        tok = self._peek()
        if tok.type != ttype:
            raise self._error(f"Expected {ttype.name} but got {_describe(tok)}", tok)
        return self._advance()

    def _expect_keyword(self, word: str) -> Token:
        tok = self._peek()
        if not self._match_keyword(word):
            raise self._error(f"Expected '{word}' but got {_describe(tok)}", tok)
        return self._advance()

    def _match(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _match_keyword(self, *words: str) -> bool:
        tok = self._peek()
        return tok.type == TokenType.KEYWORD and tok.value in words

    def _starts_expression(self, tok: Token) -> bool:
        if tok.type == TokenType.KEYWORD:
            return tok.value in ("truth", "untruth")
        return tok.type in _EXPRESSION_START

    @staticmethod
    def _error(message: str, tok: Token) -> ParseError:
        return ParseError(message, tok.line, tok.column)

    # ------------------------------------------------------------------ public

    def parse(self) -> Program:
        stmts = []
        while not self._match(TokenType.EOF):
            stmts.append(self._parse_statement())
        return Program(statements=stmts, line=1, column=1)

    # ------------------------------------------------------------------ statements

    def _parse_statement(self) -> SyntaxNode:
        tok = self._peek()

        if tok.type == TokenType.KEYWORD and tok.value in DECLARATION_KEYWORDS:
            stmt = self._parse_var_decl()
        elif self._match_keyword("newfunction"):
            stmt = self._parse_fun_decl()
        elif self._match_keyword("if"):
            stmt = self._parse_if()
        elif self._match_keyword("speak"):
            stmt = self._parse_speak()
        elif self._match_keyword("confess"):
            stmt = self._parse_confess()
        elif self._starts_expression(tok):
            # bare expression statement
            stmt = self._parse_expression()
        else:
            raise self._error(f"Unexpected {_describe(tok)} at start of statement", tok)

        if self._match(TokenType.SEMICOLON):
            self._advance()
        return stmt

    def _parse_var_decl(self) -> VarDecl:
        kw_tok = self._advance()            # newnum | newtext | newbool | newlist
        name_tok = self._expect(TokenType.IDENTIFIER)
        self._expect_keyword("is")
        initializer = self._parse_expression()
        optional = False
        if self._match(TokenType.QUESTION):
            self._advance()
            optional = True
        return VarDecl(
            keyword=kw_tok.value, name=name_tok.value, initializer=initializer,
            optional=optional, line=name_tok.line, column=name_tok.column,
        )

    def _parse_fun_decl(self) -> FunDecl:
        self._advance()                     # newfunction
        name_tok = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.LPAREN)
        params = []
        if not self._match(TokenType.RPAREN):
            params.append(self._parse_param())
            while self._match(TokenType.COMMA):
                self._advance()
                params.append(self._parse_param())
        self._expect(TokenType.RPAREN)

        return_type = None
        if self._match(TokenType.COLON):
            self._advance()
            return_type = self._parse_type()

        body = self._parse_block()
        return FunDecl(
            name=name_tok.value, params=params, return_type=return_type,
            body=body.statements, line=name_tok.line, column=name_tok.column,
        )

    def _parse_param(self) -> Param:
        name_tok = self._expect(TokenType.IDENTIFIER)
        type_ = None
        if self._match(TokenType.COLON):
            self._advance()
            type_ = self._parse_type()
        return Param(name=name_tok.value, type_=type_, line=name_tok.line, column=name_tok.column)

    def _parse_type(self) -> SyntaxNode:
        tok = self._peek()
        if tok.type == TokenType.LPAREN:
            self._advance()
            params = []
            if not self._match(TokenType.RPAREN):
                params.append(self._parse_type())
                while self._match(TokenType.COMMA):
                    self._advance()
                    params.append(self._parse_type())
            self._expect(TokenType.RPAREN)
            self._expect(TokenType.ARROW)
            ret = self._parse_type()
            type_ = FunctionTypeExpr(params=params, return_type=ret, line=tok.line, column=tok.column)
        elif tok.type == TokenType.IDENTIFIER:
            self._advance()
            type_ = TypeName(name=tok.value, line=tok.line, column=tok.column)
        else:
            raise self._error(f"Expected a type but got {_describe(tok)}", tok)

        # Suffixes: T[] and T?, in any order
        while True:
            if self._match(TokenType.LBRACKET) and self._peek2() and self._peek2().type == TokenType.RBRACKET:
                self._advance()
                self._advance()
                type_ = ListTypeExpr(base=type_, line=tok.line, column=tok.column)
            elif self._match(TokenType.QUESTION):
                self._advance()
                type_ = OptionalTypeExpr(base=type_, line=tok.line, column=tok.column)
            else:
                return type_

    def _parse_block(self) -> Block:
        open_tok = self._expect(TokenType.LBRACE)
        stmts = []
        while not self._match(TokenType.RBRACE):
            if self._match(TokenType.EOF):
                raise self._error("Expected '}' before end of input", self._peek())
            stmts.append(self._parse_statement())
        self._expect(TokenType.RBRACE)
        return Block(statements=stmts, line=open_tok.line, column=open_tok.column)

    def _parse_if(self) -> If:
        if_tok = self._advance()            # if | elif
        test = self._parse_expression()
        consequent = self._parse_block()
        alternate = None
        if self._match_keyword("elif"):
            alternate = self._parse_if()
        elif self._match_keyword("else"):
            self._advance()
            alternate = self._parse_block()
        return If(
            test=test, consequent=consequent, alternate=alternate,
            line=if_tok.line, column=if_tok.column,
        )

    def _parse_speak(self) -> Speak:
        tok = self._advance()               # speak
        argument = self._parse_expression()
        return Speak(argument=argument, line=tok.line, column=tok.column)

    def _parse_confess(self) -> Confess:
        tok = self._advance()               # confess
        nxt = self._peek()
        expression = None
        # A value belongs to the return only when it starts on the same line
        if nxt.line == tok.line and self._starts_expression(nxt):
            expression = self._parse_expression()
        return Confess(expression=expression, line=tok.line, column=tok.column)

    # ------------------------------------------------------------------ expressions

    def _parse_expression(self) -> SyntaxNode:
        left = self._parse_or()

        # Unwrap-else: optional ?? default (right associative)
        if self._match(TokenType.UNWRAP):
            op_tok = self._advance()
            right = self._parse_expression()
            return Binary(op="??", left=left, right=right, line=op_tok.line, column=op_tok.column)

        return left

    def _parse_or(self) -> SyntaxNode:
        left = self._parse_and()

        while self._match_keyword("or"):
            op_tok = self._advance()
            right = self._parse_and()
            left = Binary(op="or", left=left, right=right, line=op_tok.line, column=op_tok.column)

        return left

    def _parse_and(self) -> SyntaxNode:
        left = self._parse_comparison()

        while self._match_keyword("and"):
            op_tok = self._advance()
            right = self._parse_comparison()
            left = Binary(op="and", left=left, right=right, line=op_tok.line, column=op_tok.column)

        return left

    def _parse_comparison(self) -> SyntaxNode:
        left = self._parse_additive()

        if self._match_keyword(*RELATIONAL_OPS):
            op_tok = self._advance()
            right = self._parse_additive()
            left = Binary(op=op_tok.value, left=left, right=right, line=op_tok.line, column=op_tok.column)
            if self._match_keyword(*RELATIONAL_OPS):
                raise self._error("Relational operators cannot be chained", self._peek())

        return left

    def _parse_additive(self) -> SyntaxNode:
        left = self._parse_multiplicative()

        while self._match_keyword(*ADDITIVE_OPS):
            op_tok = self._advance()
            right = self._parse_multiplicative()
            left = Binary(op=op_tok.value, left=left, right=right, line=op_tok.line, column=op_tok.column)

        return left

    def _parse_multiplicative(self) -> SyntaxNode:
        left = self._parse_unary()

        while self._match_keyword(*MULTIPLICATIVE_OPS):
            op_tok = self._advance()
            right = self._parse_unary()
            left = Binary(op=op_tok.value, left=left, right=right, line=op_tok.line, column=op_tok.column)

        return left

    def _parse_unary(self) -> SyntaxNode:
        if self._match(TokenType.BANG, TokenType.MINUS):
            op_tok = self._advance()
            operand = self._parse_unary()
            return Unary(op=op_tok.value, operand=operand, line=op_tok.line, column=op_tok.column)
        return self._parse_power()

    def _parse_power(self) -> SyntaxNode:
        base = self._parse_postfix()

        if self._match_keyword("exp"):
            op_tok = self._advance()
            exponent = self._parse_unary()
            return Binary(op="exp", left=base, right=exponent, line=op_tok.line, column=op_tok.column)

        return base

    def _parse_postfix(self) -> SyntaxNode:
        expr = self._parse_primary()

        while True:
            if self._match(TokenType.LPAREN):
                open_tok = self._advance()
                args = []
                if not self._match(TokenType.RPAREN):
                    args.append(self._parse_expression())
                    while self._match(TokenType.COMMA):
                        self._advance()
                        args.append(self._parse_expression())
                self._expect(TokenType.RPAREN)
                expr = Call(callee=expr, args=args, line=open_tok.line, column=open_tok.column)
            elif self._match(TokenType.LBRACKET):
                open_tok = self._advance()
                index = self._parse_expression()
                self._expect(TokenType.RBRACKET)
                expr = Index(target=expr, index=index, line=open_tok.line, column=open_tok.column)
            else:
                return expr

    def _parse_primary(self) -> SyntaxNode:
        tok = self._peek()

        # Parenthesised expression
        if tok.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN)
            return expr

        # List literal
        if tok.type == TokenType.LBRACKET:
            return self._parse_list()

        if tok.type == TokenType.INT:
            self._advance()
            try:
                value = int(tok.value)
            except ValueError as e:
                # Digit count past the interpreter's int conversion limit
                raise ParseError("Integer literal too long", tok.line, tok.column) from e
            return NumberLit(value=value, line=tok.line, column=tok.column)

        if tok.type == TokenType.FLOAT:
            self._advance()
            return NumberLit(value=float(tok.value), line=tok.line, column=tok.column)

        if tok.type == TokenType.STRING:
            self._advance()
            return StringLit(value=tok.value, line=tok.line, column=tok.column)

        if self._match_keyword("truth", "untruth"):
            self._advance()
            return BoolLit(value=tok.value == "truth", line=tok.line, column=tok.column)

        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(name=tok.value, line=tok.line, column=tok.column)

        raise self._error(f"Unexpected {_describe(tok)} in expression", tok)

    def _parse_list(self) -> ListLit:
        open_tok = self._expect(TokenType.LBRACKET)
        elements = []
        if not self._match(TokenType.RBRACKET):
            elements.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                self._advance()
                elements.append(self._parse_expression())
        self._expect(TokenType.RBRACKET)
        return ListLit(elements=elements, line=open_tok.line, column=open_tok.column)


def _describe(tok: Token) -> str:
    if tok.type == TokenType.EOF:
        return "end of input"
    return f"{tok.type.name} ({tok.value!r})"


def parse(source: str) -> Program:
    """Tokenize and parse source text in one step."""
    return Parser(tokenize(source)).parse()
