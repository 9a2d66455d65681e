"""
Parser

Pattern: lark LALR parser over a hand-written tokenizer

Turns module source into a lark parse tree. Tokens are fed through lark's
interactive parser one at a time so that a missing semicolon can be supplied
when the language permits it:

- before a token that is preceded by a line break
- before a closing `}`
- at the end of the input
- after `return`, `break` or `continue` when a line break follows
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput, UnexpectedToken

from .lexer import JavaScriptLexer, TokenStream, TokenizeError, tokenize
from ..shared.errors import PackletSourceError
from ..shared.source_location import SourceLocation

logger = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"

# A line break after these ends the statement
_RESTRICTED_TYPES = frozenset({'RETURN', 'BREAK', 'CONTINUE'})

_TOKEN_DESCRIPTIONS = {
    '$END': 'end of input',
    '_SEMI': "';'", '_COMMA': "','", '_COLON': "':'", '_DOT': "'.'",
    '_LBRACE': "'{'", '_RBRACE': "'}'", '_LPAR': "'('", '_RPAR': "')'",
    '_LSQB': "'['", '_RSQB': "']'", '_ARROW': "'=>'", '_ASSIGN': "'='",
    'IDENT': 'identifier', 'STRING': 'string', 'NUMBER': 'number',
    'FROM': "'from'", 'AS': "'as'", 'OF': "'of'",
}


@lru_cache(maxsize=1)
def _build_lark() -> Lark:
    """Compile the grammar once per process (the tables are immutable)."""
    logger.debug(f"building LALR tables from {GRAMMAR_PATH}")
    return Lark.open(
        str(GRAMMAR_PATH),
        start='program',
        parser='lalr',
        lexer=JavaScriptLexer,
        propagate_positions=True,
        maybe_placeholders=False,
    )


@dataclass
class ParsedScript:
    """A parsed script module: tree plus the text and tokens it came from."""
    tree: Tree
    source: str
    source_file: str
    tokens: TokenStream

    @property
    def hashbang_end(self) -> int:
        return self.tokens.hashbang_end


class ParseError(PackletSourceError):
    """Malformed script source, with the offending location"""

    def __init__(self, message: str, source_file: str, location: Optional[SourceLocation] = None,
                 source_code: Optional[str] = None, label: Optional[str] = None):
        super().__init__(message, location, error_code="E0100", source_code=source_code, label=label)
        self.source_file = source_file


class Parser:
    """
    JavaScript module parser.

    - Takes source code, returns a lark tree
    - Preserves source positions on every node (meta.start_pos/end_pos)
    - Reports malformed input as ParseError
    """

    def __init__(self):
        self.lark = _build_lark()

    def parse(self, source: str, source_file: str = "<input>") -> ParsedScript:
        try:
            stream = tokenize(source)
        except TokenizeError as e:
            location = SourceLocation(file=source_file, line=e.line, column=e.column, start=e.pos, end=e.pos + 1)
            raise ParseError(e.message, source_file, location, source_code=source) from e

        try:
            tree = self._parse_stream(stream, source)
        except UnexpectedToken as e:
            raise self._unexpected_token(e, source, source_file) from e
        except UnexpectedInput as e:
            location = SourceLocation(file=source_file, line=e.line, column=e.column)
            raise ParseError("unexpected input", source_file, location, source_code=source) from e

        logger.debug(f"parsed {source_file}: {len(stream.tokens)} tokens")
        return ParsedScript(tree=tree, source=source, source_file=source_file, tokens=stream)

    def _parse_stream(self, stream: TokenStream, source: str) -> Tree:
        interactive = self.lark.parse_interactive(source)
        previous: Optional[Token] = None
        for token in stream.tokens:
            if previous is not None and previous.type in _RESTRICTED_TYPES and stream.follows_newline(token):
                previous = _virtual_semicolon(previous)
                interactive.feed_token(previous)
            self._feed(interactive, token, previous, stream)
            previous = token

        end = Token.new_borrow_pos('$END', '', previous) if previous is not None else \
            Token('$END', '', start_pos=0, line=1, column=1, end_line=1, end_column=1, end_pos=0)
        try:
            return interactive.feed_token(end)
        except UnexpectedToken as e:
            if previous is None or '_SEMI' not in e.expected:
                raise
        interactive.feed_token(_virtual_semicolon(previous))
        return interactive.feed_token(end)

    def _feed(self, interactive, token: Token, previous: Optional[Token], stream: TokenStream) -> None:
        try:
            interactive.feed_token(token)
            return
        except UnexpectedToken as e:
            insertable = (
                previous is not None
                and '_SEMI' in e.expected
                and (token.type == '_RBRACE' or stream.follows_newline(token))
            )
            if not insertable:
                raise
            original = e
        try:
            interactive.feed_token(_virtual_semicolon(previous))
        except UnexpectedToken:
            raise original
        interactive.feed_token(token)

    def _unexpected_token(self, e: UnexpectedToken, source: str, source_file: str) -> ParseError:
        token = e.token
        if token.type == '$END':
            message = "unexpected end of input"
        else:
            message = f"unexpected token {token.value!r}"
        expected = sorted(_TOKEN_DESCRIPTIONS[t] for t in e.expected if t in _TOKEN_DESCRIPTIONS)
        label = f"expected one of: {', '.join(expected)}" if expected else None
        location = SourceLocation.from_token(source_file, token)
        return ParseError(message, source_file, location, source_code=source, label=label)


def _virtual_semicolon(after: Token) -> Token:
    """Zero-width semicolon placed right after `after`."""
    return Token('_SEMI', '', start_pos=after.end_pos, line=after.end_line, column=after.end_column,
                 end_line=after.end_line, end_column=after.end_column, end_pos=after.end_pos)


def parse(source: str, source_file: str = "<input>") -> ParsedScript:
    """Parse one script module."""
    return Parser().parse(source, source_file)
