"""JavaScript front-end: tokenizer, lark LALR grammar, parser and source editor."""

from .lexer import Tokenizer, TokenStream, tokenize, decode_string_literal
from .parser import Parser, ParsedScript, ParseError, parse
from .editor import SourceEditor, span

__all__ = [
    'Tokenizer',
    'TokenStream',
    'tokenize',
    'decode_string_literal',
    'Parser',
    'ParsedScript',
    'ParseError',
    'parse',
    'SourceEditor',
    'span',
]
