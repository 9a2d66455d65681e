"""
JavaScript Tokenizer

Scans module source into lark Tokens for the LALR grammar in grammar.lark.

Regex literals, template literals and contextual keywords (get, set, static,
async, of, from, as) are decided by neighbouring tokens, which lark's regex
driven lexers cannot see. The tokenizer therefore runs ahead of the parser and
`frontend.parser` feeds the finished token list through lark's interactive
parser, inserting semicolons where the language allows them to be omitted.

Terminal naming follows grammar.lark: punctuators carry a leading underscore
(filtered out of the tree), keywords and literals are kept.
"""

import bisect
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Set

from lark import Token
from lark.lexer import Lexer

logger = logging.getLogger(__name__)


KEYWORDS = {
    'var': 'VAR', 'let': 'LET', 'const': 'CONST',
    'function': 'FUNCTION', 'class': 'CLASS', 'extends': 'EXTENDS',
    'return': 'RETURN', 'if': 'IF', 'else': 'ELSE',
    'for': 'FOR', 'while': 'WHILE', 'do': 'DO',
    'break': 'BREAK', 'continue': 'CONTINUE',
    'switch': 'SWITCH', 'case': 'CASE', 'default': 'DEFAULT',
    'throw': 'THROW', 'try': 'TRY', 'catch': 'CATCH', 'finally': 'FINALLY',
    'new': 'NEW', 'delete': 'DELETE', 'typeof': 'TYPEOF', 'void': 'VOID',
    'instanceof': 'INSTANCEOF', 'in': 'IN',
    'this': 'THIS', 'super': 'SUPER', 'null': 'NULL', 'true': 'TRUE', 'false': 'FALSE',
    'import': 'IMPORT', 'export': 'EXPORT',
    'await': 'AWAIT', 'yield': 'YIELD', 'debugger': 'DEBUGGER',
}
KEYWORD_TYPES = frozenset(KEYWORDS.values())

# Words that are identifiers unless their neighbours make them keywords
CONTEXTUAL_WORDS = frozenset({'get', 'set', 'static', 'async', 'of', 'from', 'as'})

PUNCTUATORS = {
    '{': '_LBRACE', '}': '_RBRACE', '(': '_LPAR', ')': '_RPAR', '[': '_LSQB', ']': '_RSQB',
    ';': '_SEMI', ',': '_COMMA', '.': '_DOT', '?.': '_OPTDOT', '...': '_ELLIPSIS',
    '=>': '_ARROW', ':': '_COLON', '?': '_QMARK', '=': '_ASSIGN',
    '||': '_OR', '??': '_NULLISH', '&&': '_AND',
    '|': '_BITOR', '^': '_BITXOR', '&': '_BITAND',
    '+': '_PLUS', '-': '_MINUS', '*': '_STAR', '/': '_SLASH', '%': '_PERCENT', '**': '_EXP',
    '!': '_BANG', '~': '_TILDE', '++': '_INCDEC', '--': '_INCDEC',
}
for _op in ('+=', '-=', '*=', '/=', '%=', '**=', '<<=', '>>=', '>>>=',
            '&=', '|=', '^=', '&&=', '||=', '??='):
    PUNCTUATORS[_op] = '_ASSIGN_OP'
for _op in ('==', '!=', '===', '!=='):
    PUNCTUATORS[_op] = '_EQUALITY'
for _op in ('<', '>', '<=', '>='):
    PUNCTUATORS[_op] = '_RELATIONAL'
for _op in ('<<', '>>', '>>>'):
    PUNCTUATORS[_op] = '_SHIFT'

LINE_TERMINATORS = '\n\r\u2028\u2029'

_PUNCTUATOR_RE = re.compile('|'.join(re.escape(p) for p in sorted(PUNCTUATORS, key=len, reverse=True)))
_WHITESPACE_RE = re.compile(r'[ \t\v\f\u00a0\ufeff\u1680\u2000-\u200a\u202f\u205f\u3000]+')
_LINE_BREAK_RE = re.compile(r'\r\n|[\n\r\u2028\u2029]')
_LINE_COMMENT_RE = re.compile(r'//[^\n\r\u2028\u2029]*')
_HASHBANG_RE = re.compile(r'#![^\n\r\u2028\u2029]*')
_IDENT_RE = re.compile(r'(?:[^\W\d]|\$)(?:\w|\$|\u200c|\u200d)*')
_NUMBER_RE = re.compile(
    r'0[xX][0-9a-fA-F_]+n?|0[oO][0-7_]+n?|0[bB][01_]+n?'
    r'|\d[\d_]*(?:\.[\d_]*)?(?:[eE][+-]?\d[\d_]*)?n?'
    r'|\.\d[\d_]*(?:[eE][+-]?\d[\d_]*)?'
)
_STRING_RE = {
    '"': re.compile(r'"(?:[^"\\\n\r]|\\(?:\r\n|[\s\S]))*"'),
    "'": re.compile(r"'(?:[^'\\\n\r]|\\(?:\r\n|[\s\S]))*'"),
}
_REGEX_FLAGS_RE = re.compile(r'[A-Za-z]*')

# A '/' after one of these is division, anywhere else it opens a regex literal
_OPERAND_END_TYPES = frozenset({
    'IDENT', 'PRIVATE_NAME', 'NUMBER', 'STRING', 'REGEX',
    'NO_SUBST_TEMPLATE', 'TEMPLATE_TAIL', '_RPAR', '_RSQB',
    'THIS', 'SUPER', 'NULL', 'TRUE', 'FALSE', '_INCDEC', '_INCDEC_NL',
})

# A ')' closing the head of one of these starts a statement, not an operand
_CONTROL_HEAD_TYPES = frozenset({'IF', 'WHILE', 'FOR'})

# Tokens after which a class or object member may start
_MEMBER_START_TYPES = frozenset({'_LBRACE', '_RBRACE', '_SEMI', '_COMMA', 'STATIC'})

# Tokens that may appear inside `import ... from` / `export ... from` clauses
_MODULE_CLAUSE_TYPES = frozenset({'IDENT', 'STRING', '_COMMA', '_LBRACE', '_RBRACE', '_STAR', 'AS'})


class TokenizeError(Exception):
    """Raised for text that cannot start any token."""

    def __init__(self, message: str, pos: int, line: int, column: int):
        super().__init__(message)
        self.message = message
        self.pos = pos
        self.line = line
        self.column = column


@dataclass
class TokenStream:
    """Result of tokenizing one module."""
    tokens: List[Token]
    newline_before: Set[int] = field(default_factory=set)  # start_pos of tokens preceded by a line break
    hashbang_end: int = 0

    def follows_newline(self, token: Token) -> bool:
        return token.start_pos in self.newline_before


class _LineIndex:
    """Offset -> (line, column) lookup, both 1-based like lark."""

    def __init__(self, text: str):
        self.starts = [0] + [m.end() for m in _LINE_BREAK_RE.finditer(text)]

    def position(self, offset: int):
        i = bisect.bisect_right(self.starts, offset) - 1
        return i + 1, offset - self.starts[i] + 1


class Tokenizer:
    """
    Single-use scanner over one source text.

    Usage:
        stream = Tokenizer(source).tokenize()
    """

    def __init__(self, text: str):
        self.text = text
        self.lines = _LineIndex(text)
        self.tokens: List[Token] = []
        self.newline_before: Set[int] = set()
        self._pending_newline = False
        self._brace_stack: List[str] = []
        self._paren_stack: List[bool] = []
        self._control_head_ends: Set[int] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tokenize(self) -> TokenStream:
        hashbang_end = 0
        pos = 0
        if self.text.startswith('#!'):
            pos = hashbang_end = _HASHBANG_RE.match(self.text).end()
        length = len(self.text)
        while pos < length:
            pos = self._scan_one(pos)
        self._contextualize()
        logger.debug(f"tokenized {length} chars into {len(self.tokens)} tokens")
        return TokenStream(self.tokens, self.newline_before, hashbang_end)

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _scan_one(self, pos: int) -> int:
        text = self.text
        c = text[pos]

        if c in LINE_TERMINATORS:
            self._pending_newline = True
            return pos + 1
        m = _WHITESPACE_RE.match(text, pos)
        if m:
            return m.end()

        if c == '/':
            nxt = text[pos + 1:pos + 2]
            if nxt == '/':
                return _LINE_COMMENT_RE.match(text, pos).end()
            if nxt == '*':
                end = text.find('*/', pos + 2)
                if end < 0:
                    self._fail("unterminated comment", pos)
                if any(ch in LINE_TERMINATORS for ch in text[pos:end]):
                    self._pending_newline = True
                return end + 2
            if self._regex_allowed():
                return self._emit('REGEX', pos, self._scan_regex(pos))

        if c == '`':
            end, closed = self._scan_template(pos + 1)
            if closed:
                return self._emit('NO_SUBST_TEMPLATE', pos, end)
            self._brace_stack.append('template')
            return self._emit('TEMPLATE_HEAD', pos, end)

        if c == '}' and self._brace_stack and self._brace_stack[-1] == 'template':
            self._brace_stack.pop()
            end, closed = self._scan_template(pos + 1)
            if closed:
                return self._emit('TEMPLATE_TAIL', pos, end)
            self._brace_stack.append('template')
            return self._emit('TEMPLATE_MIDDLE', pos, end)

        if c in _STRING_RE:
            m = _STRING_RE[c].match(text, pos)
            if not m:
                self._fail("unterminated string literal", pos)
            return self._emit('STRING', pos, m.end())

        if c.isdigit() or (c == '.' and text[pos + 1:pos + 2].isdigit()):
            m = _NUMBER_RE.match(text, pos)
            return self._emit('NUMBER', pos, m.end())

        if c == '#':
            m = _IDENT_RE.match(text, pos + 1)
            if not m:
                self._fail("invalid private name", pos)
            return self._emit('PRIVATE_NAME', pos, m.end())

        m = _IDENT_RE.match(text, pos)
        if m:
            word = m.group()
            prev = self.tokens[-1] if self.tokens else None
            if prev is not None and prev.type in ('_DOT', '_OPTDOT'):
                kind = 'IDENT'
            else:
                kind = KEYWORDS.get(word, 'IDENT')
            return self._emit(kind, pos, m.end())

        m = _PUNCTUATOR_RE.match(text, pos)
        if m:
            value = m.group()
            if value == '?.' and text[pos + 2:pos + 3].isdigit():
                value = '?'
            kind = PUNCTUATORS[value]
            if value == '{':
                self._brace_stack.append('brace')
            elif value == '}' and self._brace_stack:
                self._brace_stack.pop()
            elif value == '(':
                self._paren_stack.append(self._opens_control_head())
            elif value == ')' and self._paren_stack:
                if self._paren_stack.pop():
                    self._control_head_ends.add(pos)
            elif kind == '_INCDEC' and self._pending_newline:
                kind = '_INCDEC_NL'
            return self._emit(kind, pos, pos + len(value))

        self._fail(f"unexpected character {c!r}", pos)

    def _regex_allowed(self) -> bool:
        if not self.tokens:
            return True
        last = self.tokens[-1]
        if last.type == '_RPAR':
            return last.start_pos in self._control_head_ends
        return last.type not in _OPERAND_END_TYPES

    def _opens_control_head(self) -> bool:
        """True when a '(' about to be emitted starts an if/while/for head."""
        if not self.tokens:
            return False
        prev = self.tokens[-1]
        if prev.type == 'AWAIT' and len(self.tokens) > 1:
            prev = self.tokens[-2]
        return prev.type in _CONTROL_HEAD_TYPES

    def _scan_regex(self, pos: int) -> int:
        text = self.text
        i = pos + 1
        in_class = False
        while i < len(text):
            ch = text[i]
            if ch in LINE_TERMINATORS:
                break
            if ch == '\\':
                i += 2
                continue
            if ch == '[':
                in_class = True
            elif ch == ']':
                in_class = False
            elif ch == '/' and not in_class:
                return _REGEX_FLAGS_RE.match(text, i + 1).end()
            i += 1
        self._fail("unterminated regular expression", pos)

    def _scan_template(self, pos: int):
        """Scan template characters from pos; returns (end, closed_by_backtick)."""
        text = self.text
        i = pos
        while i < len(text):
            ch = text[i]
            if ch == '\\':
                i += 2
                continue
            if ch == '`':
                return i + 1, True
            if ch == '$' and text[i + 1:i + 2] == '{':
                return i + 2, False
            i += 1
        self._fail("unterminated template literal", pos - 1)

    def _emit(self, kind: str, start: int, end: int) -> int:
        line, column = self.lines.position(start)
        end_line, end_column = self.lines.position(end)
        token = Token(kind, self.text[start:end], start_pos=start, line=line, column=column,
                      end_line=end_line, end_column=end_column, end_pos=end)
        if self._pending_newline:
            self.newline_before.add(start)
            self._pending_newline = False
        self.tokens.append(token)
        return end

    def _fail(self, message: str, pos: int):
        line, column = self.lines.position(pos)
        raise TokenizeError(message, pos, line, column)

    # ------------------------------------------------------------------
    # Contextual keywords
    # ------------------------------------------------------------------

    def _contextualize(self) -> None:
        tokens = self.tokens
        brackets: List[str] = []
        for i, tok in enumerate(tokens):
            kind = tok.type
            if kind == '_LPAR':
                brackets.append('for' if self._opens_for_head(i) else 'paren')
            elif kind in ('_LSQB', '_LBRACE', 'TEMPLATE_HEAD'):
                brackets.append('other')
            elif kind in ('_RPAR', '_RSQB', '_RBRACE', 'TEMPLATE_TAIL'):
                if brackets:
                    brackets.pop()
            elif kind == 'IDENT' and tok.value in CONTEXTUAL_WORDS:
                in_for_head = bool(brackets) and brackets[-1] == 'for'
                new_kind = self._contextual_kind(i, in_for_head)
                if new_kind is not None:
                    tokens[i] = Token.new_borrow_pos(new_kind, tok.value, tok)

    def _opens_for_head(self, i: int) -> bool:
        tokens = self.tokens
        if i >= 1 and tokens[i - 1].type == 'FOR':
            return True
        return i >= 2 and tokens[i - 1].type == 'AWAIT' and tokens[i - 2].type == 'FOR'

    def _contextual_kind(self, i: int, in_for_head: bool) -> Optional[str]:
        tokens = self.tokens
        tok = tokens[i]
        word = tok.value
        prev = tokens[i - 1] if i > 0 else None
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if prev is not None and prev.type in ('_DOT', '_OPTDOT'):
            return None
        same_line = nxt is not None and nxt.start_pos not in self.newline_before
        at_member_start = prev is None or prev.type in _MEMBER_START_TYPES or tok.start_pos in self.newline_before

        if word == 'of':
            if in_for_head and prev is not None and prev.type in ('IDENT', '_RSQB', '_RBRACE'):
                return 'OF'
            return None

        if word == 'from':
            if nxt is not None and nxt.type == 'STRING' and self._in_module_clause(i):
                return 'FROM'
            return None

        if word == 'as':
            if prev is None or not same_line or prev.type in ('IMPORT', 'EXPORT'):
                return None
            prev_ok = prev.type in ('IDENT', 'DEFAULT', '_STAR', 'STRING') or prev.type in KEYWORD_TYPES
            next_ok = nxt.type in ('IDENT', 'STRING') or nxt.type in KEYWORD_TYPES
            if prev_ok and next_ok and self._in_module_clause(i):
                return 'AS'
            return None

        if word in ('get', 'set'):
            if not same_line:
                return None
            if nxt.type in ('IDENT', 'STRING', 'NUMBER', 'PRIVATE_NAME'):
                if nxt.type == 'IDENT' and nxt.value == 'of' and in_for_head:
                    return None
                return word.upper()
            if nxt.type in KEYWORD_TYPES and nxt.type not in ('IN', 'INSTANCEOF'):
                return word.upper()
            if nxt.type == '_LSQB' and at_member_start:
                return word.upper()
            return None

        if word == 'static':
            if nxt is None or nxt.type in ('_LPAR', '_ASSIGN', '_SEMI', '_RBRACE', '_COLON', '_COMMA'):
                return None
            return 'STATIC' if at_member_start else None

        if word == 'async':
            if not same_line:
                return None
            if nxt.type in ('FUNCTION', '_STAR'):
                return 'ASYNC'
            if nxt.type == 'IDENT' or nxt.type in KEYWORD_TYPES:
                after = tokens[i + 2] if i + 2 < len(tokens) else None
                if after is not None and after.type in ('_ARROW', '_LPAR'):
                    return 'ASYNC'
                return None
            if nxt.type in ('STRING', 'NUMBER', 'PRIVATE_NAME', '_LSQB'):
                return 'ASYNC' if at_member_start else None
            if nxt.type == '_LPAR':
                close = self._matching_paren(i + 1)
                if close is not None and close + 1 < len(tokens) and tokens[close + 1].type == '_ARROW':
                    return 'ASYNC'
            return None

        return None

    def _in_module_clause(self, i: int) -> bool:
        """True when token i sits inside an import/export clause."""
        j = i - 1
        while j >= 0:
            kind = self.tokens[j].type
            if kind in ('IMPORT', 'EXPORT'):
                return True
            if kind not in _MODULE_CLAUSE_TYPES and kind not in KEYWORD_TYPES:
                return False
            j -= 1
        return False

    def _matching_paren(self, i: int) -> Optional[int]:
        depth = 0
        for j in range(i, len(self.tokens)):
            kind = self.tokens[j].type
            if kind == '_LPAR':
                depth += 1
            elif kind == '_RPAR':
                depth -= 1
                if depth == 0:
                    return j
        return None


def tokenize(text: str) -> TokenStream:
    """Tokenize one module's source text."""
    return Tokenizer(text).tokenize()


# ----------------------------------------------------------------------
# Literal decoding
# ----------------------------------------------------------------------

_SIMPLE_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v'}


def decode_string_literal(raw: str) -> str:
    """Decode a quoted JavaScript string literal to its value."""
    body = raw[1:-1]
    out: List[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != '\\':
            out.append(ch)
            i += 1
            continue
        esc = body[i + 1]
        i += 2
        if esc in LINE_TERMINATORS:
            if esc == '\r' and body[i:i + 1] == '\n':
                i += 1
        elif esc == 'x':
            out.append(chr(int(body[i:i + 2], 16)))
            i += 2
        elif esc == 'u':
            if body[i:i + 1] == '{':
                close = body.index('}', i)
                out.append(chr(int(body[i + 1:close], 16)))
                i = close + 1
            else:
                out.append(chr(int(body[i:i + 4], 16)))
                i += 4
        elif esc == '0' and not body[i:i + 1].isdigit():
            out.append('\0')
        else:
            out.append(_SIMPLE_ESCAPES.get(esc, esc))
    return ''.join(out)


# ----------------------------------------------------------------------
# lark adapter
# ----------------------------------------------------------------------

class JavaScriptLexer(Lexer):
    """
    Custom lark lexer backed by Tokenizer.

    Lets `Lark.parse` consume source text directly. Parser itself drives the
    interactive parser instead so it can insert semicolons.
    """

    def __init__(self, lexer_conf):
        pass

    def lex(self, data):
        return iter(tokenize(data).tokens)
