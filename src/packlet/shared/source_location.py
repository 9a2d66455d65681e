"""
Source Location (Span)

Pattern: a byte span plus line/column pair, as carried by lark tokens
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Source location of a token or syntax node.

    - File, line, column (1-based, like lark)
    - start/end are character offsets into the file text
    - Immutable (frozen) for hashability
    """
    file: str
    line: int
    column: int
    start: int = 0
    end: int = 0
    end_line: int = 0
    end_column: int = 0

    @classmethod
    def from_token(cls, file: str, token) -> "SourceLocation":
        """Build a location from a lark Token (or any object with lark meta fields)."""
        return cls(
            file=file,
            line=token.line,
            column=token.column,
            start=token.start_pos or 0,
            end=token.end_pos or 0,
            end_line=token.end_line or 0,
            end_column=token.end_column or 0,
        )

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"
