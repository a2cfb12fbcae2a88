"""
Positional placeholder binding.

Statements are written with ``?`` placeholders on every backend. They are
rewritten into the driver's own paramstyle and executed as driver SQL, so
the statement text reaches the database untouched apart from the
placeholders themselves (and ``%`` doubling where the driver formats with
``%``). Placeholders inside quoted literals and comments are not counted.
"""

from typing import Any, Optional, Sequence, Tuple

_QUOTES = ("'", '"', "`")
PLACEHOLDERS = {"qmark": "?", "format": "%s"}


def _quoted_end(stmt: str, pos: int, backslash_escapes: bool) -> int:
    """Index just past the literal opened at ``pos``."""
    quote = stmt[pos]
    i = pos + 1
    while i < len(stmt):
        char = stmt[i]
        if backslash_escapes and char == "\\":
            i += 2
            continue
        if char == quote:
            # Doubled quote stays inside the literal
            if stmt[i + 1:i + 2] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return len(stmt)


def _line_comment_at(stmt: str, pos: int, mysql_comments: bool) -> bool:
    if mysql_comments:
        if stmt[pos] == "#":
            return True
        # MySQL needs whitespace after the dashes
        return stmt.startswith("--", pos) and (
            pos + 2 == len(stmt) or stmt[pos + 2].isspace()
        )
    return stmt.startswith("--", pos)


def bind_positional(
    stmt: str,
    args: Optional[Sequence[Any]] = (),
    paramstyle: str = "qmark",
    backslash_escapes: bool = False,
    mysql_comments: bool = False,
) -> Tuple[str, Tuple[Any, ...]]:
    """
    Turn a ``?`` statement into driver SQL and its positional parameters.

    Args:
        stmt: SQL statement with positional ``?`` placeholders
        args: Arguments, bound in declaration order
        paramstyle: ``qmark`` (``?``) or ``format`` (``%s``)
        backslash_escapes: Backslash escapes the next character in literals
        mysql_comments: ``#`` starts a comment and ``--`` needs a space after it

    Returns:
        Tuple of (driver SQL, parameter tuple)

    Raises:
        ValueError: If placeholder and argument counts differ, or the
            paramstyle is unknown
    """
    if paramstyle not in PLACEHOLDERS:
        raise ValueError(f"unsupported paramstyle: {paramstyle}")
    params = tuple(args or ())
    marker = PLACEHOLDERS[paramstyle]
    # format drivers only %-interpolate when parameters are passed
    double_percent = paramstyle == "format" and bool(params)

    pieces = []
    count = 0
    pos = 0
    length = len(stmt)
    while pos < length:
        char = stmt[pos]
        if char in _QUOTES:
            end = _quoted_end(stmt, pos, backslash_escapes)
        elif _line_comment_at(stmt, pos, mysql_comments):
            end = stmt.find("\n", pos)
            end = length if end < 0 else end
        elif stmt.startswith("/*", pos):
            end = stmt.find("*/", pos + 2)
            end = length if end < 0 else end + 2
        elif char == "?":
            pieces.append(marker)
            count += 1
            pos += 1
            continue
        else:
            end = pos + 1
        chunk = stmt[pos:end]
        pieces.append(chunk.replace("%", "%%") if double_percent else chunk)
        pos = end

    if count != len(params):
        raise ValueError(
            f"statement has {count} placeholder(s) but {len(params)} argument(s) given"
        )
    return "".join(pieces), params
