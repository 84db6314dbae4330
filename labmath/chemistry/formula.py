"""Parse chemical formula strings into elemental compositions.

Grammar handled here:
    formula   := segment (SEP segment)*
    segment   := [multiplier] group*
    group     := ELEMENT [count] | OPEN group* CLOSE [count]

``SEP`` is any hydrate separator (``·``, ``*``, ``•`` or ``.``), ``OPEN`` and
``CLOSE`` are ``(``/``[`` and ``)``/``]``. Round and square brackets are
interchangeable; no bracket type is remembered, so ``(OH]`` is accepted the
same way ``(OH)`` is.

Examples:
    ``Ca(OH)2``        -> {"Ca": 1, "O": 2, "H": 2}
    ``CuSO4·5H2O``     -> {"Cu": 1, "S": 1, "O": 9, "H": 10}
    ``Fe2[Fe(CN)6]3``  -> {"Fe": 5, "C": 18, "N": 18}

The hydrate multiplier applies only to its own segment: in ``CuSO4·5H2O`` the
``5`` scales ``H2O`` and leaves ``CuSO4`` untouched.
"""

from __future__ import annotations

import logging
import re
import string
from typing import Dict, List, NamedTuple, Tuple

from labmath.chemistry.periodic_table import is_element
from labmath.errors import InvalidFormulaSyntax, UnbalancedGroup, UnknownElement

logger = logging.getLogger(__name__)

Composition = Dict[str, int]

HYDRATE_SEPARATORS: Tuple[str, ...] = ("·", "*", "•", ".")
_SEPARATOR = "."

_OPENERS = "(["
_CLOSERS = ")]"

_FORMULA_LIKE = re.compile(r"^[A-Za-z0-9()\[\]·*•.]+$")


class Token(NamedTuple):
    kind: str  # "element", "count", "open" or "close"
    text: str
    position: int


def _normalize_separators(formula: str) -> str:
    for sep in HYDRATE_SEPARATORS:
        formula = formula.replace(sep, _SEPARATOR)
    return formula


def tokenize(text: str, offset: int = 0, formula: str = "") -> List[Token]:
    """Split one segment into element, count and bracket tokens.

    Each character is classified as it is scanned, so the returned tokens
    always cover ``text`` exactly; anything the scanner cannot classify raises
    immediately with its position.

    Args:
        text: The segment to scan (multiplier already removed).
        offset: Position of ``text`` within the full formula, used for error
            reporting.
        formula: The full formula, used for error reporting.

    Returns:
        list[Token]: Tokens in input order.

    Raises:
        InvalidFormulaSyntax: On any character outside the grammar, including
            a lowercase letter that does not follow an uppercase one.
    """
    tokens: List[Token] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        start = i
        if ch in string.ascii_uppercase:
            i += 1
            if i < n and text[i] in string.ascii_lowercase:
                i += 1
            tokens.append(Token("element", text[start:i], offset + start))
        elif ch in string.digits:
            while i < n and text[i] in string.digits:
                i += 1
            tokens.append(Token("count", text[start:i], offset + start))
        elif ch in _OPENERS:
            i += 1
            tokens.append(Token("open", ch, offset + start))
        elif ch in _CLOSERS:
            i += 1
            tokens.append(Token("close", ch, offset + start))
        else:
            raise InvalidFormulaSyntax(
                f"Invalid formula: unexpected {ch!r} at position {offset + start}",
                formula=formula,
                position=offset + start,
            )
    return tokens


def _split_multiplier(segment: str, offset: int, formula: str) -> Tuple[int, str]:
    """Separate a leading hydrate multiplier from the rest of a segment."""
    digits = len(segment) - len(segment.lstrip(string.digits))
    if digits == 0:
        return 1, segment
    remainder = segment[digits:]
    if not remainder or remainder.isdigit():
        return 1, segment
    multiplier = int(segment[:digits])
    if multiplier == 0:
        raise InvalidFormulaSyntax(
            f"Invalid formula: zero multiplier at position {offset}",
            formula=formula,
            position=offset,
        )
    return multiplier, remainder


def _read_count(tokens: List[Token], i: int, formula: str) -> Tuple[int, int]:
    """Return ``(count, next_index)`` for an optional count after index ``i``."""
    if i + 1 < len(tokens) and tokens[i + 1].kind == "count":
        value = int(tokens[i + 1].text)
        if value == 0:
            raise InvalidFormulaSyntax(
                f"Invalid formula: zero count at position {tokens[i + 1].position}",
                formula=formula,
                position=tokens[i + 1].position,
            )
        return value, i + 2
    return 1, i + 1


def _merge(target: Composition, source: Composition, factor: int) -> None:
    for symbol, count in source.items():
        target[symbol] = target.get(symbol, 0) + count * factor


def _parse_segment(tokens: List[Token], formula: str) -> Composition:
    stack: List[Composition] = [{}]
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.kind == "open":
            stack.append({})
            i += 1
        elif token.kind == "close":
            top = stack.pop()
            if not stack:
                raise UnbalancedGroup(formula)
            group_mult, i = _read_count(tokens, i, formula)
            _merge(stack[-1], top, group_mult)
        elif token.kind == "element":
            if not is_element(token.text):
                raise UnknownElement(token.text, formula)
            count, i = _read_count(tokens, i, formula)
            current = stack[-1]
            current[token.text] = current.get(token.text, 0) + count
        else:
            raise InvalidFormulaSyntax(
                f"Invalid formula: count {token.text!r} at position "
                f"{token.position} does not follow an element or group",
                formula=formula,
                position=token.position,
            )

    if len(stack) != 1:
        raise UnbalancedGroup(formula)
    return stack[0]


def parse_formula(formula: str) -> Composition:
    """Parse a chemical formula into an element -> count mapping.

    Args:
        formula: Formula string such as ``"H2O"``, ``"Ca(OH)2"`` or
            ``"MgSO4·7H2O"``. Surrounding whitespace is ignored.

    Returns:
        dict[str, int]: Composition with every count >= 1.

    Raises:
        InvalidFormulaSyntax: Stray characters, empty segments, misplaced or
            zero counts, or a formula with no elements at all.
        UnknownElement: A well-formed symbol that is not in the periodic table.
        UnbalancedGroup: A closing bracket without an opener, or an opener
            left unclosed.
    """
    original = formula
    normalized = _normalize_separators(formula.strip())
    if not normalized:
        raise InvalidFormulaSyntax("Invalid formula: empty string", formula=original)

    total: Composition = {}
    offset = 0
    for segment in normalized.split(_SEPARATOR):
        if not segment:
            raise InvalidFormulaSyntax(
                f"Invalid formula: empty segment at position {offset}",
                formula=original,
                position=offset,
            )
        multiplier, remainder = _split_multiplier(segment, offset, original)
        skipped = len(segment) - len(remainder)
        tokens = tokenize(remainder, offset=offset + skipped, formula=original)
        _merge(total, _parse_segment(tokens, original), multiplier)
        offset += len(segment) + 1

    if not total:
        raise InvalidFormulaSyntax(
            "Invalid formula: no elements found", formula=original
        )

    logger.debug("Parsed formula %r -> %s", original, total)
    return total


def looks_like_formula(text: str) -> bool:
    """Cheap check for whether ``text`` is worth trying as a formula.

    Names such as ``"sodium chloride"`` fail immediately; ``"NaCl"`` passes.
    Passing does not guarantee :func:`parse_formula` will succeed.
    """
    text = text.strip()
    return bool(_FORMULA_LIKE.match(text)) and any(c.isupper() for c in text)


def hill_formula(composition: Composition) -> str:
    """Render a composition in Hill order.

    Carbon first, hydrogen second, then the remaining symbols alphabetically.
    Without carbon every symbol, hydrogen included, is alphabetical.
    """
    symbols = sorted(composition)
    if "C" in composition:
        rest = [s for s in symbols if s not in ("C", "H")]
        symbols = ["C"] + (["H"] if "H" in composition else []) + rest
    parts = []
    for symbol in symbols:
        count = composition[symbol]
        parts.append(symbol if count == 1 else f"{symbol}{count}")
    return "".join(parts)
