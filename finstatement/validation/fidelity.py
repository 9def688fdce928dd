"""
Numeric fidelity checks between source and reformatted table markup.

Reformatting may repair tags and spacing, but every number visible in the
source table must survive into the output unchanged.
"""

import re

from bs4 import BeautifulSoup

from ..core.exceptions import NumericDriftDetected
from ..infrastructure.logger import get_logger

logger = get_logger("finstatement.validation.fidelity")

# Maximal numeric token: a digit run with thousands/decimal separators and an
# optional percent sign, never ending on a separator. A leading minus sign or
# wrapping accounting parentheses belong to the token, so a sign flip is drift.
# Unit suffixes are not anchored against: "$12.5M" yields "12.5".
NUMERIC_TOKEN_RE = re.compile(
    r"(?<![\w.,])"
    r"(?:\(\s*[-−]?\d(?:[\d.,]*\d)?%?\s*\)"
    r"|[-−]?\d(?:[\d.,]*\d)?%?)"
)


def markup_text(content: str) -> str:
    """Visible text of (possibly malformed) markup, one space between nodes."""
    soup = BeautifulSoup(content, "lxml")
    return soup.get_text(" ")


def extract_numeric_tokens(content: str) -> list[str]:
    """
    Extract maximal numeric tokens from the visible text of `content`.

    Tag names and attribute values (h1, colspan="2") are ignored.

    Returns:
        Unique tokens in order of first appearance (e.g. ["1,234.56", "(87)", "42%"]).
    """
    # Whitespace inside parentheses comes from tag boundaries, not the value
    tokens = ["".join(token.split()) for token in NUMERIC_TOKEN_RE.findall(markup_text(content))]
    return list(dict.fromkeys(tokens))


def find_missing_numeric_tokens(source: str, output: str) -> list[str]:
    """Numeric tokens present in `source` but absent from `output`."""
    output_tokens = set(extract_numeric_tokens(output))
    return [token for token in extract_numeric_tokens(source) if token not in output_tokens]


def check_numeric_fidelity(source: str, output: str) -> None:
    """
    Verify `output` keeps every numeric token of `source`.

    Raises:
        NumericDriftDetected: If any token was dropped or altered.
    """
    missing = find_missing_numeric_tokens(source, output)
    if missing:
        logger.error(f"Numeric drift detected: {len(missing)} value(s) missing: {missing[:10]}")
        raise NumericDriftDetected(missing)
