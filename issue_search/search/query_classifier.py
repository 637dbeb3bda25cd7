"""
Search - Query Classifier

Splits a raw query into explicit issue references and free text.

Recognized references:
    #123, owner/repo#123, repo#123   hash references anywhere in the query
    host/owner/repo#123              longer paths keep only owner/repo
    issue 123, issues #123           keyword references anywhere in the query
    123, "12 15"                     bare numbers, only when the query is
                                     nothing but numbers

Whatever is left after removing the references becomes the semantic query.
"""

import re
from typing import FrozenSet, NamedTuple, Optional

ISSUE_KEYWORDS = {"issue", "issues"}

# Repository prefix must be glued to the hash so "crash #12" is not read as repo "crash".
# Longer paths such as "host/owner/repo#12" are accepted; only "owner/repo" is kept.
HASH_REFERENCE = re.compile(
    r"(?<![\w#/.\-])(?P<repo>[\w.\-]+(?:/[\w.\-]+)*)?#(?P<num>[0-9]+)\b"
)
KEYWORD_REFERENCE = re.compile(
    r"\bissues?\s*#?(?P<num>[0-9]+)\b", re.IGNORECASE
)
NUMBERS_ONLY = re.compile(r"^#?[0-9]+(?:[\s,]+#?[0-9]+)*$")
DIGITS = re.compile(r"[0-9]+")


class ClassifiedQuery(NamedTuple):
    """Issue references and free text extracted from a raw query."""
    issue_numbers: FrozenSet[int]
    semantic_query: Optional[str]
    repository_name: Optional[str] = None


def classify(raw_query: Optional[str]) -> ClassifiedQuery:
    """
    Classify a raw search query.

    Args:
        raw_query: Text typed by the user; None and blank are allowed

    Returns:
        ClassifiedQuery with parsed issue numbers, the remaining free text
        (None when nothing is left) and the repository attached to the first
        repo#N reference, if any
    """
    if raw_query is None or not raw_query.strip():
        return ClassifiedQuery(frozenset(), None)

    text = raw_query.strip()

    if NUMBERS_ONLY.match(text):
        numbers = frozenset(int(n) for n in DIGITS.findall(text))
        return ClassifiedQuery(numbers, None)

    numbers = set()
    repositories = []

    def take_keyword(match: re.Match) -> str:
        numbers.add(int(match.group("num")))
        return " "

    def take_hash(match: re.Match) -> str:
        repo = match.group("repo")
        if repo and repo.lower() not in ISSUE_KEYWORDS:
            repositories.append("/".join(repo.split("/")[-2:]))
        numbers.add(int(match.group("num")))
        return " "

    remainder = KEYWORD_REFERENCE.sub(take_keyword, text)
    remainder = HASH_REFERENCE.sub(take_hash, remainder)

    semantic_query = " ".join(remainder.split()) or None
    repository_name = repositories[0] if repositories else None

    return ClassifiedQuery(frozenset(numbers), semantic_query, repository_name)
