"""Ordering and text relevance for post listings.

The store hands back the active partition newest-first; the listing modes
re-order it here:
- All: caller-selected ``PostSort``
- Trending: likes, then comments, then recency (all descending)
- Search: relevance score descending, recency breaks ties
"""

import re
from dataclasses import dataclass
from enum import Enum

from .models import Post


class PostSort(str, Enum):
    """Sort keys accepted by the post listing."""

    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_LIKED = "most_liked"
    MOST_COMMENTED = "most_commented"


def sort_posts(posts: list[Post], sort: PostSort) -> list[Post]:
    """Order posts by the selected key.

    Counter sorts fall back to newest-first among equal counts.
    """
    if sort == PostSort.OLDEST:
        return sorted(posts, key=lambda p: p.created_at)
    if sort == PostSort.MOST_LIKED:
        return sorted(posts, key=lambda p: (p.likes_count, p.created_at), reverse=True)
    if sort == PostSort.MOST_COMMENTED:
        return sorted(
            posts, key=lambda p: (p.comments_count, p.created_at), reverse=True
        )
    return sorted(posts, key=lambda p: p.created_at, reverse=True)


def order_trending(posts: list[Post]) -> list[Post]:
    """Order by (likes_count, comments_count, created_at), all descending."""
    return sorted(
        posts,
        key=lambda p: (p.likes_count, p.comments_count, p.created_at),
        reverse=True,
    )


# ==============================================================================
# Text search
# ==============================================================================

STOP_WORDS = frozenset(
    {
        "a", "about", "an", "and", "are", "as", "at", "be", "but", "by",
        "can", "do", "for", "from", "has", "have", "how", "i", "if", "in",
        "is", "it", "its", "me", "my", "no", "not", "of", "on", "or", "our",
        "so", "that", "the", "their", "there", "this", "to", "was", "we",
        "were", "what", "when", "where", "which", "who", "will", "with",
        "you", "your",
    }
)  # fmt: skip

FIELD_WEIGHTS = {"title": 3.0, "tags": 2.0, "content": 1.0}

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)
_PHRASE_PATTERN = re.compile(r'"([^"]*)"')
_MIN_STEM = 3


def stem(word: str) -> str:
    """Strip common English inflections ("studies" -> "study", "exams" -> "exam")."""
    if word.endswith(("ies", "ied")) and len(word) - 3 >= _MIN_STEM - 1:
        return word[:-3] + "y"
    for suffix in ("ing", "ed"):
        if word.endswith(suffix) and len(word) - len(suffix) >= _MIN_STEM:
            return word[: -len(suffix)]
    if (
        word.endswith("s")
        and not word.endswith(("ss", "us", "is"))
        and len(word) - 1 >= _MIN_STEM
    ):
        return word[:-1]
    return word


def tokenize(text: str) -> list[str]:
    """Lower-case, split into words, drop stop words, stem."""
    return [
        stem(token)
        for token in _TOKEN_PATTERN.findall(text.lower())
        if token not in STOP_WORDS
    ]


@dataclass(frozen=True)
class SearchQuery:
    """Parsed free-text query.

    ``word`` terms are OR-ed, ``"a phrase"`` must appear verbatim and
    ``-word`` excludes posts containing it.
    """

    terms: tuple[str, ...]
    phrases: tuple[str, ...]
    excluded: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> "SearchQuery":
        """Parse the raw ``q`` parameter."""
        phrases = tuple(
            p.strip().lower() for p in _PHRASE_PATTERN.findall(text) if p.strip()
        )
        remainder = _PHRASE_PATTERN.sub(" ", text)

        terms: list[str] = []
        excluded: list[str] = []
        for word in remainder.split():
            target = excluded if word.startswith("-") else terms
            target.extend(tokenize(word.lstrip("-")))

        for phrase in phrases:
            terms.extend(tokenize(phrase))

        return cls(
            terms=tuple(dict.fromkeys(terms)),
            phrases=phrases,
            excluded=tuple(dict.fromkeys(excluded)),
        )

    @property
    def is_empty(self) -> bool:
        """True when nothing searchable is left (blank or only stop words)."""
        return not self.terms and not self.phrases


def relevance(post: Post, query: SearchQuery) -> float:
    """Score ``post`` against ``query``; 0.0 means no match.

    Each matched term adds ``weight * (0.5 + 0.5 * freq / field_tokens)``
    for every field it occurs in.
    """
    fields = {
        "title": post.title,
        "tags": " ".join(post.tags),
        "content": post.content,
    }
    tokens = {name: tokenize(text) for name, text in fields.items()}
    all_tokens = {token for field_tokens in tokens.values() for token in field_tokens}

    if any(term in all_tokens for term in query.excluded):
        return 0.0

    lowered = " ".join(fields.values()).lower()
    if any(phrase not in lowered for phrase in query.phrases):
        return 0.0

    score = 0.0
    for name, field_tokens in tokens.items():
        if not field_tokens:
            continue
        for term in query.terms:
            freq = field_tokens.count(term)
            if freq:
                score += FIELD_WEIGHTS[name] * (0.5 + 0.5 * freq / len(field_tokens))

    return score


def rank_by_relevance(posts: list[Post], query: SearchQuery) -> list[Post]:
    """Matching posts, most relevant first (newest first among equal scores)."""
    scored = [(relevance(post, query), post) for post in posts]
    matching = [(score, post) for score, post in scored if score > 0]
    matching.sort(key=lambda item: (item[0], item[1].created_at), reverse=True)
    return [post for _, post in matching]
