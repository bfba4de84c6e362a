"""
Content Classifier for browsing-history entries.

Decides whether a visited page (title + URL) is learning content and extracts
tags, keywords, a primary topic and a one-sentence summary.

Checks run in this order:
1. Video platform detection (URL)
2. Exclusion rules (non-learning domains and account/shopping URL paths).
   An excluded page short-circuits with a terminal result and is never
   flagged as video.
3. Inclusion signals: learning domain, learning-intent regex, learning-type
   keyword in the title
4. Category keyword extraction (first matching category is the provisional
   primary topic)
5. Learning-type and URL-derived tags
6. Fuzzy topic refinement (bigram similarity of title vs category keywords,
   wins over step 4 when above MIN_TOPIC_SIMILARITY)
7. Exclusion-vocabulary filtering, de-duplication and summary

Vocabularies are configurable (learntrack/config/content_rules.yaml); regex rules are
hardcoded below.

Pattern: Configuration-Driven Classifier with bounded LRU memoization
"""

from __future__ import annotations

import re
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Protocol, runtime_checkable

import yaml  # type: ignore[import-untyped]

from learntrack.classifiers.similarity import best_similarity
from learntrack.core.config import CONFIG_DIR
from learntrack.core.exceptions import ContentRulesConfigError
from learntrack.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_RULES_PATH = CONFIG_DIR / "content_rules.yaml"
DEFAULT_CACHE_SIZE: Final[int] = 1024

DEFAULT_TOPIC: Final[str] = "General"
EXCLUDED_TOPIC: Final[str] = "Excluded"
EXCLUDED_SUMMARY: Final[str] = "Non-learning content"
DEFAULT_RESOURCE_TYPE: Final[str] = "learning resource"
RESOURCE_TYPE_TAGS: Final[tuple[str, ...]] = ("tutorial", "course", "documentation")
SUMMARY_TAG_LIMIT: Final[int] = 3

MIN_TOPIC_SIMILARITY: Final[float] = 0.3

REQUIRED_SECTIONS: Final[tuple[str, ...]] = (
    "categories",
    "learning_keywords",
    "exclude_terms",
    "learning_domains",
    "non_learning_domains",
    "video_platforms",
)

LEARNING_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"tutorial",
        r"guide",
        r"documentation",
        r"learn",
        r"course",
        r"lesson",
        r"how-to",
        r"getting-started",
        r"examples?",
        r"reference",
        r"api",
        r"docs?",
        r"manual",
        r"handbook",
        r"book",
        r"article",
        r"blog",
        r"post",
        r"explanation",
        r"overview",
    )
)

# Account, shopping and checkout paths directly under the host
NON_LEARNING_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(rf"^https?://[^/]+/{segment}", re.IGNORECASE)
    for segment in (
        "login",
        "signup",
        "account",
        "profile",
        "settings",
        "cart",
        "checkout",
        "payment",
        "order",
        "shipping",
    )
)

# (url substrings, tags) - first matching rule wins
DOMAIN_TAG_RULES: Final[tuple[tuple[tuple[str, ...], tuple[str, ...]], ...]] = (
    (("github.com",), ("code", "repository")),
    (("stackoverflow.com",), ("qa", "solution")),
    (("youtube.com", "youtu.be"), ("video",)),
    (("udemy.com", "coursera.org"), ("course",)),
)
VIDEO_TUTORIAL_HINT: Final[str] = "tutorial"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True, slots=True)
class ContentCategory:
    """A topical category with its trigger keywords and emitted tags."""

    name: str
    keywords: tuple[str, ...]
    tags: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ContentRules:
    """Vocabularies driving the classifier, loaded once from YAML."""

    categories: tuple[ContentCategory, ...]
    learning_keywords: tuple[tuple[str, tuple[str, ...]], ...]
    exclude_terms: frozenset[str]
    learning_domains: tuple[str, ...]
    non_learning_domains: tuple[str, ...]
    video_platforms: tuple[str, ...]

    @classmethod
    def from_yaml(cls, path: Path) -> ContentRules:
        """Load and validate rules from a YAML file.

        Raises:
            ContentRulesConfigError: If the file is missing, unparsable, or
                lacks a required section.
        """
        if not path.exists():
            raise ContentRulesConfigError(f"Content rules file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ContentRulesConfigError(f"Invalid YAML in content rules: {e}") from e

        if not isinstance(raw, dict):
            raise ContentRulesConfigError(f"Content rules must be a mapping: {path}")

        missing = [s for s in REQUIRED_SECTIONS if s not in raw]
        if missing:
            raise ContentRulesConfigError(
                f"Content rules missing sections: {', '.join(missing)}"
            )

        return cls.from_mapping(raw)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ContentRules:
        """Build rules from an already-parsed mapping."""
        try:
            categories = tuple(
                ContentCategory(
                    name=str(name),
                    keywords=_lowered(rule.get("keywords", [])),
                    tags=_lowered(rule.get("tags", [])),
                )
                for name, rule in raw["categories"].items()
            )
            learning_keywords = tuple(
                (str(kind), _lowered(words))
                for kind, words in raw["learning_keywords"].items()
            )
        except (AttributeError, TypeError) as e:
            raise ContentRulesConfigError(f"Malformed content rules: {e}") from e

        return cls(
            categories=categories,
            learning_keywords=learning_keywords,
            exclude_terms=frozenset(_lowered(raw["exclude_terms"])),
            learning_domains=_lowered(raw["learning_domains"]),
            non_learning_domains=_lowered(raw["non_learning_domains"]),
            video_platforms=_lowered(raw["video_platforms"]),
        )


def _lowered(values: Any) -> tuple[str, ...]:
    # YAML turns bare words like "on"/"yes" into booleans, so stringify first
    return tuple(str(v).lower() for v in values or ())


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Result of classifying a single page.

    Attributes:
        tags: De-duplicated lowercase tags, in discovery order
        keywords: De-duplicated matched category keywords
        primary_topic: Capitalized category name, "General" or "Excluded"
        summary: Templated one-paragraph description
        is_learning_content: False means the caller should discard the page
        is_video: URL is on a known video platform (never True when excluded)
    """

    tags: tuple[str, ...] = field(default_factory=tuple)
    keywords: tuple[str, ...] = field(default_factory=tuple)
    primary_topic: str = DEFAULT_TOPIC
    summary: str = ""
    is_learning_content: bool = False
    is_video: bool = False

    @property
    def is_excluded(self) -> bool:
        """Whether the page hit an exclusion rule."""
        return self.primary_topic == EXCLUDED_TOPIC


EXCLUDED_RESULT: Final[ClassificationResult] = ClassificationResult(
    tags=(),
    keywords=(),
    primary_topic=EXCLUDED_TOPIC,
    summary=EXCLUDED_SUMMARY,
    is_learning_content=False,
    is_video=False,
)


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class ContentClassifierProtocol(Protocol):
    """Protocol for content classifier implementations.

    Enables dependency injection and test doubles.
    """

    def classify(self, title: str, url: str) -> ClassificationResult:
        """Classify a page by title and URL."""
        ...


# =============================================================================
# Main Implementation
# =============================================================================


class ContentClassifier:
    """Rule-based learning-content classifier.

    Implements ContentClassifierProtocol. Results are memoized per exact
    (title, url) pair in a bounded LRU cache that is safe to share across
    request threads.

    Usage:
        classifier = ContentClassifier()
        result = classifier.classify("Python Tutorial", "https://docs.python.org")
        if result.is_learning_content:
            print(result.tags, result.primary_topic)
    """

    def __init__(
        self,
        rules: ContentRules | None = None,
        rules_path: Path | None = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        """Initialize the classifier.

        Args:
            rules: Pre-built rules. Loaded from rules_path when None.
            rules_path: YAML vocabulary path. Uses default if None.
            cache_size: Maximum memoized results; 0 disables caching.

        Raises:
            ContentRulesConfigError: If rules cannot be loaded
        """
        self._rules = rules or ContentRules.from_yaml(rules_path or DEFAULT_RULES_PATH)
        self._cache_size = max(cache_size, 0)
        self._cache: OrderedDict[tuple[str, str], ClassificationResult] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def rules(self) -> ContentRules:
        return self._rules

    def classify(self, title: str, url: str) -> ClassificationResult:
        """Classify a page, consulting the memoization cache first.

        Args:
            title: Page title (original case)
            url: Page URL (original case)

        Returns:
            ClassificationResult for the page
        """
        key = (title, url)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                self._hits += 1
                logger.debug("classification_cache_hit", title=title)
                return cached
            self._misses += 1

        result = self._classify_uncached(title, url)

        if self._cache_size:
            with self._lock:
                self._cache[key] = result
                self._cache.move_to_end(key)
                while len(self._cache) > self._cache_size:
                    self._cache.popitem(last=False)

        logger.debug(
            "page_classified",
            title=title,
            url=url,
            primary_topic=result.primary_topic,
            tags=list(result.tags),
            is_learning_content=result.is_learning_content,
            is_video=result.is_video,
        )
        return result

    def cache_info(self) -> dict[str, int]:
        """Return cache statistics (hits, misses, size, capacity)."""
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._cache),
                "capacity": self._cache_size,
            }

    def clear_cache(self) -> None:
        """Drop all memoized results and reset statistics."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    # -------------------------------------------------------------------------
    # Classification steps
    # -------------------------------------------------------------------------

    def _classify_uncached(self, title: str, url: str) -> ClassificationResult:
        rules = self._rules
        lower_title = title.lower()
        lower_url = url.lower()

        is_video = any(p in lower_url for p in rules.video_platforms)

        if self._is_excluded(url, lower_url):
            logger.info("page_excluded", url=url)
            return EXCLUDED_RESULT

        is_learning_content = self._has_learning_signal(title, url, lower_title, lower_url)

        tags: list[str] = []
        keywords: list[str] = []
        primary_topic = DEFAULT_TOPIC

        for category in rules.categories:
            matched = [k for k in category.keywords if k in lower_title]
            if matched:
                tags.extend(category.tags)
                keywords.extend(matched)
                if primary_topic == DEFAULT_TOPIC:
                    primary_topic = category.name.capitalize()

        for kind, words in rules.learning_keywords:
            if any(w in lower_title for w in words):
                tags.append(kind)

        tags.extend(self._domain_tags(lower_title, lower_url))

        refined = self._best_topic(lower_title)
        if refined is not None:
            primary_topic = refined

        tags = _dedupe(t for t in tags if t not in rules.exclude_terms)
        keywords = _dedupe(k for k in keywords if k not in rules.exclude_terms)

        return ClassificationResult(
            tags=tuple(tags),
            keywords=tuple(keywords),
            primary_topic=primary_topic,
            summary=build_summary(primary_topic, tags),
            is_learning_content=is_learning_content,
            is_video=is_video,
        )

    def _is_excluded(self, url: str, lower_url: str) -> bool:
        if any(d in lower_url for d in self._rules.non_learning_domains):
            return True
        return any(p.search(url) for p in NON_LEARNING_PATTERNS)

    def _has_learning_signal(
        self, title: str, url: str, lower_title: str, lower_url: str
    ) -> bool:
        rules = self._rules
        if any(d in lower_url for d in rules.learning_domains):
            return True
        if any(p.search(title) or p.search(url) for p in LEARNING_PATTERNS):
            return True
        return any(
            w in lower_title for _, words in rules.learning_keywords for w in words
        )

    @staticmethod
    def _domain_tags(lower_title: str, lower_url: str) -> list[str]:
        for needles, domain_tags in DOMAIN_TAG_RULES:
            if any(n in lower_url for n in needles):
                extra = list(domain_tags)
                if "video" in domain_tags and VIDEO_TUTORIAL_HINT in lower_title:
                    extra.append(VIDEO_TUTORIAL_HINT)
                return extra
        return []

    def _best_topic(self, lower_title: str) -> str | None:
        """Pick the category whose keywords are most similar to the title.

        Returns the capitalized category name when the best score exceeds
        MIN_TOPIC_SIMILARITY, else None. Ties keep the earlier category.
        """
        best_name: str | None = None
        best_score = 0.0
        for category in self._rules.categories:
            score = best_similarity(lower_title, category.keywords)
            if score > best_score:
                best_name, best_score = category.name, score

        if best_name is not None and best_score > MIN_TOPIC_SIMILARITY:
            return best_name.capitalize()
        return None


def _dedupe(values: Any) -> list[str]:
    return list(dict.fromkeys(values))


def build_summary(primary_topic: str, tags: list[str] | tuple[str, ...]) -> str:
    """Render the human-readable summary sentence for a classified page.

    Args:
        primary_topic: Resolved primary topic
        tags: Filtered, de-duplicated tags

    Returns:
        Summary naming the topic, up to three tags and the resource type
    """
    resource_type = next(
        (t for t in tags if t in RESOURCE_TYPE_TAGS), DEFAULT_RESOURCE_TYPE
    )
    return (
        f"Learning content about {primary_topic.lower()}. "
        f"Covers topics like {', '.join(tags[:SUMMARY_TAG_LIMIT])}. "
        f"This appears to be a {resource_type}."
    )


# =============================================================================
# Test Double
# =============================================================================


class FakeContentClassifier:
    """Fake ContentClassifier for testing.

    Returns pre-configured results keyed by URL, or a default learning
    result for unknown URLs.
    """

    def __init__(
        self,
        responses: Mapping[str, ClassificationResult] | None = None,
        default: ClassificationResult | None = None,
    ) -> None:
        self._responses = dict(responses) if responses else {}
        self._default = default or ClassificationResult(
            tags=("tutorial",),
            primary_topic="Programming",
            summary=build_summary("Programming", ("tutorial",)),
            is_learning_content=True,
        )
        self.calls: list[tuple[str, str]] = []

    def classify(self, title: str, url: str) -> ClassificationResult:
        self.calls.append((title, url))
        return self._responses.get(url, self._default)
