"""
Tests for ContentClassifier.

Tests organized by classification step:
- TestExclusion: non-learning domains and URL paths short-circuit
- TestLearningSignal: inclusion rules
- TestTagExtraction: category, learning-type and domain tags
- TestTopicSelection: provisional topic and fuzzy refinement
- TestSummary: summary template
- TestCache: bounded LRU memoization
- TestRulesLoading: YAML vocabulary loading
- TestBundledRules: the shipped learntrack/config/content_rules.yaml
- TestFakeContentClassifier: test double
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from learntrack.classifiers.content_classifier import (
    EXCLUDED_RESULT,
    ClassificationResult,
    ContentClassifier,
    ContentClassifierProtocol,
    ContentRules,
    FakeContentClassifier,
    build_summary,
)
from learntrack.core.exceptions import ContentRulesConfigError

# =============================================================================
# Fixtures
# =============================================================================

RULES: dict[str, Any] = {
    "categories": {
        "programming": {"keywords": ["python", "javascript"], "tags": ["code", "programming"]},
        "data": {"keywords": ["sql", "postgres database"], "tags": ["data", "database"]},
        "games": {"keywords": ["chess"], "tags": ["fun", "strategy"]},
    },
    "learning_keywords": {
        "tutorial": ["tutorial", "guide"],
        "course": ["course"],
    },
    "exclude_terms": ["fun"],
    "learning_domains": ["docs.python.org"],
    "non_learning_domains": ["netflix.com", "youtube.com/watch"],
    "video_platforms": ["youtube.com", "vimeo.com"],
}


@pytest.fixture
def rules() -> ContentRules:
    return ContentRules.from_mapping(RULES)


@pytest.fixture
def classifier(rules: ContentRules) -> ContentClassifier:
    return ContentClassifier(rules=rules)


@pytest.fixture
def rules_file(tmp_path: Path) -> Path:
    config_content = """
categories:
  programming:
    keywords: [python]
    tags: [code]
learning_keywords:
  tutorial: [tutorial]
exclude_terms: []
learning_domains: [docs.python.org]
non_learning_domains: [netflix.com]
video_platforms: [youtube.com]
"""
    config_file = tmp_path / "content_rules.yaml"
    config_file.write_text(config_content)
    return config_file


# =============================================================================
# Exclusion
# =============================================================================


class TestExclusion:
    """Exclusion is checked before everything else and is terminal."""

    def test_non_learning_domain_is_excluded(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Python tutorial", "https://netflix.com/browse")

        assert result == EXCLUDED_RESULT
        assert result.is_excluded
        assert result.is_learning_content is False

    def test_checkout_path_is_excluded(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Python course", "https://shop.example.com/checkout/step1")

        assert result == EXCLUDED_RESULT

    def test_account_path_match_is_case_insensitive(self, classifier: ContentClassifier) -> None:
        assert classifier.classify("Guide", "HTTPS://site.test/Login").is_excluded

    def test_path_rule_only_applies_directly_under_host(
        self, classifier: ContentClassifier
    ) -> None:
        result = classifier.classify("Python guide", "https://site.test/blog/login-flows")

        assert not result.is_excluded

    def test_excluded_video_page_is_not_flagged_as_video(
        self, classifier: ContentClassifier
    ) -> None:
        result = classifier.classify("Python Tutorial", "https://youtube.com/watch?v=abc")

        assert result.is_excluded
        assert result.is_video is False
        assert result.tags == ()
        assert result.summary == "Non-learning content"


# =============================================================================
# Learning signal
# =============================================================================


class TestLearningSignal:
    """Inclusion rules decide is_learning_content."""

    def test_learning_domain(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Built-in Types", "https://docs.python.org/3/library/")

        assert result.is_learning_content is True

    def test_learning_pattern_in_url(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Untitled", "https://site.test/getting-started")

        assert result.is_learning_content is True

    def test_learning_keyword_in_title(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Chess Course", "https://site.test/chess")

        assert result.is_learning_content is True

    def test_page_without_signal_is_not_learning(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Holiday photos", "https://holiday.test/photos/2024")

        assert result.is_learning_content is False
        assert result.primary_topic == "General"
        assert result.tags == ()


# =============================================================================
# Tags
# =============================================================================


class TestTagExtraction:
    """Tags come from categories, learning types and the URL."""

    def test_category_and_learning_tags(self, classifier: ContentClassifier) -> None:
        result = classifier.classify(
            "Python Tutorial for Beginners", "https://docs.python.org/3/tutorial/"
        )

        assert result.tags == ("code", "programming", "tutorial")
        assert result.keywords == ("python",)

    def test_tags_from_every_matching_category_in_order(
        self, classifier: ContentClassifier
    ) -> None:
        result = classifier.classify("SQL and Python", "https://site.test/a")

        assert result.tags == ("code", "programming", "data", "database")
        assert result.keywords == ("python", "sql")

    def test_excluded_vocabulary_is_filtered(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Chess tutorial", "https://site.test/chess")

        assert "fun" not in result.tags
        assert result.tags == ("strategy", "tutorial")

    def test_github_domain_tags_are_deduplicated(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Python Tutorial", "https://github.com/user/repo")

        assert result.tags == ("code", "programming", "tutorial", "repository")

    def test_stackoverflow_domain_tags(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Python error", "https://stackoverflow.com/q/1")

        assert result.tags[-2:] == ("qa", "solution")

    def test_video_platform_tags(self, classifier: ContentClassifier) -> None:
        result = classifier.classify(
            "Python Tutorial", "https://www.youtube.com/playlist?list=1"
        )

        assert result.is_video is True
        assert result.tags == ("code", "programming", "tutorial", "video")

    def test_course_platform_tag(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Python", "https://www.udemy.com/python-bootcamp")

        assert "course" in result.tags


# =============================================================================
# Topic
# =============================================================================


class TestTopicSelection:
    """Primary topic: first matching category, refined by similarity."""

    def test_first_declared_category_wins(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("SQL and Python", "https://site.test/a")

        assert result.primary_topic == "Programming"

    def test_similarity_refinement_overrides_provisional_topic(
        self, classifier: ContentClassifier
    ) -> None:
        # "python" matches first, but "postgres database" is far more similar
        result = classifier.classify("Postgres Database Python", "https://site.test/a")

        assert result.primary_topic == "Data"

    def test_topic_defaults_to_general(self, classifier: ContentClassifier) -> None:
        result = classifier.classify("Getting started", "https://site.test/guide")

        assert result.primary_topic == "General"


# =============================================================================
# Summary
# =============================================================================


class TestSummary:
    """Summary template."""

    def test_summary_for_classified_page(self, classifier: ContentClassifier) -> None:
        result = classifier.classify(
            "Python Tutorial for Beginners", "https://docs.python.org/3/tutorial/"
        )

        assert result.summary == (
            "Learning content about programming. "
            "Covers topics like code, programming, tutorial. "
            "This appears to be a tutorial."
        )

    def test_resource_type_is_first_matching_tag(self) -> None:
        summary = build_summary("Programming", ["code", "course", "tutorial"])

        assert summary.endswith("This appears to be a course.")

    def test_default_resource_type(self) -> None:
        summary = build_summary("General", [])

        assert summary == (
            "Learning content about general. Covers topics like . "
            "This appears to be a learning resource."
        )

    def test_only_first_three_tags_listed(self) -> None:
        summary = build_summary("Data", ["a", "b", "c", "d"])

        assert "Covers topics like a, b, c." in summary


# =============================================================================
# Cache
# =============================================================================


class TestCache:
    """Bounded LRU memoization."""

    def test_repeat_call_hits_cache(self, rules: ContentRules) -> None:
        classifier = ContentClassifier(rules=rules, cache_size=4)

        first = classifier.classify("Python Tutorial", "https://site.test/a")
        second = classifier.classify("Python Tutorial", "https://site.test/a")

        assert first is second
        info = classifier.cache_info()
        assert info["hits"] == 1
        assert info["misses"] == 1
        assert info["size"] == 1

    def test_least_recently_used_is_evicted(self, rules: ContentRules) -> None:
        classifier = ContentClassifier(rules=rules, cache_size=2)

        classifier.classify("A guide", "https://site.test/a")
        classifier.classify("B guide", "https://site.test/b")
        classifier.classify("A guide", "https://site.test/a")  # refresh a
        classifier.classify("C guide", "https://site.test/c")  # evicts b
        classifier.classify("A guide", "https://site.test/a")
        classifier.classify("B guide", "https://site.test/b")

        info = classifier.cache_info()
        assert info["size"] == 2
        assert info["hits"] == 2
        assert info["misses"] == 4

    def test_zero_capacity_disables_cache(self, rules: ContentRules) -> None:
        classifier = ContentClassifier(rules=rules, cache_size=0)

        classifier.classify("A guide", "https://site.test/a")
        classifier.classify("A guide", "https://site.test/a")

        assert classifier.cache_info()["size"] == 0
        assert classifier.cache_info()["hits"] == 0

    def test_clear_cache(self, classifier: ContentClassifier) -> None:
        classifier.classify("A guide", "https://site.test/a")
        classifier.clear_cache()

        assert classifier.cache_info() == {
            "hits": 0,
            "misses": 0,
            "size": 0,
            "capacity": 1024,
        }


# =============================================================================
# Rules loading
# =============================================================================


class TestRulesLoading:
    """ContentRules.from_yaml()."""

    def test_loads_custom_file(self, rules_file: Path) -> None:
        classifier = ContentClassifier(rules_path=rules_file)

        assert [c.name for c in classifier.rules.categories] == ["programming"]
        assert classifier.rules.learning_keywords == (("tutorial", ("tutorial",)),)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ContentRulesConfigError, match="not found"):
            ContentRules.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("categories: [unclosed")

        with pytest.raises(ContentRulesConfigError, match="Invalid YAML"):
            ContentRules.from_yaml(bad)

    def test_non_mapping_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "list.yaml"
        bad.write_text("- a\n- b\n")

        with pytest.raises(ContentRulesConfigError, match="mapping"):
            ContentRules.from_yaml(bad)

    def test_missing_section_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "partial.yaml"
        bad.write_text("categories: {}\nlearning_keywords: {}\n")

        with pytest.raises(ContentRulesConfigError, match="exclude_terms"):
            ContentRules.from_yaml(bad)


# =============================================================================
# Bundled rules
# =============================================================================


class TestBundledRules:
    """Behaviour against the shipped vocabulary."""

    @pytest.fixture
    def default_classifier(self) -> ContentClassifier:
        return ContentClassifier()

    def test_bundled_rules_have_five_categories(
        self, default_classifier: ContentClassifier
    ) -> None:
        names = [c.name for c in default_classifier.rules.categories]

        assert names == ["programming", "web", "data", "devops", "ai"]

    def test_react_tutorial(self, default_classifier: ContentClassifier) -> None:
        result = default_classifier.classify(
            "React Hooks Tutorial - Complete Guide", "https://reactjs.org/tutorial"
        )

        assert result.is_learning_content is True
        assert result.is_video is False
        assert result.primary_topic == "Programming"
        assert result.tags == ("code", "programming", "development", "software", "tutorial")
        assert result.keywords == ("react",)

    def test_shopping_checkout(self, default_classifier: ContentClassifier) -> None:
        result = default_classifier.classify("Checkout - Amazon.com", "https://amazon.com/checkout")

        assert result == EXCLUDED_RESULT


# =============================================================================
# Fake
# =============================================================================


class TestFakeContentClassifier:
    """FakeContentClassifier test double."""

    def test_implements_protocol(self) -> None:
        assert isinstance(FakeContentClassifier(), ContentClassifierProtocol)
        assert isinstance(ContentClassifier(rules=ContentRules.from_mapping(RULES)),
                          ContentClassifierProtocol)

    def test_returns_configured_response(self) -> None:
        fake = FakeContentClassifier(responses={"https://x.test": EXCLUDED_RESULT})

        assert fake.classify("anything", "https://x.test") == EXCLUDED_RESULT
        assert fake.calls == [("anything", "https://x.test")]

    def test_default_is_learning_content(self) -> None:
        result = FakeContentClassifier().classify("t", "https://y.test")

        assert isinstance(result, ClassificationResult)
        assert result.is_learning_content is True
        assert result.tags == ("tutorial",)
