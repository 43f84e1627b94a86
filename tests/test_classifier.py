"""Tests for content classification: memory type, semantic tags, importance."""
from memcore.classifier import (calculate_importance_score, determine_memory_type,
                                extract_semantic_tags, is_question, matching_types)


class TestMemoryType:
    def test_personal_wins_over_later_categories(self):
        assert determine_memory_type("My name is Alex and I work as a nurse") == "personal"

    def test_personal_before_preference(self):
        assert determine_memory_type("My name is Sam and I love Python") == "personal"

    def test_preference(self):
        assert determine_memory_type("I prefer TypeScript") == "preference"
        assert determine_memory_type("I like hiking") == "preference"
        assert determine_memory_type("My favorite editor is Vim") == "preference"

    def test_preference_before_project(self):
        assert determine_memory_type("I love working on this project") == "preference"

    def test_project(self):
        assert determine_memory_type("The launch deadline is next Friday") == "project"

    def test_technical(self):
        assert determine_memory_type("We run a Postgres database behind the API") == "technical"

    def test_word_boundaries(self):
        # "api" inside "rapid", "git" inside "digital"
        assert determine_memory_type("The rapid digital shift surprised everyone") == "general"

    def test_default_general(self):
        assert determine_memory_type("The weather was nice today") == "general"

    def test_matching_types_in_precedence_order(self):
        assert matching_types("I love this project and its API") == ["preference", "project", "technical"]


class TestSemanticTags:
    def test_ranked_by_frequency_then_position(self):
        assert extract_semantic_tags("Python python Django web") == ["python", "django", "web"]

    def test_stopwords_only(self):
        assert extract_semantic_tags("and the of to") == []

    def test_deterministic(self):
        text = "Deploying the billing service to Kubernetes every Friday"
        assert extract_semantic_tags(text) == extract_semantic_tags(text)

    def test_max_tags(self):
        tags = extract_semantic_tags("alpha bravo charlie delta echo foxtrot golf", max_tags=3)
        assert tags == ["alpha", "bravo", "charlie"]

    def test_empty(self):
        assert extract_semantic_tags("") == []


class TestImportance:
    def test_type_base_ordering(self):
        text = "something to remember"
        personal = calculate_importance_score(text, "personal")
        preference = calculate_importance_score(text, "preference")
        general = calculate_importance_score(text, "general")
        assert personal > preference > general

    def test_more_specific_scores_higher(self):
        plain = calculate_importance_score("i prefer tea", "preference")
        with_number = calculate_importance_score("i prefer tea at 7", "preference")
        with_detail = calculate_importance_score("i prefer tea at 7 because of Maria", "preference")
        assert plain < with_number < with_detail

    def test_bounded(self):
        text = "My name is Alex Smith, I was born in 1990 and since then " + "x" * 120
        score = calculate_importance_score(text, "personal")
        assert 0.0 <= score <= 1.0

    def test_unknown_type_uses_general_base(self):
        assert calculate_importance_score("abc", "mystery") == calculate_importance_score("abc", "general")


class TestQuestion:
    def test_interrogative(self):
        assert is_question("What is my name")
        assert is_question("Can you help me?")

    def test_statement(self):
        assert not is_question("I like hiking")
