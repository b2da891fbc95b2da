"""Tests for query-fit analysis."""
import pytest

from aeo_analyzer.audit.extractor import Heading, PageExtraction
from aeo_analyzer.audit.query import (
    analyze_query,
    build_answer_draft,
    detect_intent,
    extract_topic,
    suggest_faqs,
)

TOP_TEXT = (
    "AEO is the practice of optimizing pages for answer engines. "
    "It has 3 core steps. Ignore this sentence entirely please."
)


@pytest.fixture
def extraction():
    return PageExtraction(
        title="What is AEO | Acme",
        h1="What is AEO",
        headings=[Heading(1, "What is AEO"), Heading(2, "How AEO works")],
        main_text=TOP_TEXT,
        top_text=TOP_TEXT,
    )


class TestIntentAndTopic:
    @pytest.mark.parametrize("query,intent", [
        ("What is AEO?", "what"),
        ("best tools, what are they", "what"),
        ("How to bake bread", "how"),
        ("bread: how do I start", "how"),
        ("Why does AEO matter", "why"),
        ("When is the deadline", "when"),
        ("Where is the office", "where"),
        ("aeo pricing", "other"),
    ])
    def test_detect_intent(self, query, intent):
        assert detect_intent(query) == intent

    def test_extract_topic(self):
        assert extract_topic("What is AEO?") == "aeo"
        assert extract_topic("How to bake bread") == "bake bread"
        assert extract_topic("aeo pricing") == "aeo pricing"
        assert extract_topic("?") == "?"


class TestAnalyzeQuery:
    def test_full_coverage(self, extraction):
        result = analyze_query("what is aeo?", extraction)
        assert result.query_intent == "what"
        assert result.query_fit_score == 100
        assert result.coverage == {"title_match": 100, "headings_match": 100, "content_match": 100}
        assert result.missing_elements == []

    def test_partial_coverage_is_a_percentage(self, extraction):
        # one of three query terms everywhere: 30/3 + 30/3 + 40/3
        result = analyze_query("aeo pricing guide", extraction)
        assert result.query_fit_score == 33
        assert result.coverage["content_match"] == 33

    def test_how_without_steps_is_penalized(self):
        ex = PageExtraction(title="Bread", main_text="Bread is tasty.", top_text="Bread is tasty.")
        result = analyze_query("How to bake bread", ex)
        assert result.missing_elements == ["Step-by-step instructions"]
        # bread matches title + content: 30*0.5 + 40*0.5 = 35, minus 15
        assert result.query_fit_score == 20

    def test_what_without_definition_is_penalized(self):
        ex = PageExtraction(top_text="Buy now and save money today.")
        result = analyze_query("What is a budget", ex)
        assert result.missing_elements == ["Clear definition or explanation"]
        assert result.query_fit_score == 0

    def test_answer_draft(self, extraction):
        result = analyze_query("what is aeo?", extraction)
        assert result.answer_draft == (
            "AEO is the practice of optimizing pages for answer engines. It has 3 core steps."
        )

    def test_no_sentences_no_draft(self):
        result = analyze_query("what is aeo", PageExtraction())
        assert result.answer_draft is None


class TestHelpers:
    def test_draft_falls_back_to_first_sentence(self):
        text = "Welcome to our garden shop. We sell plants and seeds here."
        assert build_answer_draft(text, {"garden"}) == (
            "Welcome to our garden shop. We sell plants and seeds here."
        )

    def test_faqs_skip_questions_already_asked(self, extraction):
        faqs = suggest_faqs("aeo", "what", extraction.headings)
        assert "What is aeo?" not in faqs
        assert faqs[0] == "How does aeo work?"
        assert len(faqs) == 9
        assert faqs[-2:] == ["Types of aeo", "Examples of aeo"]

    def test_faqs_how_intent(self):
        faqs = suggest_faqs("bake bread", "how", [])
        assert len(faqs) == 9
        assert faqs[-2:] == ["Step-by-step guide to bake bread", "Tips for bake bread"]

    def test_faqs_other_intent(self):
        assert len(suggest_faqs("aeo", "other", [])) == 7
