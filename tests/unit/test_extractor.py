"""
Unit tests for PageExtractor.

Covers HTML vs plain-text detection, title fallbacks, candidate selection
and adjacent-duplicate collapsing.
Run: pytest tests/unit/test_extractor.py -v
"""
import pytest

from src.acquisition.extractor import (
    PageExtractor,
    collapse_adjacent_duplicates,
    is_html,
)


@pytest.fixture
def extractor():
    return PageExtractor(default_title="Notion", description="Imported from Notion")


class TestCollapseAdjacentDuplicates:
    """Only neighbouring duplicates are removed."""

    def test_adjacent_only(self):
        assert collapse_adjacent_duplicates(["A", "A", "B", "A"]) == ["A", "B", "A"]

    def test_runs_collapse_to_one(self):
        assert collapse_adjacent_duplicates(["A", "A", "A"]) == ["A"]

    def test_empty_strings_dropped(self):
        assert collapse_adjacent_duplicates(["", "A", "", "A", "B"]) == ["A", "B"]

    def test_empty_input(self):
        assert collapse_adjacent_duplicates([]) == []


class TestContentDetection:

    def test_html_marker(self):
        assert is_html("<!DOCTYPE html><html><body></body></html>")

    def test_html_marker_case_insensitive(self):
        assert is_html("<HTML><BODY>x</BODY></HTML>")

    def test_plain_text(self):
        assert not is_html("Title: Limits\n\nSome markdown text")


class TestHtmlExtraction:

    def test_title_and_cards(self, extractor):
        html = """
        <html><head><title>  Ticket 1  </title></head>
        <body><main>
            <h1>Ticket 1</h1>
            <h1>Ticket 1</h1>
            <p>What is a limit?</p>
            <ul><li>Definition</li><li>Examples</li></ul>
            <p>   </p>
        </main>
        <footer><p>Footer text</p></footer>
        </body></html>
        """
        page = extractor.extract(html)

        assert page.topic.name == "Ticket 1"
        assert page.topic.description == "Imported from Notion"
        assert page.questions == ["Ticket 1", "What is a limit?", "Definition", "Examples"]

    def test_body_used_without_main(self, extractor):
        html = "<html><head><title>T</title></head><body><h2>Heading</h2><p>Para</p></body></html>"
        page = extractor.extract(html)
        assert page.questions == ["Heading", "Para"]

    def test_selected_elements_in_document_order(self, extractor):
        html = """
        <html><body>
            <h3>Third level</h3>
            <blockquote>Quoted</blockquote>
            <div><span>ignored span</span></div>
            <h4>ignored h4</h4>
            <p>Last</p>
        </body></html>
        """
        page = extractor.extract(html)
        assert page.questions == ["Third level", "Quoted", "Last"]

    def test_nested_pre_code_collapses(self, extractor):
        html = "<html><body><pre><code>x = 1</code></pre><p>after</p></body></html>"
        page = extractor.extract(html)
        assert page.questions == ["x = 1", "after"]

    def test_missing_title_falls_back(self, extractor):
        page = extractor.extract("<html><body><p>Only text</p></body></html>")
        assert page.topic.name == "Notion"

    def test_blank_title_falls_back(self, extractor):
        page = extractor.extract("<html><head><title>   </title></head><body></body></html>")
        assert page.topic.name == "Notion"

    def test_empty_page_yields_topic_without_cards(self, extractor):
        page = extractor.extract("<html><head><title>Empty</title></head><body></body></html>")
        assert page.topic.name == "Empty"
        assert page.cards == []


class TestPlainTextExtraction:

    def test_lines_become_cards(self, extractor):
        text = "Hi\nLimits of functions\n\n\nLimits of functions\nDerivative\n"
        page = extractor.extract(text)

        assert page.topic.name == "Limits of functions"
        assert page.questions == ["Hi", "Limits of functions", "Derivative"]

    def test_crlf_and_whitespace(self, extractor):
        page = extractor.extract("  first line here  \r\n\r\n   \r\nsecond\r\n")
        assert page.questions == ["first line here", "second"]

    def test_title_needs_more_than_five_chars(self, extractor):
        page = extractor.extract("short\nabc\n12345")
        assert page.topic.name == "Notion"
        assert page.questions == ["short", "abc", "12345"]

    def test_non_adjacent_repeats_kept(self, extractor):
        page = extractor.extract("A\nA\nB\nA")
        assert page.questions == ["A", "B", "A"]


class TestIdentifiers:

    def test_cards_share_fresh_topic_id(self, extractor):
        page = extractor.extract("<html><body><p>one</p><p>two</p></body></html>")
        assert page.topic.id
        assert all(card.topic_id == page.topic.id for card in page.cards)
        assert all(card.answer == "" for card in page.cards)

    def test_ids_are_unique_per_run(self, extractor):
        first = extractor.extract("line one\nline two")
        second = extractor.extract("line one\nline two")

        assert first.topic.id != second.topic.id
        assert first.questions == second.questions
        card_ids = {c.id for c in first.cards} | {c.id for c in second.cards}
        assert len(card_ids) == 4
