"""Tests for document verification and the soft content limits."""

from dataclasses import replace

import pytest

from cvdocument.models import (
    BulletItem,
    ProfessionalIntro,
    SkillItem,
    create_empty_document,
)
from cvdocument.verification import (
    CONTENT_LIMITS,
    content_limit_warnings,
    count_lines,
    exceeds_limit,
    is_placeholder,
    verify_document,
)


@pytest.fixture
def make_document(now):
    def _make(experience=(), intro="", language="en", skills=()):
        document = create_empty_document("job-1", language=language, now=now)
        return replace(
            document,
            left_column=replace(document.left_column, skills=tuple(skills)),
            right_column=replace(
                document.right_column,
                professional_intro=ProfessionalIntro(content=intro),
                experience=tuple(experience),
            ),
        )

    return _make


class TestHelpers:
    def test_count_lines_skips_blank(self):
        """Test that blank lines are not counted."""
        assert count_lines("a\n\n  \nb\n") == 2
        assert count_lines(None) == 0

    def test_exceeds_limit_is_strict(self):
        """Test that a value at the limit does not exceed it."""
        assert not exceeds_limit(CONTENT_LIMITS["bullets_per_job"], "bullets_per_job")
        assert exceeds_limit(CONTENT_LIMITS["bullets_per_job"] + 1, "bullets_per_job")

    @pytest.mark.parametrize("text", ["N/A", " tbd ", "Lorem ipsum dolor", "[Insert company]", "[Your title here]"])
    def test_placeholders(self, text):
        """Test recognizing placeholder text."""
        assert is_placeholder(text)

    @pytest.mark.parametrize("text", ["", None, "Acme", "Unknown Pleasures Records", "Nationally ranked"])
    def test_not_placeholders(self, text):
        """Test that real text is not a placeholder."""
        assert not is_placeholder(text)


class TestVerifyDocument:
    def test_clean_document_passes(self, make_document, make_block):
        """Test that a clean document has no errors or warnings."""
        document = make_document(
            [make_block("cur", "2019", None, bullets=["Led X"]), make_block("old", "2010", "2012")],
            intro="Coordinator.",
        )
        result = verify_document(document)
        assert result.ok
        assert result.errors == []
        assert result.warnings == []

    def test_empty_document_passes(self, make_document):
        """Test that an empty document passes."""
        assert verify_document(make_document()).ok

    def test_unsorted_experience_is_an_error(self, make_document, make_block):
        """Test that unsorted experience is an error."""
        document = make_document([make_block("old", "2010", "2012"), make_block("cur", "2019", None)])
        result = verify_document(document)
        assert not result.ok
        assert "experience not in reverse-chronological order" in result.errors

    def test_placeholder_is_reported_with_location(self, make_document, make_block):
        """Test that placeholder errors name the field."""
        document = make_document([make_block("x", "2019", None, title="[Your title]")])
        assert verify_document(document).errors == ["placeholder text in experience[0].title"]

    def test_placeholder_skill(self, make_document):
        """Test that a placeholder skill is an error."""
        document = make_document(skills=[SkillItem(id="s1", name="TBD")])
        assert verify_document(document).errors == ["placeholder text in skills[0]"]

    def test_entry_without_title_and_company(self, make_document, make_block):
        """Test that an entry without title and company is an error."""
        document = make_document([make_block("x", "2019", None, title="", company=" ")])
        assert "experience[0] has neither title nor company" in verify_document(document).errors

    def test_duplicate_ids(self, make_document, make_block):
        """Test that duplicate ids are an error."""
        document = make_document(
            [make_block("dup", "2019", None), make_block("dup", "2010", "2012")],
            skills=[SkillItem(id="s", name="Excel"), SkillItem(id="s", name="SAP")],
        )
        assert "duplicate ids: dup, s" in verify_document(document).errors

    def test_warnings_do_not_fail(self, make_document):
        """Test that warnings alone do not fail verification."""
        document = make_document(intro="\n".join(f"line {i}" for i in range(7)))
        result = verify_document(document)
        assert result.ok
        assert len(result.warnings) == 1


class TestContentLimits:
    def test_intro_lines_english(self, make_document):
        """Test the intro line warning in English."""
        document = make_document(intro="\n".join(["x"] * 6))
        assert content_limit_warnings(document) == ["intro: We recommend max 5 lines."]

    def test_intro_lines_danish(self, make_document):
        """Test the intro line warning in Danish."""
        document = make_document(intro="\n".join(["x"] * 6), language="da")
        assert content_limit_warnings(document) == ["intro: Vi anbefaler maks 5 linjer."]

    def test_intro_at_limit_is_fine(self, make_document):
        """Test that an intro at the limit gives no warning."""
        assert content_limit_warnings(make_document(intro="\n".join(["x"] * 5))) == []

    def test_too_many_bullets(self, make_document, make_block):
        """Test the warning for too many bullets."""
        block = make_block("x", "2019", None, bullets=[f"b{i}" for i in range(6)])
        assert content_limit_warnings(make_document([block])) == [
            "experience[0].bullets: We recommend max 5 bullets."
        ]

    def test_long_bullet(self, make_document, make_block):
        """Test the warning for a long bullet."""
        block = make_block("x", "2019", None, bullets=["short", "y" * 201])
        assert content_limit_warnings(make_document([block])) == [
            "experience[0].bullets[1]: We recommend max 200 characters per bullet."
        ]

    def test_long_milestones(self, make_document, make_block):
        """Test the warning for long milestones."""
        block = replace(make_block("x", "2019", None), key_milestones="a\nb\nc\nd\ne")
        assert content_limit_warnings(make_document([block], language="da")) == [
            "experience[0].keyMilestones: Vi anbefaler maks 4 linjer."
        ]

    def test_surrounding_whitespace_does_not_count(self, make_document, make_block):
        """Test that surrounding whitespace is not counted."""
        block = replace(
            make_block("x", "2019", None),
            bullets=(BulletItem(id="b", content="  " + "y" * 200 + "  "),),
        )
        assert content_limit_warnings(make_document([block])) == []
