"""Tests for source precedence and mapping in the document normalizer."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from cvdocument.dates import is_sorted_experience
from cvdocument.models import Checkpoint, create_empty_document, dumps_document
from cvdocument.normalizer import (
    PROSE_MIN_LENGTH,
    has_user_edits,
    is_prose_like,
    map_structured_data,
    normalize,
)
from cvdocument.shared import to_iso
from cvdocument.sources import (
    ParsedCVData,
    ParsedExperience,
    ParsedLanguage,
    RawCVData,
    StructuredCVData,
    StructuredEducation,
    StructuredExperience,
    StructuredLanguage,
)


@pytest.fixture
def structured():
    return StructuredCVData(
        professional_intro="Seasoned project coordinator.",
        experience=[
            StructuredExperience(title="Assistant", company="Acme", start_date="2017", end_date="2020"),
            StructuredExperience(
                title="Project Coordinator",
                company="Acme",
                start_date="2020-01",
                end_date=None,
                key_milestones="Delivered the ERP rollout.",
                bullets=["Led X", "", "Coordinated Y"],
            ),
            StructuredExperience(title="", company="", start_date="2015"),
        ],
        education=[StructuredEducation(title="BSc", institution="CBS", year="2016")],
        skills=["Excel", "Excel", "SAP"],
        languages=[StructuredLanguage(language="Danish", level="Modersmål")],
    )


def _edited(document, now):
    """Same document, updated well past the edit threshold."""
    return replace(document, updated_at=to_iso(now + timedelta(minutes=5)))


class TestUserEdits:
    def test_fresh_document_has_no_edits(self, now):
        """Test that a fresh document carries no user edits."""
        assert not has_user_edits(create_empty_document("job-1", now=now))

    def test_late_update_counts_as_edit(self, now):
        """Test that an update well after creation counts as an edit."""
        assert has_user_edits(_edited(create_empty_document("job-1", now=now), now))

    def test_checkpoint_counts_as_edit(self, now):
        """Test that a checkpoint counts as an edit."""
        document = replace(
            create_empty_document("job-1", now=now),
            checkpoints=(Checkpoint(id="c", name="v1", created_at=to_iso(now), snapshot="{}"),),
        )
        assert has_user_edits(document)

    def test_unreadable_timestamps_are_not_edits(self, now):
        """Test that unreadable timestamps do not count as edits."""
        document = replace(create_empty_document("job-1", now=now), created_at="garbage")
        assert not has_user_edits(document)


class TestProseRule:
    def test_long_text_is_prose(self):
        """Test that long text is prose."""
        assert is_prose_like("x" * (PROSE_MIN_LENGTH + 1), has_bullets=True)

    def test_sentence_is_prose(self):
        """Test that a full sentence is prose."""
        assert is_prose_like("Ran the team.", has_bullets=True)

    def test_fragment_with_bullets_is_not_prose(self):
        """Test that a short fragment next to bullets is not prose."""
        assert not is_prose_like("Team of five", has_bullets=True)

    def test_anything_without_bullets_is_prose(self):
        """Test that any text is prose when there are no bullets."""
        assert is_prose_like("Team of five", has_bullets=False)

    def test_blank(self):
        """Test that blank text is not prose."""
        assert not is_prose_like("   ", has_bullets=False)


class TestPrecedence:
    def test_structured_wins_over_unedited_existing(self, structured, now):
        """Test that structured data replaces an unedited stored document."""
        existing = normalize("job-1", RawCVData(cv_text="Experience\nDeveloper | Other | 2010 - 2012"), now=now)
        result = normalize("job-1", RawCVData(ai_structured=structured), existing, now=now)
        assert result.right_column.professional_intro.content == "Seasoned project coordinator."
        assert [b.title for b in result.experience] == ["Project Coordinator", "Assistant"]

    def test_user_edited_existing_wins_over_structured(self, structured, now):
        """Test that a user-edited stored document wins over structured data."""
        existing = _edited(
            normalize("job-1", RawCVData(cv_text="Experience\nDeveloper | Other | 2010 - 2012"), now=now), now
        )
        result = normalize("job-1", RawCVData(ai_structured=structured), existing, now=now)
        assert result is existing

    def test_edited_document_of_other_job_does_not_block_structured(self, structured, now):
        """Test that an edited document of another job context does not block structured data."""
        existing = _edited(create_empty_document("job-2", now=now), now)
        result = normalize("job-1", RawCVData(ai_structured=structured), existing, now=now)
        assert result.job_context_id == "job-1"
        assert len(result.experience) == 2

    def test_existing_content_wins_over_legacy_and_text(self, now, sample_cv_text):
        """Test that a stored document with content wins over legacy data and text."""
        existing = normalize("job-1", RawCVData(cv_text=sample_cv_text), now=now)
        legacy = ParsedCVData(skills=["Cobol"])
        result = normalize("job-1", RawCVData(cv_text="Skills\nFortran", legacy_extracted=legacy), existing, now=now)
        assert result is existing

    def test_empty_existing_falls_through_to_text(self, now, sample_cv_text):
        """Test that an empty stored document falls through to the CV text."""
        existing = create_empty_document("job-1", now=now)
        result = normalize("job-1", RawCVData(cv_text=sample_cv_text), existing, now=now)
        assert len(result.experience) == 2

    def test_legacy_wins_over_text_and_maps_levels(self, now):
        """Test that legacy data wins over text and maps language levels."""
        legacy = ParsedCVData(
            summary="Legacy summary text",
            experience=[ParsedExperience(title="Analyst", company="Bank", start_date="2018", end_date="Nu")],
            languages=[ParsedLanguage(language="English", level="fluent"), ParsedLanguage(language="Tamil", level="okay")],
        )
        result = normalize("job-1", RawCVData(cv_text="Skills\nFortran", legacy_extracted=legacy), now=now)
        assert [s.name for s in result.left_column.skills] == []
        assert result.experience[0].end_date is None
        assert [(l.language, l.level) for l in result.left_column.languages] == [
            ("English", "Flydende"),
            ("Tamil", "okay"),
        ]

    def test_empty_legacy_falls_through_to_text(self, now):
        """Test that empty legacy data falls through to the CV text."""
        result = normalize("job-1", RawCVData(cv_text="Skills\nFortran", legacy_extracted=ParsedCVData()), now=now)
        assert [s.name for s in result.left_column.skills] == ["Fortran"]


class TestMapping:
    def test_text_end_to_end(self, now, sample_cv_text):
        """Test normalizing a full CV text."""
        document = normalize("job-1", RawCVData(cv_text=sample_cv_text), now=now)

        assert document.language == "en"
        assert document.right_column.professional_intro.content.startswith("Experienced coordinator")

        current, previous = document.experience
        assert current.title == "Project Coordinator"
        assert current.is_ongoing
        assert [b.content for b in current.bullets] == ["Led X", "Coordinated Y"]
        assert current.key_milestones == ""
        assert previous.end_date == "2020"
        assert previous.key_milestones == "Handled daily administration for the operations team."
        assert previous.bullets == ()

        edu = document.left_column.education[0]
        assert (edu.title, edu.institution, edu.year) == (
            "BSc Business Administration",
            "Copenhagen Business School",
            "2013 - 2016",
        )
        assert [s.name for s in document.left_column.skills] == ["Excel", "SAP", "Project planning"]
        # parser levels are kept as written
        assert [(l.language, l.level) for l in document.left_column.languages] == [
            ("English", "fluent"),
            ("Danish", "native"),
        ]

    def test_structured_mapping(self, structured, now):
        """Test mapping structured data into the document."""
        document = map_structured_data("job-1", structured, "en", now=now)
        current = document.experience[0]
        assert current.start_date == "January 2020"
        assert current.key_milestones == "Delivered the ERP rollout."
        assert [b.content for b in current.bullets] == ["Led X", "Coordinated Y"]
        assert [s.name for s in document.left_column.skills] == ["Excel", "SAP"]
        assert document.left_column.languages[0].level == "Modersmål"

    def test_result_is_always_sorted(self, structured, now):
        """Test that normalized experience is always sorted."""
        document = normalize("job-1", RawCVData(ai_structured=structured), now=now)
        assert is_sorted_experience(document.experience)

    def test_unsorted_existing_is_sorted_on_the_way_out(self, now, make_block):
        """Test that a stored document out of order is sorted on return."""
        existing = replace(
            create_empty_document("job-1", now=now),
            right_column=replace(
                create_empty_document("job-1", now=now).right_column,
                experience=(make_block("old", "2010", "2012"), make_block("cur", "2019", None)),
            ),
        )
        result = normalize("job-1", RawCVData(), existing, now=now)
        assert [b.id for b in result.experience] == ["cur", "old"]


class TestNeverFabricate:
    def test_ai_summary_is_never_used_as_content(self, now):
        """Test that an AI summary never becomes the professional intro."""
        raw = RawCVData(cv_text="Skills\nExcel", summary="A brilliant, AI-written summary of this candidate.")
        document = normalize("job-1", raw, now=now)
        assert document.right_column.professional_intro.content == ""

    def test_entries_without_title_and_company_are_dropped(self, structured, now):
        """Test that entries without title and company are dropped."""
        document = normalize("job-1", RawCVData(ai_structured=structured), now=now)
        assert all(b.title or b.company for b in document.experience)

    def test_missing_fields_stay_empty(self, now):
        """Test that missing structured fields stay empty."""
        raw = RawCVData(cv_text="Experience\nDeveloper at Acme")
        block = normalize("job-1", raw, now=now).experience[0]
        assert block.start_date == ""
        assert block.is_ongoing
        assert block.key_milestones == ""
        assert block.location is None

    def test_nothing_yields_empty_document(self, now):
        """Test that no sources give an empty document."""
        document = normalize("job-1", None, now=now)
        assert not document.has_content()
        assert document.language == "da"


class TestDeterminism:
    def test_same_inputs_same_document(self, now, sample_cv_text):
        """Test that the same inputs and clock give byte-identical documents."""
        raw = RawCVData(cv_text=sample_cv_text)
        assert dumps_document(normalize("job-1", raw, now=now)) == dumps_document(normalize("job-1", raw, now=now))

    def test_without_clock_only_timestamps_vary(self, sample_cv_text):
        """Test that omitting now leaves createdAt and updatedAt as the only differences."""
        raw = RawCVData(cv_text=sample_cv_text)
        first = normalize("job-1", raw).to_dict()
        second = normalize("job-1", raw, now=datetime(2031, 1, 1, tzinfo=timezone.utc)).to_dict()
        assert second["createdAt"] == second["updatedAt"] == "2031-01-01T00:00:00.000Z"
        for data in (first, second):
            del data["createdAt"], data["updatedAt"]
        assert first == second

    def test_ids_do_not_depend_on_time(self, now, sample_cv_text):
        """Test that ids do not depend on the clock."""
        raw = RawCVData(cv_text=sample_cv_text)
        first = normalize("job-1", raw, now=now)
        later = normalize("job-1", raw, now=now + timedelta(days=3))
        assert [b.id for b in first.experience] == [b.id for b in later.experience]
        assert first.id == later.id

    def test_ids_are_unique(self, now, sample_cv_text):
        """Test that all ids in a document are unique."""
        document = normalize("job-1", RawCVData(cv_text=sample_cv_text), now=now)
        ids = [b.id for b in document.experience]
        ids += [b.id for e in document.experience for b in e.bullets]
        ids += [e.id for e in document.left_column.education]
        ids += [s.id for s in document.left_column.skills]
        ids += [l.id for l in document.left_column.languages]
        assert len(ids) == len(set(ids))

    def test_idempotent_on_own_output(self, now, sample_cv_text):
        """Test that normalizing again with its own output returns it unchanged."""
        first = normalize("job-1", RawCVData(cv_text=sample_cv_text), now=now)
        assert normalize("job-1", RawCVData(cv_text=sample_cv_text), first, now=now) == first
