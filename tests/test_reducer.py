"""Tests for the pure document reducer."""

from dataclasses import replace
from datetime import timedelta

import pytest

from cvdocument.dates import is_sorted_experience
from cvdocument.editor import actions as A
from cvdocument.editor.reducer import get_target_content, get_target_suggestion, reduce
from cvdocument.models import (
    AISuggestion,
    CVDocument,
    FontFamily,
    PersonalData,
    PersonalField,
    SuggestionStatus,
    TextSize,
    create_empty_document,
    create_skill_item,
    loads_document,
)
from cvdocument.shared import to_iso


@pytest.fixture
def document(now, make_block) -> CVDocument:
    base = create_empty_document("job-1", "en", now=now)
    return replace(
        base,
        right_column=replace(
            base.right_column,
            experience=(
                make_block("cur", "2020", None, title="Coordinator", bullets=("Led X", "Coordinated Y")),
                make_block("old", "2015", "2019", title="Assistant"),
            ),
        ),
    )


@pytest.fixture
def later(now):
    return now + timedelta(minutes=5)


def _suggestion(original="Led X", suggested="Led X for three teams"):
    return AISuggestion(id="s1", original_content=original, suggested_content=suggested, created_at="t")


class TestDispatch:
    def test_change_refreshes_updated_at(self, document, later):
        """Test that a change refreshes updatedAt and leaves the input untouched."""
        result = reduce(document, A.UpdateProfessionalIntro("Hello"), now=later)
        assert result.right_column.professional_intro.content == "Hello"
        assert result.updated_at == to_iso(later)
        assert document.right_column.professional_intro.content == ""

    def test_no_op_returns_same_object(self, document, later):
        """Test that actions changing nothing return the same object."""
        assert reduce(document, A.UpdateProfessionalIntro(""), now=later) is document
        assert reduce(document, A.RemoveSkill("missing"), now=later) is document
        assert reduce(document, A.Undo(), now=later) is document

    def test_unknown_action_is_ignored(self, document, later):
        """Test that an action without a handler is ignored."""
        class Mystery(A.Action):
            pass

        assert reduce(document, Mystery(), now=later) is document

    def test_create_document_keeps_its_own_timestamps(self, document, later):
        """Test that a created document carries its own timestamps."""
        result = reduce(document, A.CreateDocument(job_context_id="job-2", language="da"), now=later)
        assert result.job_context_id == "job-2"
        assert result.created_at == result.updated_at == to_iso(later)
        assert not result.has_content()

    def test_load_document_sorts_experience(self, document, later):
        """Test that loading a document sorts its experience."""
        flipped = replace(
            document,
            right_column=replace(document.right_column, experience=document.experience[::-1]),
        )
        result = reduce(create_empty_document("job-1"), A.LoadDocument(flipped), now=later)
        assert [b.id for b in result.experience] == ["cur", "old"]
        assert result.updated_at == flipped.updated_at


class TestDocumentFields:
    def test_update_document_ignores_unknown_keys(self, document, later):
        """Test that document updates ignore keys that are not editable."""
        assert reduce(document, A.UpdateDocument({"id": "hijack"}), now=later) is document
        result = reduce(document, A.UpdateDocument({"language": "da", "id": "x"}), now=later)
        assert result.language == "da"
        assert result.id == document.id

    def test_toggle_photo(self, document, later):
        """Test toggling and explicitly setting the profile photo."""
        flipped = reduce(document, A.ToggleProfilePhoto(), now=later)
        assert flipped.left_column.show_profile_photo is True
        assert reduce(flipped, A.ToggleProfilePhoto(True), now=later) is flipped

    def test_personal_data(self, document, later):
        """Test updating personal data."""
        data = PersonalData(birth_year=PersonalField("1990"))
        result = reduce(document, A.UpdatePersonalData(data), now=later)
        assert result.left_column.personal_data.birth_year.value == "1990"

    def test_settings_accept_strings_and_ignore_invalid(self, document, later):
        """Test that settings accept enum names and ignore invalid values."""
        result = reduce(document, A.UpdateSettings(font_family="georgia", text_size="bogus"), now=later)
        assert result.settings.font_family is FontFamily.GEORGIA
        assert result.settings.text_size is TextSize.NORMAL
        assert reduce(result, A.UpdateSettings(font_family=FontFamily.GEORGIA), now=later) is result


class TestLeftColumnCollections:
    def test_skill_lifecycle(self, document, later):
        """Test adding, updating, reordering and removing skills."""
        skill = create_skill_item("Excel", item_id="k1")
        doc = reduce(document, A.AddSkill(skill), now=later)
        doc = reduce(doc, A.AddSkill(create_skill_item("SAP", item_id="k2")), now=later)
        doc = reduce(doc, A.UpdateSkill("k1", {"name": "Excel (advanced)", "id": "nope"}), now=later)
        assert [(s.id, s.name) for s in doc.left_column.skills] == [("k1", "Excel (advanced)"), ("k2", "SAP")]
        doc = reduce(doc, A.ReorderSkills(1, 0), now=later)
        assert [s.id for s in doc.left_column.skills] == ["k2", "k1"]
        doc = reduce(doc, A.RemoveSkill("k2"), now=later)
        assert [s.id for s in doc.left_column.skills] == ["k1"]

    def test_reorder_out_of_range_is_no_op(self, document, later):
        """Test that reordering outside the list is a no-op."""
        assert reduce(document, A.ReorderEducation(0, 3), now=later) is document

    def test_education_and_languages(self, document, later):
        """Test editing education and languages."""
        doc = reduce(document, A.AddEducation(), now=later)
        item_id = doc.left_column.education[0].id
        doc = reduce(doc, A.UpdateEducation(item_id, {"title": "BSc", "year": "2016"}), now=later)
        assert doc.left_column.education[0].title == "BSc"
        doc = reduce(doc, A.AddLanguage(), now=later)
        language_id = doc.left_column.languages[0].id
        doc = reduce(doc, A.UpdateLanguage(language_id, {"language": "Danish", "level": "Modersmål"}), now=later)
        assert doc.left_column.languages[0].level == "Modersmål"
        doc = reduce(doc, A.RemoveLanguage(language_id), now=later)
        assert doc.left_column.languages == ()

    def test_update_with_same_values_is_no_op(self, document, later):
        """Test that updating with unchanged values is a no-op."""
        doc = reduce(document, A.AddSkill(create_skill_item("Excel", item_id="k1")), now=later)
        assert reduce(doc, A.UpdateSkill("k1", {"name": "Excel"}), now=later) is doc


class TestExperience:
    def test_add_experience_is_sorted_by_dates(self, document, make_block, later):
        """Test that added experience lands in date order."""
        doc = reduce(document, A.AddExperience(make_block("mid", "2019", "2020")), now=later)
        assert [b.id for b in doc.experience] == ["cur", "mid", "old"]

    def test_new_blank_block_goes_first(self, document, later):
        """Test that a new blank block is placed first."""
        doc = reduce(document, A.AddExperience(), now=later)
        assert doc.experience[0].start_date == ""
        assert doc.experience[0].is_ongoing
        assert is_sorted_experience(doc.experience)

    def test_changing_dates_resorts(self, document, later):
        """Test that changing dates sorts the blocks again."""
        doc = reduce(document, A.UpdateExperience("old", {"end_date": "Present", "start_date": "2021"}), now=later)
        assert [b.id for b in doc.experience] == ["old", "cur"]
        assert doc.find_experience("old").end_date is None

    @pytest.mark.parametrize("end", ["", "  ", "nu", None])
    def test_blank_or_present_end_is_ongoing(self, document, later, end):
        """Test that a blank or present end date means ongoing."""
        doc = reduce(document, A.UpdateExperience("old", {"end_date": end}), now=later)
        assert doc.find_experience("old").end_date is None

    def test_remove_experience(self, document, later):
        """Test removing an experience block."""
        doc = reduce(document, A.RemoveExperience("old"), now=later)
        assert [b.id for b in doc.experience] == ["cur"]

    def test_reorder_cannot_break_chronology(self, document, later):
        """Test that a reorder breaking chronology is refused."""
        assert reduce(document, A.ReorderExperience(0, 1), now=later) is document

    def test_reorder_swaps_ties(self, now, make_block, later):
        """Test that blocks with equal dates can be swapped."""
        base = create_empty_document("job-1", now=now)
        doc = replace(
            base,
            right_column=replace(
                base.right_column,
                experience=(make_block("a", "2018", "2020"), make_block("b", "2018", "2020")),
            ),
        )
        result = reduce(doc, A.ReorderExperience(0, 1), now=later)
        assert [b.id for b in result.experience] == ["b", "a"]


class TestBullets:
    def test_bullet_lifecycle(self, document, later):
        """Test adding, updating, reordering and removing bullets."""
        doc = reduce(document, A.AddBullet("old"), now=later)
        new_id = doc.find_experience("old").bullets[0].id
        doc = reduce(doc, A.UpdateBullet("old", new_id, "Filed reports"), now=later)
        assert doc.find_experience("old").bullets[0].content == "Filed reports"
        doc = reduce(doc, A.ReorderBullets("cur", 1, 0), now=later)
        assert [b.content for b in doc.find_experience("cur").bullets] == ["Coordinated Y", "Led X"]
        doc = reduce(doc, A.RemoveBullet("cur", "cur-b0"), now=later)
        assert [b.content for b in doc.find_experience("cur").bullets] == ["Coordinated Y"]

    def test_unknown_block_or_bullet_is_no_op(self, document, later):
        """Test that unknown blocks and bullets are no-ops."""
        assert reduce(document, A.AddBullet("missing"), now=later) is document
        assert reduce(document, A.UpdateBullet("cur", "missing", "x"), now=later) is document
        assert reduce(document, A.RemoveBullet("cur", "missing"), now=later) is document


class TestSuggestions:
    def test_targets(self, document):
        """Test reading the content of each suggestion target."""
        bullet = A.SuggestionTarget.bullet("cur", "cur-b0")
        assert get_target_content(document, bullet) == "Led X"
        assert get_target_content(document, A.SuggestionTarget.milestones("cur")) == ""
        assert get_target_content(document, A.SuggestionTarget.intro()) == ""
        assert get_target_content(document, A.SuggestionTarget.bullet("cur", "missing")) is None
        assert get_target_content(document, A.SuggestionTarget.milestones("missing")) is None

    def test_set_and_accept(self, document, later):
        """Test attaching and accepting a suggestion."""
        target = A.SuggestionTarget.bullet("cur", "cur-b0")
        doc = reduce(document, A.SetSuggestion(target, _suggestion()), now=later)
        assert get_target_suggestion(doc, target).status is SuggestionStatus.PENDING
        assert get_target_content(doc, target) == "Led X"

        accepted = reduce(doc, A.AcceptSuggestion(target), now=later)
        assert get_target_content(accepted, target) == "Led X for three teams"
        assert get_target_suggestion(accepted, target).status is SuggestionStatus.ACCEPTED
        # nothing pending any more
        assert reduce(accepted, A.AcceptSuggestion(target), now=later) is accepted

    def test_edit_uses_given_content(self, document, later):
        """Test that editing a suggestion stores the given content."""
        target = A.SuggestionTarget.milestones("cur")
        doc = reduce(document, A.SetSuggestion(target, _suggestion("", "Grew the team")), now=later)
        edited = reduce(doc, A.EditSuggestion(target, "Grew the team to 12"), now=later)
        assert edited.find_experience("cur").key_milestones == "Grew the team to 12"
        assert edited.find_experience("cur").key_milestones_ai_suggestion.status is SuggestionStatus.EDITED

    def test_reject_keeps_content(self, document, later):
        """Test that rejecting a suggestion keeps the original content."""
        target = A.SuggestionTarget.intro()
        doc = reduce(document, A.SetSuggestion(target, _suggestion("", "A new intro")), now=later)
        rejected = reduce(doc, A.RejectSuggestion(target), now=later)
        assert rejected.right_column.professional_intro.content == ""
        assert get_target_suggestion(rejected, target).status is SuggestionStatus.REJECTED

    def test_set_none_detaches(self, document, later):
        """Test that setting no suggestion detaches the current one."""
        target = A.SuggestionTarget.intro()
        doc = reduce(document, A.SetSuggestion(target, _suggestion()), now=later)
        cleared = reduce(doc, A.SetSuggestion(target, None), now=later)
        assert get_target_suggestion(cleared, target) is None

    def test_missing_target_is_no_op(self, document, later):
        """Test that suggestions for missing targets are no-ops."""
        target = A.SuggestionTarget.bullet("missing", "missing")
        assert reduce(document, A.SetSuggestion(target, _suggestion()), now=later) is document
        assert reduce(document, A.AcceptSuggestion(A.SuggestionTarget.intro()), now=later) is document


class TestCheckpoints:
    def test_create_restore_delete(self, document, later):
        """Test creating, restoring and deleting checkpoints."""
        doc = reduce(document, A.CreateCheckpoint("Before edits", checkpoint_id="cp1"), now=later)
        checkpoint = doc.find_checkpoint("cp1")
        assert checkpoint.created_at == to_iso(later)
        assert loads_document(checkpoint.snapshot).right_column == document.right_column

        edited = reduce(doc, A.RemoveExperience("cur"), now=later)
        edited = reduce(edited, A.CreateCheckpoint("After", checkpoint_id="cp2"), now=later)
        restored = reduce(edited, A.RestoreCheckpoint("cp1"), now=later)
        assert [b.id for b in restored.experience] == ["cur", "old"]
        # the checkpoint list is the live one, not the snapshot's
        assert [c.id for c in restored.checkpoints] == ["cp1", "cp2"]

        deleted = reduce(restored, A.DeleteCheckpoint("cp1"), now=later)
        assert [c.id for c in deleted.checkpoints] == ["cp2"]
        assert reduce(deleted, A.DeleteCheckpoint("cp1"), now=later) is deleted

    def test_unknown_or_corrupt_checkpoint_is_no_op(self, document, later):
        """Test that unknown or unreadable checkpoints are not restored."""
        doc = reduce(document, A.CreateCheckpoint("x", checkpoint_id="cp1"), now=later)
        corrupt = replace(doc, checkpoints=(replace(doc.checkpoints[0], snapshot="{broken"),))
        assert reduce(corrupt, A.RestoreCheckpoint("cp1"), now=later) is corrupt
        assert reduce(corrupt, A.RestoreCheckpoint("nope"), now=later) is corrupt
