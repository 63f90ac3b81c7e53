"""Tests for generation models and the save boundary."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from rssletter.errors import NewsletterValidationError
from rssletter.generation import GenerationRequest, NewsletterDraft, save_generated_newsletter

START = datetime(2024, 1, 8, tzinfo=timezone.utc)
END = datetime(2024, 1, 15, tzinfo=timezone.utc)


class TestGenerationRequest:
    def test_camel_case_aliases(self) -> None:
        request = GenerationRequest.model_validate(
            {"feedIds": ["f1", "f2"], "startDate": "2024-01-08T00:00:00Z", "endDate": "2024-01-15T00:00:00Z"}
        )
        assert request.feed_ids == ["f1", "f2"]
        assert request.start_date == START

    def test_feed_ids_deduplicated_in_order(self) -> None:
        request = GenerationRequest(feed_ids=["f2", "f1", "f2", " "], start_date=START, end_date=END)
        assert request.feed_ids == ["f2", "f1"]

    def test_no_feeds_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GenerationRequest(feed_ids=[], start_date=START, end_date=END)

    def test_inverted_window_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GenerationRequest(feed_ids=["f1"], start_date=END, end_date=START)

    def test_key_ignores_feed_order(self) -> None:
        a = GenerationRequest(feed_ids=["f1", "f2"], start_date=START, end_date=END)
        b = GenerationRequest(feed_ids=["f2", "f1"], start_date=START, end_date=END)
        c = GenerationRequest(feed_ids=["f1", "f2"], start_date=START, end_date=END, user_input="Be brief")

        assert a.key == b.key
        assert a.key != c.key

    def test_blank_user_input_is_none(self) -> None:
        request = GenerationRequest(feed_ids=["f1"], start_date=START, end_date=END, user_input="   ")
        assert request.user_input is None


class TestNewsletterDraft:
    def test_any_length_lists_accepted(self) -> None:
        draft = NewsletterDraft.model_validate({"suggestedTitles": ["only one"]})
        assert draft.to_public() == {"suggestedTitles": ["only one"]}

    def test_empty_draft(self) -> None:
        assert NewsletterDraft().to_public() == {}


class TestSaveGeneratedNewsletter:
    def test_complete_newsletter_is_saved(self, newsletter_store, complete_newsletter) -> None:
        record = save_generated_newsletter(
            newsletter_store,
            complete_newsletter,
            feed_ids=["f1", "f2"],
            start_date=START,
            end_date=END,
            user_input="Focus on AI",
            article_count=12,
        )

        assert record.id == 1
        assert record.suggested_titles == complete_newsletter["suggestedTitles"]
        assert record.feed_ids == ["f1", "f2"]
        assert record.article_count == 12
        assert newsletter_store.list_newsletters() == [record]

    def test_four_titles_rejected(self, newsletter_store, complete_newsletter) -> None:
        complete_newsletter["suggestedTitles"] = complete_newsletter["suggestedTitles"][:4]

        with pytest.raises(NewsletterValidationError, match="suggestedTitles"):
            save_generated_newsletter(newsletter_store, complete_newsletter, ["f1"], START, END)

        assert newsletter_store.list_newsletters() == []

    def test_six_announcements_rejected_not_truncated(self, newsletter_store, complete_newsletter) -> None:
        complete_newsletter["topAnnouncements"].append("one too many")

        with pytest.raises(NewsletterValidationError, match="topAnnouncements"):
            save_generated_newsletter(newsletter_store, complete_newsletter, ["f1"], START, END)

    def test_missing_body_rejected(self, newsletter_store, complete_newsletter) -> None:
        del complete_newsletter["body"]

        with pytest.raises(NewsletterValidationError, match="body"):
            save_generated_newsletter(newsletter_store, complete_newsletter, ["f1"], START, END)

    def test_additional_info_optional(self, newsletter_store, complete_newsletter) -> None:
        del complete_newsletter["additionalInfo"]

        record = save_generated_newsletter(newsletter_store, complete_newsletter, ["f1"], START, END)

        assert record.additional_info is None

    def test_accepts_draft(self, newsletter_store, complete_newsletter) -> None:
        draft = NewsletterDraft.model_validate(complete_newsletter)

        record = save_generated_newsletter(newsletter_store, draft, ["f1"], START, END)

        assert record.body == complete_newsletter["body"]
