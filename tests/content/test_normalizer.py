# ABOUTME: Tests for the content normalizer orchestrating sanitize, extract and uploads
# ABOUTME: Covers per-field rules, caption alignment, skip reporting and atomic storage failure

from datetime import date

import pytest

from trade_journal.content.base import StorageError
from trade_journal.content.models import CHART_UPLOAD_SECTION, DirectUpload
from trade_journal.content.normalizer import ContentNormalizer, split_captions

ENTRY_DATE = date(2024, 3, 5)
PNG_B64 = "iVBORw0KGgo="
PNG_BYTES = b"\x89PNG\r\n\x1a\n"
DATA_IMG = f'<img src="data:image/png;base64,{PNG_B64}">'


def _upload(name: str = "chart.png", content_type: str = "image/png", data: bytes = PNG_BYTES, caption=None):
    return DirectUpload(data=data, original_name=name, content_type=content_type, caption=caption)


class TestFieldRules:
    """Rich text versus plain text handling."""

    @pytest.mark.asyncio
    async def test_rich_text_example(self, local_store):
        normalizer = ContentNormalizer(local_store)

        entry = await normalizer.normalize({"trcPlan": f"<p>Hi</p>{DATA_IMG}"}, [], ENTRY_DATE)

        assert len(entry.images) == 1
        image = entry.images[0]
        assert image.source_field == "trcPlan"
        assert image.ordinal_position == 0
        assert entry.fields["trcPlan"] == f'<p>Hi</p><img src="/uploads/images/{image.filename}">'

    @pytest.mark.asyncio
    async def test_image_with_gt_in_alt_is_extracted(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize(
            {"trcPlan": f'<p>x</p><img alt="price > vwap" src="data:image/png;base64,{PNG_B64}">'}, [], ENTRY_DATE
        )

        assert len(entry.images) == 1
        assert entry.skipped == []
        assert f'src="/uploads/images/{entry.images[0].filename}"' in entry.fields["trcPlan"]
        assert "data:" not in entry.fields["trcPlan"]

    @pytest.mark.asyncio
    async def test_plain_text_is_trimmed_not_sanitized(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize({"trcGoal": "  Execute plan & manage risk  "}, [], ENTRY_DATE)

        assert entry.fields["trcGoal"] == "Execute plan & manage risk"

    @pytest.mark.asyncio
    async def test_null_fields_stay_null(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize({"learnings": None, "trcGoal": "x"}, [], ENTRY_DATE)

        assert entry.fields == {"learnings": None, "trcGoal": "x"}

    @pytest.mark.asyncio
    async def test_field_order_follows_submission(self, recording_store):
        normalizer = ContentNormalizer(recording_store)
        submission = {"c": "<p>3</p>", "a": "1", "b": None}

        entry = await normalizer.normalize(submission, [], ENTRY_DATE)

        assert list(entry.fields) == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_script_removed_from_rich_text(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize(
            {"learnings": "<p>ok</p><script>alert(1)</script><img src=x onerror=alert(1)>"}, [], ENTRY_DATE
        )

        value = entry.fields["learnings"]
        assert "<script" not in value
        assert "onerror" not in value
        assert value.startswith("<p>ok</p>")

    @pytest.mark.asyncio
    async def test_malformed_base64_leaves_bare_img(self, recording_store):
        normalizer = ContentNormalizer(recording_store)
        bad = '<p>a</p><img src="data:image/png;base64,!!!not-base64!!!">'

        entry = await normalizer.normalize({"trcPlan": bad}, [], ENTRY_DATE)

        assert entry.images == []
        assert entry.fields["trcPlan"] == "<p>a</p><img>"
        assert entry.skipped_count == 1
        assert entry.skipped[0].reason == "invalid_base64"

    @pytest.mark.asyncio
    async def test_no_data_uri_survives_normalization(self, recording_store):
        normalizer = ContentNormalizer(recording_store)
        submission = {
            "trcPlan": f"<p>a</p>{DATA_IMG}{DATA_IMG}",
            "learnings": f"<ul><li>{DATA_IMG}</li></ul>",
            "changePlan": '<img src="data:image/svg+xml;base64,PHN2Zz48L3N2Zz4=">',
        }

        entry = await normalizer.normalize(submission, [], ENTRY_DATE)

        for value in entry.fields.values():
            assert "data:" not in value
        assert len(entry.images) == 3
        assert len({img.filename for img in entry.images}) == 3
        assert [img.ordinal_position for img in entry.images if img.source_field == "trcPlan"] == [0, 1]

    @pytest.mark.asyncio
    async def test_many_fields_produce_unique_filenames(self, recording_store):
        normalizer = ContentNormalizer(recording_store)
        submission = {f"field{i}": DATA_IMG * 3 for i in range(20)}

        entry = await normalizer.normalize(submission, [], ENTRY_DATE)

        assert len(entry.images) == 60
        assert len({img.filename for img in entry.images}) == 60
        assert len(recording_store.files) == 60


class TestDirectUploads:
    """Attached chart images and their captions."""

    @pytest.mark.asyncio
    async def test_captions_blob_aligned_by_index(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize(
            {}, [_upload("entry.png"), _upload("exit.png")], ENTRY_DATE, captions_blob="Entry\nExit"
        )

        assert [img.caption for img in entry.images] == ["Entry", "Exit"]
        assert [img.source_field for img in entry.images] == [CHART_UPLOAD_SECTION, CHART_UPLOAD_SECTION]
        assert [img.ordinal_position for img in entry.images] == [0, 1]
        assert all(img.filename.startswith("20240305_") for img in entry.images)

    @pytest.mark.asyncio
    async def test_explicit_caption_wins_over_blob(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize(
            {}, [_upload(caption=" Breakout "), _upload()], ENTRY_DATE, captions_blob="Ignored\nSecond"
        )

        assert [img.caption for img in entry.images] == ["Breakout", "Second"]

    @pytest.mark.asyncio
    async def test_missing_captions_default_to_empty(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize({}, [_upload(), _upload()], ENTRY_DATE, captions_blob="Only one")

        assert [img.caption for img in entry.images] == ["Only one", ""]

    @pytest.mark.asyncio
    async def test_unsupported_type_skipped(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize(
            {}, [_upload("anim.gif", "image/gif"), _upload("ok.jpg", "image/jpeg")], ENTRY_DATE
        )

        assert len(entry.images) == 1
        assert entry.images[0].ordinal_position == 1
        assert entry.skipped[0].reason == "unsupported_media_type"
        assert entry.skipped[0].position == 0

    @pytest.mark.asyncio
    async def test_empty_upload_skipped(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize({}, [_upload(data=b"")], ENTRY_DATE)

        assert entry.images == []
        assert entry.skipped[0].reason == "empty_upload"

    @pytest.mark.asyncio
    async def test_extension_from_content_type_when_name_has_none(self, recording_store):
        normalizer = ContentNormalizer(recording_store)

        entry = await normalizer.normalize({}, [_upload("clipboard", "image/jpeg")], ENTRY_DATE)

        assert entry.images[0].filename.endswith("_clipboard.jpg")


class TestStorageFailure:
    """A failed image write fails the whole normalization."""

    @pytest.mark.asyncio
    async def test_field_failure_reports_other_written_images(self, store_factory):
        store = store_factory(fail_when=lambda name: "pnlOfTheDay" in name)
        normalizer = ContentNormalizer(store)

        with pytest.raises(StorageError) as exc_info:
            await normalizer.normalize(
                {"trcPlan": DATA_IMG, "pnlOfTheDay": DATA_IMG, "trcGoal": "plain"}, [], ENTRY_DATE
            )

        written = list(store.files.keys())
        assert len(written) == 1
        assert exc_info.value.orphaned_paths == written

    @pytest.mark.asyncio
    async def test_upload_failure_reports_inline_images(self, store_factory):
        store = store_factory(fail_when=lambda name: name.endswith("_second.png"))
        normalizer = ContentNormalizer(store)

        with pytest.raises(StorageError) as exc_info:
            await normalizer.normalize(
                {"trcPlan": DATA_IMG}, [_upload("first.png"), _upload("second.png")], ENTRY_DATE
            )

        assert sorted(exc_info.value.orphaned_paths) == sorted(store.files.keys())
        assert len(exc_info.value.orphaned_paths) == 2


def test_split_captions():
    assert split_captions(None) == []
    assert split_captions("") == []
    assert split_captions(" Entry \r\nExit\n") == ["Entry", "Exit"]
