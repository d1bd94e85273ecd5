"""Tests for the preview pipeline handler."""

import re

import pytest

from beat_preview.domain import PREVIEW_POLICY, PreviewRequest, SourceReference
from beat_preview.exceptions import (
    FetchError,
    InvalidPreviewRequestError,
    PublishError,
    SourceAccessError,
    ToolUnavailableError,
    TranscodeError,
)
from beat_preview.handlers import PreviewHandler
from beat_preview.infrastructure import FfmpegTranscoder

from conftest import PUBLIC_BUCKETS, requires_ffmpeg, write_test_wav


def _request(object_name="mp3/track1.wav", bucket="beat-mp3s", dest_object=None):
    return PreviewRequest(
        source=SourceReference(bucket_name=bucket, object_name=object_name),
        dest_bucket="beat-previews",
        dest_object=dest_object,
    )


class TestSuccessfulRun:
    """Tests for a pipeline run where every stage succeeds."""

    def test_publishes_preview_at_generated_key(self, handler, storage):
        """Without a destination key the preview lands at previews/preview_<ms>.mp3."""
        result = handler.process(_request())

        assert re.fullmatch(r"previews/preview_\d{13}\.mp3", result.object_name)
        assert result.bucket_name == "beat-previews"
        assert result.public_url == f"http://cdn.test/beat-previews/{result.object_name}"
        assert storage.objects[("beat-previews", result.object_name)] == b"MP3:RIFF-full-length-track"
        assert storage.content_types[("beat-previews", result.object_name)] == "audio/mpeg"

    def test_publishes_preview_at_requested_key(self, handler, storage):
        result = handler.process(_request(dest_object="previews/preview_42.mp3"))

        assert result.object_name == "previews/preview_42.mp3"
        assert ("beat-previews", "previews/preview_42.mp3") in storage.objects

    def test_blank_destination_key_uses_default(self, handler):
        result = handler.process(_request(dest_object="   "))

        assert result.object_name.startswith("previews/preview_")

    def test_stages_run_in_order(self, handler, storage):
        handler.process(_request())

        assert storage.calls == ["ensure_public_bucket", "sign", "fetch", "upload"]

    def test_public_bucket_prepared_once(self, handler, storage):
        handler.process(_request(dest_object="a.mp3"))
        handler.process(_request(dest_object="b.mp3"))

        assert storage.public_buckets == ["beat-previews"]

    def test_public_policy_follows_the_destination_used(
        self, storage, fetcher, transcoder, scratch_root
    ):
        handler = PreviewHandler(
            storage=storage,
            fetcher=fetcher,
            transcoder=transcoder,
            public_buckets=("beat-previews", "beat-samples"),
            scratch_dir=scratch_root,
        )
        request = PreviewRequest(
            source=SourceReference(bucket_name="beat-mp3s", object_name="mp3/track1.wav"),
            dest_bucket="beat-samples",
        )

        result = handler.process(request)

        assert storage.public_buckets == ["beat-samples"]
        assert result.public_url.startswith("http://cdn.test/beat-samples/")

    def test_fixed_policy_is_applied(self, handler, transcoder):
        handler.process(_request())

        _, output_path, policy = transcoder.calls[0]
        assert policy == PREVIEW_POLICY
        assert policy.duration_seconds == 30
        assert policy.audio_bitrate == "192k"
        assert output_path.name == "preview.mp3"

    def test_input_keeps_source_extension(self, handler, fetcher):
        handler.process(_request())

        assert fetcher.destinations[0].name == "input.wav"

    def test_input_without_extension_defaults_to_mp3(self, handler, storage, fetcher):
        storage.objects[("beat-mp3s", "mp3/untitled")] = b"bytes"

        handler.process(_request(object_name="mp3/untitled"))

        assert fetcher.destinations[0].name == "input.mp3"

    def test_bucket_aliases_are_resolved(self, handler, storage):
        """Storefront short names map to the real bucket names."""
        request = PreviewRequest(
            source=SourceReference(bucket_name="beats", object_name="mp3/track1.wav"),
            dest_bucket="previews",
            dest_object="previews/alias.mp3",
        )

        result = handler.process(request)

        assert result.bucket_name == "beat-previews"
        assert ("beat-previews", "previews/alias.mp3") in storage.objects

    def test_metadata_is_returned(self, handler):
        result = handler.process(_request())

        assert result.metadata is not None
        assert result.metadata.duration_seconds == 30.0


class TestIdempotentPublish:
    """Re-running with the same destination key replaces the earlier preview."""

    def test_second_run_overwrites_first(self, handler, storage):
        handler.process(_request(dest_object="previews/same.mp3"))
        storage.objects[("beat-mp3s", "mp3/track1.wav")] = b"RIFF-updated-track"

        handler.process(_request(dest_object="previews/same.mp3"))

        published = [key for key in storage.objects if key[0] == "beat-previews"]
        assert published == [("beat-previews", "previews/same.mp3")]
        assert storage.objects[("beat-previews", "previews/same.mp3")] == b"MP3:RIFF-updated-track"


class TestWorkspaceCleanup:
    """The scratch directory is removed on every exit path."""

    def test_removed_after_success(self, handler, fetcher, scratch_root):
        handler.process(_request())

        assert not fetcher.destinations[0].parent.exists()
        assert list(scratch_root.iterdir()) == []

    def test_removed_after_fetch_failure(self, handler, fetcher, scratch_root):
        fetcher.fail_status = 403

        with pytest.raises(FetchError) as exc_info:
            handler.process(_request())

        assert exc_info.value.status_code == 403
        assert list(scratch_root.iterdir()) == []

    def test_removed_after_transcode_failure(self, handler, storage, transcoder, scratch_root):
        transcoder.fail_returncode = 1

        with pytest.raises(TranscodeError) as exc_info:
            handler.process(_request())

        assert exc_info.value.returncode == 1
        assert "upload" not in storage.calls
        assert list(scratch_root.iterdir()) == []

    def test_removed_after_publish_failure(self, handler, storage, scratch_root):
        storage.fail_upload = True

        with pytest.raises(PublishError):
            handler.process(_request())

        assert list(scratch_root.iterdir()) == []

    def test_each_run_gets_its_own_workspace(self, handler, fetcher):
        handler.process(_request(dest_object="a.mp3"))
        handler.process(_request(dest_object="b.mp3"))

        first, second = fetcher.destinations
        assert first.parent != second.parent
        assert first.parent.name.startswith("preview-")
        assert second.parent.name.startswith("preview-")


class TestFailFast:
    """Failures that must stop the pipeline before touching storage."""

    def test_missing_tool_makes_no_store_calls(self, handler, storage, transcoder, scratch_root):
        transcoder.available = False

        with pytest.raises(ToolUnavailableError):
            handler.process(_request())

        assert storage.calls == []
        assert list(scratch_root.iterdir()) == []

    def test_unknown_destination_bucket_rejected(self, handler, storage):
        request = PreviewRequest(
            source=SourceReference(bucket_name="beat-mp3s", object_name="mp3/track1.wav"),
            dest_bucket="somewhere-else",
        )

        with pytest.raises(InvalidPreviewRequestError):
            handler.process(request)

        assert storage.calls == []

    def test_private_source_bucket_rejected_as_destination(self, handler, storage, scratch_root):
        """A caller cannot publish over the full-length asset through a storefront alias."""
        request = PreviewRequest(
            source=SourceReference(bucket_name="beat-mp3s", object_name="mp3/track1.wav"),
            dest_bucket="beats",
            dest_object="mp3/track1.wav",
        )

        with pytest.raises(InvalidPreviewRequestError):
            handler.process(request)

        assert storage.calls == []
        assert storage.objects[("beat-mp3s", "mp3/track1.wav")] == b"RIFF-full-length-track"
        assert list(scratch_root.iterdir()) == []

    def test_destination_equal_to_source_rejected(self, storage, fetcher, transcoder, scratch_root):
        handler = PreviewHandler(
            storage=storage,
            fetcher=fetcher,
            transcoder=transcoder,
            public_buckets=("beat-mp3s", "beat-previews"),
            scratch_dir=scratch_root,
        )
        request = PreviewRequest(
            source=SourceReference(bucket_name="beat-mp3s", object_name="mp3/track1.wav"),
            dest_bucket="beat-mp3s",
        )

        with pytest.raises(InvalidPreviewRequestError):
            handler.process(request)

        assert storage.calls == []

    def test_missing_source_object(self, handler, storage, fetcher, scratch_root):
        """A missing source fails at signing; nothing is fetched or published."""
        with pytest.raises(SourceAccessError):
            handler.process(_request(object_name="mp3/missing.wav"))

        assert "fetch" not in storage.calls
        assert "upload" not in storage.calls
        assert fetcher.destinations == []
        assert list(scratch_root.iterdir()) == []
        assert not [key for key in storage.objects if key[0] == "beat-previews"]


@requires_ffmpeg
class TestWithFfmpeg:
    """Runs the whole pipeline with the real encoder."""

    def test_long_source_publishes_thirty_second_preview(
        self, storage, fetcher, scratch_root, tmp_path
    ):
        source = write_test_wav(tmp_path / "track.wav", seconds=45)
        storage.objects[("beat-mp3s", "mp3/track45.wav")] = source.read_bytes()
        transcoder = FfmpegTranscoder()
        handler = PreviewHandler(
            storage=storage,
            fetcher=fetcher,
            transcoder=transcoder,
            public_buckets=PUBLIC_BUCKETS,
            scratch_dir=scratch_root,
        )

        result = handler.process(
            PreviewRequest(
                source=SourceReference(bucket_name="beat-mp3s", object_name="mp3/track45.wav"),
                dest_bucket="beat-previews",
            )
        )

        assert re.fullmatch(r"previews/preview_\d{13}\.mp3", result.object_name)
        assert storage.content_types[("beat-previews", result.object_name)] == "audio/mpeg"
        published = tmp_path / "published.mp3"
        published.write_bytes(storage.objects[("beat-previews", result.object_name)])
        metadata = transcoder.probe(published)
        assert metadata.duration_seconds == pytest.approx(30.0, abs=0.05)
        assert metadata.has_video is False
        assert result.metadata.duration_seconds == pytest.approx(30.0, abs=0.05)
        assert list(scratch_root.iterdir()) == []
