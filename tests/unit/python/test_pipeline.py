"""Unit tests for the capture state machine.

Records live in a moto DynamoDB table; scraping and Bedrock are mocked. Media is
mocked too, except where a real materializer writes to a moto bucket.
"""

from unittest.mock import MagicMock

import httpx
import pytest
from mocks.aws_mock import BUCKET_NAME, REGION, create_captures_table, create_media_bucket
from mocks.bedrock_mock import CATEGORIZATION_REPLY, create_mock_bedrock_client
from moto import mock_aws

from capture_common.categorizer import Categorizer
from capture_common.config import PipelineSettings
from capture_common.exceptions import ScrapeChainExhausted, StrategyError
from capture_common.media import MaterializedMedia, MediaMaterializer
from capture_common.models import (
    CaptureMessage,
    CaptureRecord,
    CaptureStatus,
    ChannelContext,
    ContentType,
    ExtractedContent,
    MediaAsset,
    SourceType,
)
from capture_common.pipeline import (
    Completed,
    Failed,
    PipelineContext,
    build_pipeline_context,
    process_capture,
)
from capture_common.records import CaptureRepository
from capture_common.scraper.base import ContentStrategy
from capture_common.scraper.fetcher import HttpFetcher
from capture_common.scraper.registry import StrategyRegistry
from capture_common.storage import BlobStore

URL = "https://example.com/article"


class FixedStrategy(ContentStrategy):
    name = "generic"

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error

    def attempt(self, url):
        if self.error:
            raise self.error
        # Fresh copy per call, as a real strategy would return
        return ExtractedContent(**{**self.content.__dict__, "platform_data": dict(self.content.platform_data)})


def scraped_article():
    return ExtractedContent(
        title="Design Systems 101",
        description="How small teams ship consistent UI.",
        body_text="Start with tokens.",
        author_name="Jo",
        images=[MediaAsset(original_url="https://cdn.example.com/cover.jpg")],
        platform_data={"siteName": "Example"},
    )


def rehosting_materializer():
    materializer = MagicMock()

    def materialize(capture_id, images, videos, screenshot=None):
        return MaterializedMedia(
            images=[
                MediaAsset(
                    original_url=image.original_url,
                    storage_path=f"captures/{capture_id}/images/{i}.jpg",
                    public_url=f"https://media.example.com/captures/{capture_id}/images/{i}.jpg",
                )
                for i, image in enumerate(images)
            ],
            videos=list(videos),
            screenshot=screenshot,
        )

    materializer.materialize.side_effect = materialize
    return materializer


@pytest.fixture
def repository():
    with mock_aws():
        yield CaptureRepository(table=create_captures_table())


def make_context(repository, strategy, bedrock_reply=CATEGORIZATION_REPLY, materializer=None):
    return PipelineContext(
        repository=repository,
        registry=StrategyRegistry({SourceType.WEB: [strategy]}, fallback=strategy),
        materializer=materializer or rehosting_materializer(),
        categorizer=Categorizer(create_mock_bedrock_client(bedrock_reply), "test-model"),
    )


def submitted(repository, capture_id="cap-1", notes=None):
    record = CaptureRecord(id=capture_id, source_url=URL, source_type=SourceType.WEB)
    if notes:
        record.platform_data["user_notes"] = notes
    repository.insert(record)
    return CaptureMessage(capture_id=capture_id, url=URL, source_type=SourceType.WEB, notes=notes)


class TestProcessCapture:
    """Tests for process_capture."""

    def test_completes_capture(self, repository):
        message = submitted(repository, notes="for the team")
        message.channel_context = ChannelContext(
            message_id="m1", channel_id="c1", user_id="u1", user_name="sam"
        )
        ctx = make_context(repository, FixedStrategy(scraped_article()))

        outcome = process_capture(message, ctx)

        assert isinstance(outcome, Completed)
        stored = repository.get("cap-1")
        assert stored.status == CaptureStatus.COMPLETE
        assert stored.title == "Design Systems 101"
        assert stored.summary.startswith("A practical guide")
        assert stored.topics == ["Design", "Startups"]
        assert stored.disciplines == ["UX/UI"]
        assert stored.content_type == ContentType.ARTICLE
        assert stored.processed_at is not None
        assert stored.images[0].public_url.endswith("captures/cap-1/images/0.jpg")
        assert stored.platform_data["user_notes"] == "for the team"
        assert stored.platform_data["submitted_by"] == "sam"
        assert stored.platform_data["channel_context"]["channelId"] == "c1"
        assert stored.platform_data["scrapedWith"] == "generic"
        assert stored.platform_data["siteName"] == "Example"
        assert stored.platform_data["thumbnail"] == stored.images[0].public_url

    def test_scrape_exhaustion_fails_capture(self, repository):
        message = submitted(repository)
        ctx = make_context(repository, FixedStrategy(error=StrategyError("HTTP 403: Forbidden")))

        outcome = process_capture(message, ctx)

        assert isinstance(outcome, Failed)
        assert outcome.reason == "No content extracted.\ngeneric: HTTP 403: Forbidden"
        stored = repository.get("cap-1")
        assert stored.status == CaptureStatus.FAILED
        assert stored.error_message == outcome.reason
        ctx.materializer.materialize.assert_not_called()

    def test_categorization_failure_still_completes(self, repository):
        message = submitted(repository)
        ctx = make_context(repository, FixedStrategy(scraped_article()), bedrock_reply="not json")

        outcome = process_capture(message, ctx)

        assert isinstance(outcome, Completed)
        stored = repository.get("cap-1")
        assert stored.status == CaptureStatus.COMPLETE
        assert stored.use_cases == ["Reference"]
        assert stored.disciplines == ["General"]

    def test_reprocessing_is_idempotent(self, repository):
        message = submitted(repository)
        ctx = make_context(repository, FixedStrategy(scraped_article()))

        first = process_capture(message, ctx).record
        second = process_capture(message, ctx).record

        ignored = {"updated_at", "processed_at"}
        first_data = {k: v for k, v in first.to_dict().items() if k not in ignored}
        second_data = {k: v for k, v in second.to_dict().items() if k not in ignored}
        assert first_data == second_data
        assert repository.list_captures(status=CaptureStatus.COMPLETE)[1] == 1

    def test_retry_after_failure_clears_error(self, repository):
        message = submitted(repository)
        failing = make_context(repository, FixedStrategy(error=StrategyError("down")))
        process_capture(message, failing)

        working = make_context(repository, FixedStrategy(scraped_article()))
        process_capture(message, working)

        stored = repository.get("cap-1")
        assert stored.status == CaptureStatus.COMPLETE
        assert stored.error_message is None

    def test_missing_record_is_recreated(self, repository):
        message = CaptureMessage(
            capture_id="cap-orphan", url=URL, source_type=SourceType.WEB, notes="n"
        )
        ctx = make_context(repository, FixedStrategy(scraped_article()))

        process_capture(message, ctx)

        stored = repository.get("cap-orphan")
        assert stored.status == CaptureStatus.COMPLETE
        assert stored.source_url == URL
        assert stored.platform_data["user_notes"] == "n"

    def test_store_errors_propagate(self):
        repository = MagicMock()
        repository.get.side_effect = RuntimeError("DynamoDB unavailable")
        ctx = make_context(repository, FixedStrategy(scraped_article()))
        message = CaptureMessage(capture_id="x", url=URL, source_type=SourceType.WEB)

        with pytest.raises(RuntimeError, match="unavailable"):
            process_capture(message, ctx)


class TestProcessCaptureWithRealMedia:
    """Tests running a real MediaMaterializer against a moto bucket."""

    @staticmethod
    def s3_materializer(handler):
        s3 = create_media_bucket()
        fetcher = HttpFetcher(client=httpx.Client(transport=httpx.MockTransport(handler)))
        store = BlobStore(BUCKET_NAME, region=REGION, client=s3)
        return MediaMaterializer(store, fetcher=fetcher), s3

    def test_unreachable_image_keeps_original_url(self, repository):
        materializer, s3 = self.s3_materializer(lambda request: httpx.Response(404))
        ctx = make_context(repository, FixedStrategy(scraped_article()), materializer=materializer)

        outcome = process_capture(submitted(repository), ctx)

        assert isinstance(outcome, Completed)
        stored = repository.get("cap-1")
        assert stored.status == CaptureStatus.COMPLETE
        assert stored.images[0].original_url == "https://cdn.example.com/cover.jpg"
        assert stored.images[0].public_url is None
        assert stored.images[0].storage_path is None
        assert stored.platform_data["thumbnail"] == "https://cdn.example.com/cover.jpg"
        assert s3.list_objects_v2(Bucket=BUCKET_NAME)["KeyCount"] == 0

    def test_image_is_rehosted_to_bucket(self, repository):
        def handler(request):
            return httpx.Response(200, content=b"\xff\xd8\xff\xe0cover", headers={"content-type": "image/jpeg"})

        materializer, s3 = self.s3_materializer(handler)
        ctx = make_context(repository, FixedStrategy(scraped_article()), materializer=materializer)

        process_capture(submitted(repository), ctx)

        image = repository.get("cap-1").images[0]
        assert image.storage_path == "captures/cap-1/images/0.jpg"
        assert image.public_url.endswith("/captures/cap-1/images/0.jpg")
        body = s3.get_object(Bucket=BUCKET_NAME, Key=image.storage_path)["Body"].read()
        assert body == b"\xff\xd8\xff\xe0cover"


class TestBuildPipelineContext:
    """Tests for build_pipeline_context."""

    def test_requires_table(self):
        with pytest.raises(ValueError, match="CAPTURES_TABLE"):
            build_pipeline_context(PipelineSettings(media_bucket="bucket"))

    def test_requires_bucket(self):
        with pytest.raises(ValueError, match="MEDIA_BUCKET"):
            build_pipeline_context(PipelineSettings(captures_table="table"))

    def test_builds_context(self):
        ctx = build_pipeline_context(
            PipelineSettings(captures_table="table", media_bucket="bucket", region="us-east-1")
        )
        assert ctx.repository.table_name == "table"
        assert ctx.materializer.blob_store.bucket == "bucket"
        assert ctx.categorizer.model_id == PipelineSettings().categorization_model_id


def test_exhaustion_message_has_one_line_per_attempt():
    error = ScrapeChainExhausted("u", [])
    assert str(error) == "No content extracted.\nno strategy could handle this URL"
