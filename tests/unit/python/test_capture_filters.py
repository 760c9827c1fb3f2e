"""Unit tests for capture_filters Lambda handler."""

import importlib.util
import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError
from mocks.aws_mock import TABLE_NAME, create_captures_table
from moto import mock_aws

from capture_common.models import CaptureRecord, CaptureStatus, SourceType
from capture_common.records import CaptureRepository


def _load_capture_filters_module():
    """Load capture_filters module using importlib (avoids 'lambda' keyword issue)."""
    module_path = Path(__file__).parent.parent.parent.parent / "src/lambda/capture_filters/index.py"
    spec = importlib.util.spec_from_file_location("capture_filters_index", module_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules["capture_filters_index"] = module
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def repository(monkeypatch):
    with mock_aws():
        monkeypatch.setenv("CAPTURES_TABLE", TABLE_NAME)
        yield CaptureRepository(table=create_captures_table())


class TestCaptureFiltersHandler:
    """Tests for capture_filters lambda_handler."""

    def test_missing_table_env(self, monkeypatch):
        """Test error when CAPTURES_TABLE is missing."""
        monkeypatch.delenv("CAPTURES_TABLE", raising=False)
        module = _load_capture_filters_module()

        with pytest.raises(ValueError, match="CAPTURES_TABLE"):
            module.lambda_handler({"httpMethod": "GET"}, None)

    def test_facets(self, repository):
        """Test counts cover complete captures only."""
        for capture_id, status, topics in (
            ("a", CaptureStatus.COMPLETE, ["Design", "AI"]),
            ("b", CaptureStatus.COMPLETE, ["Design"]),
            ("c", CaptureStatus.FAILED, ["AI"]),
        ):
            repository.insert(
                CaptureRecord(
                    id=capture_id,
                    source_url=f"https://example.com/{capture_id}",
                    source_type=SourceType.WEB,
                    status=status,
                    topics=topics,
                    disciplines=["Development"],
                )
            )
        module = _load_capture_filters_module()

        response = module.lambda_handler({"httpMethod": "GET"}, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body == {
            "sourceTypes": [{"name": "web", "count": 2}],
            "topics": [{"name": "Design", "count": 2}, {"name": "AI", "count": 1}],
            "disciplines": [{"name": "Development", "count": 2}],
            "totalItems": 2,
        }

    def test_aws_error(self, repository):
        """Test DynamoDB errors map to 500."""
        module = _load_capture_filters_module()
        error = ClientError({"Error": {"Code": "InternalServerError", "Message": "x"}}, "Scan")

        with patch.object(module.CaptureRepository, "list_captures", side_effect=error):
            response = module.lambda_handler({}, None)

        assert response["statusCode"] == 500
        assert json.loads(response["body"]) == {"error": "Failed to fetch filters"}
