"""
Tests for the command-line runner's exit codes.
"""
import json

import pytest

from models.pipeline import PipelineResult
from scripts import recommend
from services.errors import GEOCODE, NoResults


def _result(success: bool) -> PipelineResult:
    if success:
        return PipelineResult(
            location="星海广场",
            city="大连",
            coordinates=[121.5, 38.9],
            recommendation="去海之韵。",
            model="qwen3-235b-a22b",
            success=True,
        )
    return PipelineResult(
        location="星海广场",
        city="大连",
        coordinates=[121.5, 38.9],
        success=False,
        error="Failed to get AI response from both primary and backup models: down",
    )


@pytest.fixture
def fake_pipeline(monkeypatch):
    outcome = {}

    async def _fake(client, config, location=None, city=None):
        outcome["location"] = location
        if isinstance(outcome.get("raise"), Exception):
            raise outcome["raise"]
        return outcome["result"]

    monkeypatch.setattr(recommend, "get_recommendations", _fake)
    return outcome


def test_success_exit_code(fake_pipeline, capsys):
    fake_pipeline["result"] = _result(True)
    assert recommend.main(["星海广场"]) == recommend.EXIT_OK
    assert "去海之韵。" in capsys.readouterr().out
    assert fake_pipeline["location"] == "星海广场"


def test_ai_failure_exit_code(fake_pipeline, capsys):
    fake_pipeline["result"] = _result(False)
    assert recommend.main(["星海广场", "--json"]) == recommend.EXIT_AI_FAILURE
    body = json.loads(capsys.readouterr().out)
    assert body["success"] is False
    assert body["coordinates"] == [121.5, 38.9]


def test_pipeline_error_exit_code(fake_pipeline, capsys):
    fake_pipeline["raise"] = NoResults("no matching place found", stage=GEOCODE)
    assert recommend.main(["zzz_nonexistent_place", "--json"]) == recommend.EXIT_PIPELINE_ERROR
    body = json.loads(capsys.readouterr().out)
    assert body["stage"] == "geocode"
