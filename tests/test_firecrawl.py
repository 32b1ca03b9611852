"""Tests for the Firecrawl envelope summary."""

from rabbithole.firecrawl import describe_response


def test_describe_v2_envelope():
    assert describe_response({"success": True, "data": {"web": [{}, {}]}}) == {
        "hasSuccess": True,
        "hasData": True,
        "hasWeb": True,
        "sourcesCount": 2,
    }


def test_describe_v1_envelope():
    assert describe_response({"data": [{"url": "a"}]}) == {
        "hasSuccess": False,
        "hasData": True,
        "hasWeb": False,
        "sourcesCount": 1,
    }


def test_describe_empty_web():
    summary = describe_response({"success": False, "data": {"web": None}})
    assert summary["hasWeb"] is True
    assert summary["sourcesCount"] == 0


def test_describe_non_dict():
    assert describe_response("oops") == {
        "hasSuccess": False,
        "hasData": False,
        "hasWeb": False,
        "sourcesCount": 0,
    }
