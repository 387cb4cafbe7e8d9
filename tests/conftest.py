"""
Pytest configuration and shared fixtures for ad trace analyzer tests.
"""
import json
import pytest

IMPL_URL = "https://securepubads.g.doubleclick.net/gpt/pubads_impl_2023010101.js"
GPT_URL = "https://securepubads.g.doubleclick.net/tag/js/gpt.js"
APPNEXUS_URL = "https://ib.adnxs.com/ut/v3/prebid"
RUBICON_URL = "https://fastlane.rubiconproject.com/a/api/fastlane.json"
AD_IFRAME_ID = "google_ads_iframe_/123/slot_0"


@pytest.fixture
def make_request():
    """Factory for raw devtools-log request records (times in ms)."""
    def _make(request_id, start, end, initiator=None, frame="main", url=None, **extra):
        record = {
            "requestId": request_id,
            "url": url or f"https://example.com/{request_id}.js",
            "startTime": start,
            "endTime": end,
            "frameId": frame,
        }
        if initiator is not None:
            record["initiator"] = initiator
        record.update(extra)
        return record
    return _make


@pytest.fixture
def make_event():
    """Factory for raw trace events (timestamps in microseconds)."""
    def _make(name, ts, dur=None, frame=None, **data):
        event = {"name": name, "ts": ts, "cat": "devtools.timeline", "args": {}}
        if dur is not None:
            event["dur"] = dur
        if frame is not None:
            event["args"]["frame"] = frame
        if data:
            event["args"]["data"] = data
        return event
    return _make


@pytest.fixture
def chain_requests(make_request):
    """A -> B -> C initiator chain with captured durations of 100, 200 and 300 ms."""
    return [
        make_request("A", 0, 100),
        make_request("B", 100, 300, initiator="A"),
        make_request("C", 300, 600, initiator="B"),
    ]


@pytest.fixture
def ad_page_artifacts(make_request, make_event):
    """
    A publisher page that loads GPT, the implementation script, one bid that
    waits for the implementation and one bid started in parallel.
    """
    requests = [
        make_request("doc", 0, 100, url="https://publisher.example/", resourceType="Document"),
        make_request("gpt", 100, 200, initiator="doc", url=GPT_URL, resourceType="Script"),
        make_request("impl", 200, 500, initiator="gpt", url=IMPL_URL, resourceType="Script"),
        make_request("rubicon", 100, 300, initiator="doc", url=RUBICON_URL, resourceType="XHR"),
        make_request("appnexus", 500, 900, initiator="impl", url=APPNEXUS_URL, resourceType="XHR"),
    ]
    events = [
        make_event("navigationStart", 0),
        make_event("LayoutShift", 100_000, score=0.1, is_main_frame=True, had_recent_input=False,
                   impacted_nodes=[{"old_rect": [0, 0, 300, 250], "new_rect": [0, 100, 300, 250]}]),
        make_event("EvaluateScript", 200_000, dur=50_000, frame="main", url=IMPL_URL),
        make_event("LayoutShift", 600_000, score=0.05, is_main_frame=True, had_recent_input=False,
                   impacted_nodes=[{"old_rect": [0, 600, 300, 100], "new_rect": [0, 700, 300, 100]}]),
        make_event("LayoutShift", 700_000, score=0.5, is_main_frame=True, had_recent_input=True,
                   impacted_nodes=[{"old_rect": [0, 0, 300, 250], "new_rect": [0, 50, 300, 250]}]),
        make_event("Paint", 3_500_000, frame="ad-frame"),
    ]
    return {
        "requests": requests,
        "traceEvents": events,
        "frames": {"main": None},
        "iframeElements": [
            {
                "id": AD_IFRAME_ID,
                "frameId": "ad-frame",
                "src": "https://securepubads.g.doubleclick.net/static/container.html",
                "clientRect": {"left": 0, "top": 0, "right": 300, "bottom": 250,
                               "width": 300, "height": 250},
            }
        ],
    }


@pytest.fixture
def ad_page_file(tmp_path, ad_page_artifacts):
    """Write the ad page artifacts to a temporary JSON file."""
    artifact_file = tmp_path / "artifacts.json"
    with open(artifact_file, "w") as f:
        json.dump(ad_page_artifacts, f)
    return str(artifact_file)
