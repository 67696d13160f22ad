import queue
from types import SimpleNamespace
from urllib.error import URLError

import pytest

import sample_source
from sample_source import (
    FAILED_SAMPLE,
    IntervalPoller,
    LatencyProbe,
    SampleEvent,
    SampleTracker,
    ThroughputProbe,
    build_pollers,
)


class FakeResponse:
    def __init__(self, body=b"ok"):
        self.body = body

    def read(self, amount=None):
        return self.body if amount is None else self.body[:amount]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeClock:
    def __init__(self, *readings):
        self.readings = list(readings)

    def __call__(self):
        return self.readings.pop(0)


class CountingProbe:
    def __init__(self, value=12.5):
        self.value = value
        self.calls = 0

    def poll(self):
        self.calls += 1
        return self.value


@pytest.fixture
def requests_seen(monkeypatch):
    seen = []

    def fake_urlopen(request, timeout=None):
        seen.append((request, timeout))
        return FakeResponse()

    monkeypatch.setattr(sample_source, "urlopen", fake_urlopen)
    monkeypatch.setattr(sample_source, "time", SimpleNamespace(perf_counter=FakeClock(10.0, 10.25)))
    return seen


def test_latency_probe_measures_round_trip(requests_seen):
    probe = LatencyProbe("http://example.test/ping", timeout=0.5)

    assert probe.poll() == pytest.approx(250.0)
    request, timeout = requests_seen[0]
    assert request.get_method() == "GET"
    assert request.full_url == "http://example.test/ping"
    assert timeout == 0.5


@pytest.mark.parametrize("error", [URLError("unreachable"), TimeoutError("slow"), ConnectionResetError()])
def test_latency_probe_failure_yields_zero(monkeypatch, error):
    def failing_urlopen(request, timeout=None):
        raise error

    monkeypatch.setattr(sample_source, "urlopen", failing_urlopen)
    assert LatencyProbe("http://example.test/ping").poll() == FAILED_SAMPLE


def test_latency_probe_bad_url_yields_zero():
    assert LatencyProbe("not a url").poll() == FAILED_SAMPLE


def test_upload_probe_posts_payload(requests_seen):
    probe = ThroughputProbe("http://example.test/post", "upload", payload_bytes=1024)

    assert probe.poll() == pytest.approx(250.0)
    request, _ = requests_seen[0]
    assert request.get_method() == "POST"
    assert len(request.data) == 1024


def test_download_probe_gets_body(requests_seen):
    probe = ThroughputProbe("http://example.test/bytes", "download")

    assert probe.poll() == pytest.approx(250.0)
    assert requests_seen[0][0].get_method() == "GET"


def test_throughput_probe_rejects_unknown_direction():
    with pytest.raises(ValueError):
        ThroughputProbe("http://example.test", "sideways")


def test_poll_once_enqueues_event():
    sample_queue = queue.Queue()
    poller = IntervalPoller("google", CountingProbe(33.0), 60.0, sample_queue)

    assert poller.poll_once() == SampleEvent("google", 33.0)
    assert sample_queue.get_nowait() == SampleEvent("google", 33.0)


def test_poller_thread_polls_until_stopped():
    sample_queue = queue.Queue()
    probe = CountingProbe()
    poller = IntervalPoller("google", probe, 0.01, sample_queue)

    poller.start()
    first = sample_queue.get(timeout=2.0)
    second = sample_queue.get(timeout=2.0)
    poller.stop(timeout=2.0)

    assert first == second == SampleEvent("google", 12.5)
    assert not poller.running
    calls = probe.calls
    assert sample_queue.qsize() == calls - 2


def test_tracker_trend():
    tracker = SampleTracker()
    assert tracker.trend("google") == 0.0
    assert tracker.current("google") == 0.0

    tracker.record("google", 40.0)
    assert tracker.trend("google") == 0.0
    tracker.record("google", 55.0)
    assert tracker.trend("google") == 15.0
    tracker.record("google", 50.0)
    assert tracker.trend("google") == -5.0
    assert tracker.current("google") == 50.0


def test_tracker_drain_keeps_queue_order():
    sample_queue = queue.Queue()
    for value in (10.0, 30.0, 20.0):
        sample_queue.put(SampleEvent("google", value))
    sample_queue.put(SampleEvent("upload", 5.0))

    tracker = SampleTracker()
    events = tracker.drain(sample_queue)

    assert len(events) == 4
    assert tracker.trend("google") == -10.0
    assert tracker.endpoints() == ["google", "upload"]
    assert tracker.drain(sample_queue) == []


def test_build_pollers_from_config():
    config = {
        "enabled": True,
        "interval_s": 1.0,
        "timeout_s": 0.5,
        "latency_endpoints": {"google": "http://a.test", "cloudflare": "http://b.test"},
        "throughput": {
            "upload_url": "http://c.test/post",
            "download_url": "http://c.test/bytes",
            "payload_bytes": 2048,
        },
    }
    pollers = build_pollers(config, queue.Queue())

    assert [p.name for p in pollers] == ["google", "cloudflare", "upload", "download"]
    assert all(p.interval_s == 1.0 for p in pollers)
    assert pollers[0].probe.timeout == 0.5
    assert pollers[2].probe.payload_bytes == 2048
    assert not any(p.running for p in pollers)


def test_build_pollers_disabled():
    assert build_pollers({"enabled": False, "interval_s": 1.0}, queue.Queue()) == []
    assert build_pollers({}, queue.Queue()) == []
