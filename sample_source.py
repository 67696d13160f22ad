# sample_source.py

"""
Sample Source

Best-effort timing samples used only for cosmetic feedback. Probes measure
round-trip latency or synthetic upload/download duration in milliseconds;
pollers run them on daemon threads at a fixed interval and hand the results
to the World through a queue, which the World drains at the start of a frame.

Data Contract:
- A probe never raises for transport problems; it returns 0.0 instead.
- Pollers do not retry or back off. A slow probe only delays its own next sample.
"""

import logging
import queue
import threading
import time
from collections import namedtuple
from http.client import HTTPException
from urllib.error import URLError
from urllib.request import Request, urlopen

from constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

# Value reported when a poll fails.
FAILED_SAMPLE = 0.0

SampleEvent = namedtuple('SampleEvent', ['endpoint', 'value'])


class LatencyProbe:
    """Round-trip time of a GET request, in milliseconds."""
    def __init__(self, url: str, timeout: float = 1.5):
        self.url = url
        self.timeout = timeout

    def poll(self) -> float:
        start = time.perf_counter()
        try:
            with urlopen(Request(self.url, method="GET"), timeout=self.timeout) as response:
                response.read(1)
        except (URLError, HTTPException, OSError, ValueError) as e:
            logger.debug(f"Latency poll of {self.url} failed: {e}")
            return FAILED_SAMPLE
        return (time.perf_counter() - start) * 1000.0


class ThroughputProbe:
    """
    Synthetic transfer duration, in milliseconds.

    'download' reads the whole body of a GET; 'upload' POSTs payload_bytes
    zero bytes and waits for the response.
    """
    DIRECTIONS = ('upload', 'download')

    def __init__(self, url: str, direction: str, payload_bytes: int = 65536, timeout: float = 5.0):
        if direction not in self.DIRECTIONS:
            raise ValueError(f"direction must be one of {self.DIRECTIONS}, got {direction!r}")
        self.url = url
        self.direction = direction
        self.payload_bytes = payload_bytes
        self.timeout = timeout

    def _request(self) -> Request:
        if self.direction == 'upload':
            return Request(
                self.url,
                data=bytes(self.payload_bytes),
                headers={'Content-Type': 'application/octet-stream'},
                method="POST",
            )
        return Request(self.url, method="GET")

    def poll(self) -> float:
        start = time.perf_counter()
        try:
            with urlopen(self._request(), timeout=self.timeout) as response:
                response.read()
        except (URLError, HTTPException, OSError, ValueError) as e:
            logger.debug(f"{self.direction.capitalize()} poll of {self.url} failed: {e}")
            return FAILED_SAMPLE
        return (time.perf_counter() - start) * 1000.0


class IntervalPoller:
    """
    Polls one probe on a daemon thread: once immediately, then every interval_s.

    Data Contract:
    - Inputs:
        - name (str): Endpoint identifier attached to every SampleEvent.
        - probe: Object with a poll() -> float method.
        - interval_s (float): Seconds between polls.
        - sample_queue (queue.Queue): Receives SampleEvent tuples.
    - Side Effects: Starts a thread on start(); stop() ends it after the current poll.
    """
    def __init__(self, name: str, probe, interval_s: float, sample_queue):
        self.name = name
        self.probe = probe
        self.interval_s = interval_s
        self.sample_queue = sample_queue
        self._stop_event = threading.Event()
        self._thread = None

    def poll_once(self) -> SampleEvent:
        event = SampleEvent(self.name, self.probe.poll())
        self.sample_queue.put(event)
        return event

    def _run(self):
        while not self._stop_event.is_set():
            self.poll_once()
            if self._stop_event.wait(self.interval_s):
                break

    def start(self):
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=f"poller-{self.name}", daemon=True)
        self._thread.start()
        logger.info(f"Polling '{self.name}' every {self.interval_s}s.")

    def stop(self, timeout: float = None):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class SampleTracker:
    """Previous and current sample for every endpoint seen so far."""
    def __init__(self):
        self._samples = {}

    def record(self, endpoint: str, value: float):
        _, current = self._samples.get(endpoint, (value, value))
        self._samples[endpoint] = (current, value)

    def current(self, endpoint: str) -> float:
        return self._samples.get(endpoint, (FAILED_SAMPLE, FAILED_SAMPLE))[1]

    def trend(self, endpoint: str) -> float:
        """current - previous; 0.0 for an endpoint with fewer than two samples."""
        previous, current = self._samples.get(endpoint, (FAILED_SAMPLE, FAILED_SAMPLE))
        return current - previous

    def endpoints(self):
        return list(self._samples)

    def drain(self, sample_queue) -> list:
        """Records every event waiting on the queue, oldest first. Returns the consumed events."""
        consumed = []
        while True:
            try:
                event = sample_queue.get_nowait()
            except queue.Empty:
                return consumed
            self.record(event.endpoint, event.value)
            consumed.append(event)


def build_pollers(sampling_config: dict, sample_queue) -> list:
    """
    Creates (but does not start) pollers for the 'sampling' section of the config file.

    Latency endpoints are keyed by name; the optional 'throughput' block adds
    'upload' and 'download' pollers.
    """
    if not sampling_config.get('enabled', False):
        return []

    interval = sampling_config['interval_s']
    timeout = sampling_config.get('timeout_s', 1.5)
    pollers = []

    for name, url in sampling_config.get('latency_endpoints', {}).items():
        pollers.append(IntervalPoller(name, LatencyProbe(url, timeout), interval, sample_queue))

    throughput = sampling_config.get('throughput')
    if throughput:
        payload = throughput.get('payload_bytes', 65536)
        if throughput.get('upload_url'):
            probe = ThroughputProbe(throughput['upload_url'], 'upload', payload, timeout)
            pollers.append(IntervalPoller('upload', probe, interval, sample_queue))
        if throughput.get('download_url'):
            probe = ThroughputProbe(throughput['download_url'], 'download', payload, timeout)
            pollers.append(IntervalPoller('download', probe, interval, sample_queue))

    logger.info(f"Built {len(pollers)} sample pollers.")
    return pollers
