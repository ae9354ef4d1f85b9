"""Shared fixtures: a manual clock for timers and a scripted recognition transport."""

import asyncio

import pytest

from loto_client.scanner.base import ImagePayload, RecognitionTransport
from loto_client.scanner.errors import PermissionDenied
from loto_client.schemas.scan import Block, ScanResult

SAMPLE_BLOCK = Block(
    row1=[5, 13, 27, 44, 90],
    row2=[8, 19, 36, 52, 71],
    row3=[21, 33, 48, 65, 87],
)

SIMPLE_BLOCK = Block(
    row1=[1, 2, 3, 4, 5],
    row2=[11, 22, 33, 44, 55],
    row3=[61, 72, 83],
)


def make_result(status="ok", blocks=None, **fields) -> ScanResult:
    if blocks is None:
        blocks = [SAMPLE_BLOCK]
    return ScanResult(
        lottery_type="LOTO",
        blocks=blocks,
        all_numbers=sorted({n for b in blocks for row in b.rows for n in row}),
        confidence=0.93,
        status=status,
        **fields,
    )


class ManualTimer:
    def __init__(self, due: float, callback, name: str):
        self.due = due
        self.callback = callback
        self.name = name
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualTimers:
    """TimerService driven by an explicit clock. ``advance_to`` takes milliseconds."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay, callback, name=""):
        timer = ManualTimer(self.now + delay, callback, name)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance_to(self, ms: float):
        target = ms / 1000
        while True:
            due = [t for t in self.pending if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            timer.fired = True
            timer.callback()
        self.now = target


class FakeTransport(RecognitionTransport):
    """Transport whose responses are released by the test.

    Handles starting with ``denied`` fail the access check. With
    ``ignore_cancel`` the request keeps waiting after being cancelled, so a
    late response still reaches the orchestrator.
    """

    name = "fake"

    def __init__(self, ignore_cancel=False):
        super().__init__(base_url="http://recognition.test")
        self.ignore_cancel = ignore_cancel
        self.requests: list[tuple[str, asyncio.Future]] = []

    def check_access(self, handle):
        if handle.startswith("denied"):
            raise PermissionDenied(f"Cannot read image file: {handle}")

    async def load_image(self, handle):
        return ImagePayload(data=b"img", filename="ticket.jpg", mime_type="image/jpeg")

    async def scan(self, handle):
        future = asyncio.get_running_loop().create_future()
        self.requests.append((handle, future))
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            if not self.ignore_cancel:
                raise
            return await future

    def reply(self, result: ScanResult):
        self.requests[-1][1].set_result(result)

    def fail(self, exc: Exception):
        self.requests[-1][1].set_exception(exc)


async def settle():
    """Let freshly created tasks run up to their first suspension."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def timers():
    return ManualTimers()


@pytest.fixture
def transport():
    return FakeTransport()
