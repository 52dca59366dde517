"""Unit tests for the capture session state machine."""

import pytest

from src.core.exceptions import CaptureAlreadyActiveError
from src.core.models import CaptureMode, CaptureState
from src.services.capture.base import (
    CancelTimeout,
    EngineEnded,
    EngineFailed,
    EngineStarted,
    Finalize,
    PartialResult,
    RequestStop,
)
from src.services.capture.session import CaptureSession


@pytest.fixture
def session():
    return CaptureSession(language="zh", timeout_seconds=30, stop_keyword="over")


def _recording(session: CaptureSession, text: str = "") -> CaptureSession:
    session.start()
    if text:
        session.handle(PartialResult(text))
    return session


# ---------------------------------------------------------------------------
# start
# ---------------------------------------------------------------------------


class TestStart:
    def test_idle_to_recording(self, session):
        session.start(CaptureMode.secondary)
        assert session.state is CaptureState.recording
        assert session.mode is CaptureMode.secondary
        assert session.transcript == ""
        assert "30" in session.status

    def test_clears_previous_transcript_and_error(self, session):
        session.transcript = "旧的内容"
        session.error = "发生错误: network"
        session.start()
        assert session.transcript == ""
        assert session.error is None

    def test_start_while_recording_keeps_transcript(self, session):
        _recording(session, "买了两瓶")
        with pytest.raises(CaptureAlreadyActiveError):
            session.start()
        assert session.state is CaptureState.recording
        assert session.transcript == "买了两瓶"

    def test_abort_start_returns_to_idle(self, session):
        session.start()
        session.abort_start("无法启动录音 (可能正在进行中)")
        assert session.state is CaptureState.idle
        assert session.error == "无法启动录音 (可能正在进行中)"


# ---------------------------------------------------------------------------
# partial results and the stop keyword
# ---------------------------------------------------------------------------


class TestResults:
    def test_result_replaces_transcript(self, session):
        _recording(session, "买了")
        session.handle(PartialResult("买了两瓶可乐"))
        assert session.transcript == "买了两瓶可乐"

    def test_result_ignored_when_idle(self, session):
        assert session.handle(PartialResult("hello")) == []
        assert session.transcript == ""

    @pytest.mark.parametrize("text", ["two cokes over", "two cokes OVER", "Over and out"])
    def test_keyword_requests_stop(self, session, text):
        _recording(session)
        effects = session.handle(PartialResult(text))
        assert effects == [RequestStop()]
        assert "over" in session.status

    def test_keyword_requests_stop_only_once(self, session):
        _recording(session)
        session.handle(PartialResult("two cokes over"))
        assert session.handle(PartialResult("two cokes over")) == []

    def test_no_keyword_no_effects(self, session):
        _recording(session)
        assert session.handle(PartialResult("两瓶可乐")) == []
        assert session.state is CaptureState.recording


# ---------------------------------------------------------------------------
# end
# ---------------------------------------------------------------------------


class TestEnd:
    def test_end_with_text_finalizes(self, session):
        _recording(session, "  两瓶可乐  ")
        effects = session.handle(EngineEnded())
        assert effects == [CancelTimeout(), Finalize("两瓶可乐")]
        assert session.state is CaptureState.finalizing

        session.finish()
        assert session.state is CaptureState.idle

    def test_end_without_text_returns_to_idle(self, session):
        _recording(session, "   ")
        effects = session.handle(EngineEnded())
        assert effects == [CancelTimeout()]
        assert session.state is CaptureState.idle
        assert session.status == "录音结束 (无内容)"

    def test_end_while_idle_is_noop(self, session):
        assert session.handle(EngineEnded()) == []
        assert session.state is CaptureState.idle


# ---------------------------------------------------------------------------
# errors and engine-initiated start
# ---------------------------------------------------------------------------


class TestErrors:
    def test_no_speech_is_status_only(self, session):
        _recording(session)
        session.handle(EngineFailed("no-speech"))
        assert session.status == "未检测到语音"
        assert session.error is None

    def test_other_errors_set_error(self, session):
        _recording(session)
        session.handle(EngineFailed("network"))
        assert session.error == "发生错误: network"
        assert session.state is CaptureState.recording

    def test_engine_started_while_idle_enters_recording(self, session):
        session.transcript = "stale"
        session.handle(EngineStarted())
        assert session.state is CaptureState.recording
        assert session.transcript == ""


class TestEdit:
    def test_edit_when_idle(self, session):
        session.edit("手动输入")
        assert session.transcript == "手动输入"

    def test_edit_while_recording_rejected(self, session):
        _recording(session, "语音")
        with pytest.raises(CaptureAlreadyActiveError):
            session.edit("手动输入")
        assert session.transcript == "语音"

    def test_english_status(self):
        session = CaptureSession(language="en")
        session.start()
        session.handle(PartialResult("   "))
        session.handle(EngineEnded())
        assert session.status == "Recording ended (no content)"
