import pytest

from gameplay_models import Guess, RoundState, Track
from round_session import RoundSession
from round_timer import RoundTimer
from tests.support.fakes import FakePlayer


QUEEN_TRACK = Track(track_id="fJ9rUzIMcZQ", title="Bohemian Rhapsody", artists=("Queen",))
OTHER_TRACK = Track(track_id="dQw4w9WgXcQ", title="Never Gonna Give You Up", artists=("Rick Astley",))


class _Recorder:
    def __init__(self, session):
        self.states = []
        self.completed = []
        self.results = []
        self.errors = []
        self.tracks = []
        session.stateChanged.connect(self.states.append)
        session.roundCompleted.connect(self.completed.append)
        session.resultReady.connect(self.results.append)
        session.errorChanged.connect(self.errors.append)
        session.trackChanged.connect(self.tracks.append)


@pytest.fixture
def session_parts(fake_clock):
    player = FakePlayer()
    timer = RoundTimer(clock=fake_clock)
    session = RoundSession(player=player, timer=timer)
    recorder = _Recorder(session)
    yield session, player, fake_clock, recorder
    session.shutdown()


def _play_until_guessing(session, player, clock, track, seconds):
    session.set_track(track)
    player.report_playing(True)
    clock.advance(seconds)
    assert session.request_pause_and_guess()


def test_track_with_ready_player_is_loaded_and_awaits_playback(session_parts):
    session, player, _clock, recorder = session_parts
    session.set_track(QUEEN_TRACK)

    assert player.loaded == [QUEEN_TRACK]
    assert session.state() == RoundState.AWAITING_PLAYBACK
    assert recorder.tracks == [QUEEN_TRACK]
    assert session.elapsed_seconds() == 0.0


def test_track_waits_for_player_ready(fake_clock):
    player = FakePlayer(ready=False)
    session = RoundSession(player=player, timer=RoundTimer(clock=fake_clock))

    session.set_track(QUEEN_TRACK)
    assert session.state() == RoundState.UNINITIALIZED
    assert player.loaded == []

    player.become_ready()
    assert session.state() == RoundState.AWAITING_PLAYBACK
    assert player.loaded == [QUEEN_TRACK]
    session.shutdown()


def test_timer_starts_only_when_player_reports_playing(session_parts):
    session, player, clock, _recorder = session_parts
    session.set_track(QUEEN_TRACK)

    clock.advance(5.0)
    assert session.elapsed_seconds() == 0.0
    assert not session.timer.is_running()

    player.report_playing(True)
    assert session.state() == RoundState.PLAYING
    assert session.timer.is_running()

    clock.advance(1.5)
    session.request_pause_and_guess()
    assert session.elapsed_seconds() == pytest.approx(1.5)


def test_buffering_while_playing_freezes_the_timer(session_parts):
    session, player, clock, _recorder = session_parts
    session.set_track(QUEEN_TRACK)
    player.report_playing(True)
    clock.advance(1.0)

    player.report_playing(False)
    assert session.state() == RoundState.PLAYING
    clock.advance(4.0)

    player.report_playing(True)
    clock.advance(1.0)
    session.request_pause_and_guess()
    assert session.elapsed_seconds() == pytest.approx(2.0)


def test_pause_and_guess_stops_timer_and_requests_pause(session_parts):
    session, player, clock, _recorder = session_parts
    _play_until_guessing(session, player, clock, QUEEN_TRACK, 3.0)

    assert session.state() == RoundState.GUESSING
    assert player.pause_calls == 1
    assert not session.timer.is_running()

    clock.advance(10.0)
    player.report_playing(False)
    assert session.elapsed_seconds() == pytest.approx(3.0)
    assert session.state() == RoundState.GUESSING


def test_fast_exact_guess_round(session_parts):
    session, player, clock, recorder = session_parts
    _play_until_guessing(session, player, clock, QUEEN_TRACK, 2.0)

    assert session.set_title_guess("bohemian rhapsody")
    assert session.set_artist_guess("Queen ")
    result = session.submit_guess()

    assert result is not None
    assert result.is_correct
    assert result.score == 9867
    assert session.state() == RoundState.SCORED
    assert recorder.completed == [9867]
    assert recorder.results == [result]


def test_empty_late_guess_round(session_parts):
    session, player, clock, recorder = session_parts
    _play_until_guessing(session, player, clock, QUEEN_TRACK, 25.0)

    result = session.submit_guess()

    assert result is not None
    assert not result.is_correct
    assert result.score == 333
    assert recorder.completed == [333]


def test_round_completed_is_emitted_exactly_once(session_parts):
    session, player, clock, recorder = session_parts
    _play_until_guessing(session, player, clock, QUEEN_TRACK, 1.0)

    first = session.submit_guess()
    assert session.submit_guess() is None
    assert session.result() is first
    assert len(recorder.completed) == 1


def test_guess_edits_are_ignored_outside_guessing(session_parts):
    session, player, _clock, _recorder = session_parts
    assert session.set_title_guess("too early") is False

    session.set_track(QUEEN_TRACK)
    player.report_playing(True)
    assert session.set_artist_guess("still playing") is False
    assert session.guess() == Guess()


def test_invalid_requests_are_rejected_without_state_change(session_parts):
    session, _player, _clock, recorder = session_parts
    assert session.submit_guess() is None
    assert session.play_again() is False
    assert session.request_pause_and_guess() is False
    assert session.state() == RoundState.UNINITIALIZED
    assert recorder.states == []


def test_play_again_clears_round_and_calls_hook(session_parts):
    session, player, clock, recorder = session_parts
    hook_calls = []
    session.set_play_again_hook(lambda: hook_calls.append(True))

    _play_until_guessing(session, player, clock, QUEEN_TRACK, 4.0)
    session.set_title_guess("something")
    session.submit_guess()

    assert session.play_again() is True
    assert hook_calls == [True]
    assert session.state() == RoundState.UNINITIALIZED
    assert session.guess() == Guess("", "")
    assert session.elapsed_seconds() == 0.0
    assert session.result() is None
    assert session.track() is None
    assert recorder.tracks[-1] is None


def test_play_again_hook_can_start_next_round(session_parts):
    session, player, clock, _recorder = session_parts
    session.set_play_again_hook(lambda: session.set_track(OTHER_TRACK))

    _play_until_guessing(session, player, clock, QUEEN_TRACK, 1.0)
    session.submit_guess()
    session.play_again()

    assert session.track() == OTHER_TRACK
    assert session.state() == RoundState.AWAITING_PLAYBACK
    assert player.loaded == [QUEEN_TRACK, OTHER_TRACK]


def test_failing_play_again_hook_surfaces_error(session_parts):
    session, player, clock, recorder = session_parts

    def broken_hook():
        raise RuntimeError("catalog down")

    session.set_play_again_hook(broken_hook)
    _play_until_guessing(session, player, clock, QUEEN_TRACK, 1.0)
    session.submit_guess()

    assert session.play_again() is True
    assert "catalog down" in session.error_text()
    assert session.state() == RoundState.UNINITIALIZED


def test_new_track_mid_round_resets_everything(session_parts):
    session, player, clock, _recorder = session_parts
    _play_until_guessing(session, player, clock, QUEEN_TRACK, 6.0)
    session.set_title_guess("half typed")

    session.set_track(OTHER_TRACK)

    assert session.state() == RoundState.AWAITING_PLAYBACK
    assert session.track() == OTHER_TRACK
    assert session.guess() == Guess()
    assert session.elapsed_seconds() == 0.0
    assert session.result() is None
    assert not session.timer.is_running()


def test_new_track_while_playing_stops_old_timer(session_parts):
    session, player, clock, _recorder = session_parts
    session.set_track(QUEEN_TRACK)
    player.report_playing(True)
    clock.advance(3.0)

    session.set_track(OTHER_TRACK)
    assert player.is_playing() is False
    assert session.state() == RoundState.AWAITING_PLAYBACK
    clock.advance(3.0)
    assert session.elapsed_seconds() == 0.0

    player.report_playing(True)
    clock.advance(1.0)
    session.request_pause_and_guess()
    assert session.elapsed_seconds() == pytest.approx(1.0)


def test_player_error_is_shown_without_state_change(session_parts):
    session, player, clock, recorder = session_parts
    session.set_track(QUEEN_TRACK)
    player.report_playing(True)

    player.report_error("This track is no longer available")

    assert session.state() == RoundState.PLAYING
    assert session.error_text() == "This track is no longer available"
    assert recorder.errors == ["This track is no longer available"]

    clock.advance(1.0)
    assert session.request_pause_and_guess()


def test_unplayable_track_can_still_be_guessed(session_parts):
    session, player, clock, recorder = session_parts
    session.set_track(QUEEN_TRACK)
    player.report_error("This track cannot be played outside YouTube")
    clock.advance(8.0)

    assert session.state() == RoundState.AWAITING_PLAYBACK
    assert session.request_pause_and_guess()
    assert session.state() == RoundState.GUESSING
    assert player.pause_calls == 1

    session.set_title_guess("Bohemian Rhapsody")
    session.set_artist_guess("Queen")
    result = session.submit_guess()

    assert result is not None
    assert result.elapsed_seconds == 0.0
    assert result.score == 10000
    assert recorder.completed == [10000]


def test_pause_and_guess_is_ignored_while_player_is_not_ready(fake_clock):
    player = FakePlayer(ready=False)
    session = RoundSession(player=player, timer=RoundTimer(clock=fake_clock))
    session.set_track(QUEEN_TRACK)

    assert session.request_pause_and_guess() is False
    assert session.state() == RoundState.UNINITIALIZED
    session.shutdown()


def test_failing_pause_still_enters_guessing(fake_clock):
    player = FakePlayer(fail_pause=True)
    session = RoundSession(player=player, timer=RoundTimer(clock=fake_clock))
    session.set_track(QUEEN_TRACK)
    player.report_playing(True)

    assert session.request_pause_and_guess()
    assert session.state() == RoundState.GUESSING
    assert "pause" in session.error_text().lower()
    session.shutdown()


def test_failing_load_surfaces_error(fake_clock):
    player = FakePlayer(fail_load=True)
    session = RoundSession(player=player, timer=RoundTimer(clock=fake_clock))
    session.set_track(QUEEN_TRACK)

    assert session.state() == RoundState.AWAITING_PLAYBACK
    assert "load failed" in session.error_text()
    session.shutdown()


def test_new_track_clears_previous_error(session_parts):
    session, player, _clock, _recorder = session_parts
    session.set_track(QUEEN_TRACK)
    player.report_error("boom")
    session.set_track(OTHER_TRACK)
    assert session.error_text() == ""


def test_shutdown_disconnects_from_player(session_parts):
    session, player, _clock, _recorder = session_parts
    session.set_track(QUEEN_TRACK)
    session.shutdown()

    player.report_playing(True)
    assert session.state() == RoundState.AWAITING_PLAYBACK
    session.set_track(OTHER_TRACK)
    assert session.track() == QUEEN_TRACK


def test_snapshot_reflects_current_round(session_parts):
    session, player, clock, _recorder = session_parts
    _play_until_guessing(session, player, clock, QUEEN_TRACK, 2.5)
    session.set_artist_guess("Queen")

    snapshot = session.snapshot()
    assert snapshot.state == RoundState.GUESSING
    assert snapshot.track == QUEEN_TRACK
    assert snapshot.guess == Guess("", "Queen")
    assert snapshot.result is None
    assert snapshot.elapsed_seconds == pytest.approx(2.5)
