import random

import pytest

import game_controller
from game_controller import GameController, SessionScoreboard
from gameplay_models import Collection, RoundState, Track
from round_session import RoundSession
from round_timer import RoundTimer
from track_pool import CollectionPool
from tests.support.fakes import FakeCatalog, FakePlayer


ROCK = Collection(collection_id="PLrock", name="Rock", track_total=3)
POP = Collection(collection_id="PLpop", name="Pop", track_total=1)
EMPTY = Collection(collection_id="PLempty", name="Empty", track_total=0)
BROKEN = Collection(collection_id="PLbroken", name="Only deleted videos", track_total=4)

ROCK_TRACKS = [
    Track(track_id="rock0000001", title="Bohemian Rhapsody", artists=("Queen",)),
    Track(track_id="rock0000002", title="Back in Black", artists=("AC/DC",)),
    Track(track_id="rock0000003", title="Dream On", artists=("Aerosmith",)),
]
POP_TRACKS = [Track(track_id="pop00000001", title="Toxic", artists=("Britney Spears",))]


@pytest.fixture
def game(fake_clock):
    catalog = FakeCatalog(
        collections=[ROCK, POP, EMPTY, BROKEN],
        tracks_by_collection={"PLrock": ROCK_TRACKS, "PLpop": POP_TRACKS, "PLbroken": []},
    )
    player = FakePlayer()
    session = RoundSession(player=player, timer=RoundTimer(clock=fake_clock))
    controller = GameController(catalog=catalog, round_session=session, pool=CollectionPool(random.Random(5)))
    errors = []
    controller.errorChanged.connect(errors.append)
    yield controller, catalog, player, session, fake_clock, errors
    controller.shutdown()
    session.shutdown()


def _finish_round(session, player, clock, title="", artist="", seconds=1.0):
    player.report_playing(True)
    clock.advance(seconds)
    session.request_pause_and_guess()
    session.set_title_guess(title)
    session.set_artist_guess(artist)
    return session.submit_guess()


def test_load_collections_publishes_list(game):
    controller, _catalog, _player, _session, _clock, errors = game
    published = []
    controller.collectionsChanged.connect(published.append)

    assert controller.load_collections() is True
    assert published == [[ROCK, POP, EMPTY, BROKEN]]
    assert controller.collections() == [ROCK, POP, EMPTY, BROKEN]
    assert errors == []


def test_load_collections_failure_sets_message(game):
    controller, catalog, _player, _session, _clock, _errors = game
    catalog.fail_list = True

    assert controller.load_collections() is False
    assert controller.error_text() == game_controller.ERROR_LOAD_COLLECTIONS
    assert controller.collections() == []


def test_select_collection_starts_a_round(game):
    controller, _catalog, player, session, _clock, _errors = game

    assert controller.select_collection(ROCK) is True
    assert controller.current_collection() == ROCK
    assert session.track() in ROCK_TRACKS
    assert session.state() == RoundState.AWAITING_PLAYBACK
    assert player.loaded == [session.track()]
    assert controller.played_ids() == frozenset({session.track().track_id})


def test_empty_collection_is_rejected_before_fetching(game):
    controller, catalog, _player, session, _clock, _errors = game

    assert controller.select_collection(EMPTY) is False
    assert controller.error_text() == "This playlist is empty"
    assert catalog.fetch_calls == []
    assert session.track() is None


def test_fetch_failure_sets_message(game):
    controller, catalog, _player, session, _clock, _errors = game
    catalog.fail_fetch = True

    assert controller.select_collection(ROCK) is False
    assert controller.error_text() == "Failed to load tracks from this playlist"
    assert session.track() is None


def test_collection_without_playable_tracks(game):
    controller, _catalog, _player, _session, _clock, _errors = game
    assert controller.select_collection(BROKEN) is False
    assert controller.error_text() == "No playable tracks found in this playlist"


def test_three_rounds_then_exhausted_via_play_again(game):
    controller, _catalog, _player, session, clock, _errors = game
    controller.select_collection(ROCK)

    seen = [session.track().track_id]
    for _ in range(2):
        _finish_round(session, _player, clock)
        session.play_again()
        seen.append(session.track().track_id)

    assert sorted(seen) == sorted(track.track_id for track in ROCK_TRACKS)
    assert controller.played_ids() == frozenset(seen)

    _finish_round(session, _player, clock)
    session.play_again()

    assert session.track() is None
    assert session.state() == RoundState.UNINITIALIZED
    assert controller.error_text() == "You have played all tracks in this playlist!"
    assert controller.played_ids() == frozenset(seen)


def test_play_again_keeps_played_set(game):
    controller, _catalog, player, session, clock, _errors = game
    controller.select_collection(ROCK)
    first_id = session.track().track_id

    _finish_round(session, player, clock)
    session.play_again()

    assert session.track().track_id != first_id
    assert first_id in controller.played_ids()
    assert len(controller.played_ids()) == 2


def test_switching_collection_resets_played_set(game):
    controller, _catalog, player, session, clock, _errors = game
    controller.select_collection(ROCK)
    _finish_round(session, player, clock)

    controller.select_collection(POP)
    assert controller.played_ids() == frozenset({"pop00000001"})

    _finish_round(session, player, clock)
    session.play_again()
    assert controller.error_text() == "You have played all tracks in this playlist!"

    controller.select_collection(ROCK)
    assert len(controller.played_ids()) == 1
    assert controller.error_text() == ""


def test_error_clears_on_next_selection(game):
    controller, _catalog, _player, _session, _clock, errors = game
    controller.select_collection(EMPTY)
    controller.select_collection(ROCK)

    assert controller.error_text() == ""
    assert errors == ["This playlist is empty", ""]


def test_scoreboard_accumulates_results(game):
    controller, _catalog, player, session, clock, _errors = game
    boards = []
    controller.scoreboardChanged.connect(boards.append)

    controller.select_collection(ROCK)
    track = session.track()
    first = _finish_round(session, player, clock, title=track.title, artist=track.primary_artist, seconds=0.0)
    session.play_again()
    second = _finish_round(session, player, clock, seconds=30.0)

    assert first.is_correct and not second.is_correct
    assert controller.scoreboard() == SessionScoreboard(
        rounds_played=2,
        total_score=first.score + second.score,
        correct_count=1,
    )
    assert len(boards) == 2
    assert controller.scoreboard().average_score() == pytest.approx((first.score + second.score) / 2)


def test_play_again_without_collection_is_a_no_op(game):
    controller, catalog, _player, _session, _clock, _errors = game
    controller.play_again()
    assert catalog.fetch_calls == []


def test_shutdown_closes_catalog_and_detaches_hook(game):
    controller, catalog, player, session, clock, _errors = game
    controller.select_collection(ROCK)
    controller.shutdown()

    assert catalog.closed
    _finish_round(session, player, clock)
    session.play_again()
    assert session.track() is None
    assert catalog.fetch_calls == ["PLrock"]
