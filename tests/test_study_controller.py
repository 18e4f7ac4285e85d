import pytest

from memospark_app.core.error_handlers import AuthenticationRequired, MaterialsNotFound, ValidationError
from memospark_app.core.signals import session_completed, session_reset
from memospark_app.modules.study.controller import StudySessionController
from memospark_app.modules.study.models import DeckSession, Phase, SearchSession, Tab
from memospark_app.modules.study.schemas import load_content
from memospark_app.modules.study.timer import PauseReason


def _load(controller, payload, deck_id='1'):
    kind = DeckSession(deck_id=deck_id)
    controller.load_content(load_content(payload), kind, kind.identifier)
    return controller


@pytest.fixture
def controller(clock):
    return StudySessionController(clock=clock)


def test_first_load_starts_both_timers(controller, materials):
    _load(controller, materials(flashcards=3))
    assert controller.phase is Phase.ACTIVE
    assert controller.study_timer.is_running
    assert controller.overall_timer.is_running
    assert controller.session_ratings == [None, None, None]


def test_loading_another_deck_resets_session_state(controller, materials, clock):
    _load(controller, materials(flashcards=3, quizzes=1), deck_id='1')
    controller.rate_card('good')
    controller.rate_card('hard')
    controller.answer_quiz('B')
    clock.advance(20)

    resets = []
    with session_reset.connected_to(lambda sender, **kw: resets.append(kw)):
        _load(controller, materials(flashcards=2, quizzes=1), deck_id='2')

    assert controller.session_stats.correct == 0
    assert controller.session_stats.difficult == 0
    assert controller.current_card == 0
    assert controller.session_ratings == [None, None]
    assert controller.quiz_answers == [None]
    assert not controller.flashcards_complete
    assert not controller.quiz_complete
    assert not controller.exercises_complete
    assert controller.overall_timer.elapsed == 0
    assert resets == [{'reason': 'deck_change', 'deck_identifier': 'deck:2'}]


def test_reloading_the_same_deck_keeps_progress(controller, materials):
    _load(controller, materials(flashcards=3))
    controller.rate_card('good')
    _load(controller, materials(flashcards=3))
    assert controller.session_ratings == ['good', None, None]
    assert controller.current_card == 1


def test_ratings_track_flashcard_count(controller, materials):
    _load(controller, materials(flashcards=3))
    controller.rate_card('easy')
    assert len(controller.session_ratings) == 3

    controller.load_content(load_content(materials(flashcards=5)), DeckSession(deck_id='1'), 'deck:1')
    assert controller.session_ratings == ['easy', None, None, None, None]

    controller.load_content(load_content(materials(flashcards=2)), DeckSession(deck_id='1'), 'deck:1')
    assert len(controller.session_ratings) == 2


@pytest.mark.parametrize('rating, correct, difficult', [
    ('good', 1, 0),
    ('easy', 1, 0),
    ('hard', 0, 1),
    ('again', 0, 0),
])
def test_each_rating_moves_at_most_one_counter(controller, materials, rating, correct, difficult):
    _load(controller, materials(flashcards=2))
    result = controller.rate_card(rating)
    assert result['stats_source'] == 'local'
    assert (controller.session_stats.correct, controller.session_stats.difficult) == (correct, difficult)


def test_server_aggregate_replaces_local_counters(controller, materials):
    _load(controller, materials(flashcards=2))
    result = controller.rate_card('good', {'correct': 7, 'difficult': 3})
    assert result['stats_source'] == 'server'
    assert controller.session_stats.correct == 7
    assert controller.session_stats.difficult == 3

    # an incomplete aggregate is ignored and the rating counts locally
    result = controller.rate_card('good', {'correct': '20'})
    assert result['stats_source'] == 'local'
    assert controller.session_stats.correct == 8
    assert controller.session_stats.difficult == 3


def test_unknown_rating_is_rejected(controller, materials):
    _load(controller, materials(flashcards=1))
    with pytest.raises(ValidationError):
        controller.rate_card('perfect')
    assert controller.session_ratings == [None]


def test_check_can_rate_leaves_the_session_untouched(controller, materials):
    _load(controller, materials(flashcards=1))
    with pytest.raises(ValidationError):
        controller.check_can_rate('bogus')
    controller.check_can_rate('again')
    assert controller.session_ratings == [None]

    controller.rate_card('again')
    with pytest.raises(ValidationError):
        controller.check_can_rate('good')


def test_empty_materials_raise_not_found(controller):
    with pytest.raises(MaterialsNotFound):
        _load(controller, {'flashcards': [], 'quizzes': [], 'exercises': []})
    assert controller.materials_not_found
    assert controller.phase is Phase.IDLE


def test_last_card_pauses_timers_until_another_activity(controller, materials, clock):
    _load(controller, materials(flashcards=1, quizzes=1))
    controller.rate_card('good')

    assert controller.flashcards_complete
    assert controller.overall_timer.paused_for(PauseReason.COMPLETED)
    assert not controller.is_overall_complete
    assert controller.phase is Phase.ACTIVE

    clock.advance(60)
    controller.switch_tab('quiz')
    assert controller.overall_timer.is_running
    assert controller.study_timer.is_running


def test_overall_completion_needs_every_non_empty_activity(controller, materials):
    _load(controller, materials(flashcards=1, quizzes=1, exercises=1))
    completions = []
    with session_completed.connected_to(lambda sender, **kw: completions.append(kw)):
        controller.rate_card('good')
        assert not controller.is_overall_complete

        controller.switch_tab('quiz')
        controller.answer_quiz('B')
        controller.submit_quiz()
        assert not controller.is_overall_complete

        controller.switch_tab('exercises')
        controller.answer_exercise('word1')
        result = controller.submit_exercises()

    assert result['score'] == 1
    assert controller.is_overall_complete
    assert controller.phase is Phase.COMPLETE
    assert len(completions) == 1


def test_retrying_the_quiz_reopens_the_session(controller, materials):
    _load(controller, materials(quizzes=1))
    controller.answer_quiz('A')
    assert controller.submit_quiz()['title'] == 'Keep Practicing!'
    assert controller.phase is Phase.COMPLETE

    controller.retry_quiz()
    assert controller.phase is Phase.ACTIVE
    assert controller.quiz_answers == [None]
    assert controller.overall_timer.is_running


def test_quiz_answers_are_locked_once_given(controller, materials):
    _load(controller, materials(quizzes=2))
    controller.answer_quiz('A')
    with pytest.raises(ValidationError):
        controller.answer_quiz('B')
    with pytest.raises(ValidationError):
        controller.submit_quiz()
    controller.next_quiz()
    controller.answer_quiz('B')
    with pytest.raises(ValidationError):
        controller.next_quiz()
    assert controller.submit_quiz()['score'] == 1


def test_review_tab_only_changes_time_spent(controller, materials, clock):
    _load(controller, materials(flashcards=2, quizzes=1))
    controller.rate_card('hard')
    controller.rate_card('good')
    before = (controller.session_stats.correct, controller.session_stats.difficult)

    clock.advance(30)
    controller.switch_tab('review')
    clock.advance(30)
    controller.switch_tab('flashcards')

    stats = controller.stats
    assert (stats.correct, stats.difficult) == before
    assert stats.time_spent == 30


def test_switching_back_to_finished_flashcards_restarts_the_view(controller, materials):
    _load(controller, materials(flashcards=2, quizzes=1))
    controller.rate_card('good')
    controller.rate_card('hard')
    controller.switch_tab('quiz')
    controller.switch_tab('flashcards')

    assert controller.current_card == 0
    assert not controller.flashcards_complete
    assert controller.session_ratings == ['good', 'hard']
    assert controller.session_stats.correct == 1


def test_switch_tab_reports_the_ended_activity(controller, materials, clock):
    _load(controller, materials(flashcards=1, quizzes=1))
    clock.advance(42)
    ended = controller.switch_tab('quiz')
    assert ended == {'activity_type': 'flashcards', 'duration_seconds': 42}
    assert controller.activity_times['flashcards'] == 42
    assert controller.switch_tab('quiz') is None
    with pytest.raises(ValidationError):
        controller.switch_tab('stats')


def test_mark_reviewed_removes_card_and_counts_correct(controller, materials):
    _load(controller, materials(flashcards=3))
    controller.rate_card('hard')
    controller.rate_card('hard')
    controller.rate_card('good')
    assert [item['index'] for item in controller.difficult_cards()] == [0, 1]

    result = controller.mark_reviewed(1)
    assert result == {'index': 1, 'remaining': 1}
    assert controller.session_stats.correct == 2
    assert [item['index'] for item in controller.difficult_cards()] == [0]
    assert controller.current_card == 2

    with pytest.raises(ValidationError):
        controller.mark_reviewed(1)


def test_search_sessions_use_the_remote_difficult_set(controller, materials):
    content = load_content(materials(flashcards=2))
    kind = SearchSession(search_id='9', topic='Cells')
    controller.load_content(content, kind, kind.identifier)
    controller.remote_difficult_ids = {102}
    controller.rate_card('hard')

    assert [item['card']['id'] for item in controller.difficult_cards()] == [101, 102]
    controller.rate_card('good')
    assert [item['card']['id'] for item in controller.difficult_cards()] == [101]


def test_study_again_returns_to_the_previous_position(controller, materials):
    _load(controller, materials(flashcards=3))
    controller.rate_card('good')
    controller.rate_card('hard')
    controller.rate_card('good')
    controller.switch_tab('review')
    assert controller.phase is Phase.COMPLETE

    controller.study_again(1)
    assert controller.active_tab is Tab.FLASHCARDS
    assert controller.current_card == 1
    assert not controller.flashcards_complete
    assert controller.session_ratings == ['good', 'hard', 'good']
    assert controller.phase is Phase.ACTIVE

    controller.rate_card('easy')
    assert controller.current_card == 2
    assert controller.flashcards_complete
    assert controller.phase is Phase.COMPLETE
    assert controller.difficult_cards() == []


def test_manual_pause_is_not_undone_by_tab_switch(controller, materials):
    _load(controller, materials(flashcards=1, quizzes=1))
    controller.pause()
    controller.switch_tab('quiz')
    assert controller.overall_timer.paused_for(PauseReason.MANUAL)
    controller.resume()
    assert controller.overall_timer.is_running
    assert controller.study_timer.is_running


def test_reset_timers_zeroes_activity_times(controller, materials, clock):
    _load(controller, materials(flashcards=1, quizzes=1))
    clock.advance(10)
    controller.switch_tab('quiz')
    clock.advance(5)
    controller.reset_timers()
    assert controller.overall_timer.elapsed == 0
    assert controller.activity_times['flashcards'] == 0
    assert controller.overall_timer.is_running


def test_bookmarks_need_a_signed_in_user(controller, materials):
    _load(controller, materials(flashcards=2))
    with pytest.raises(AuthenticationRequired):
        controller.toggle_bookmark(0, authenticated=False)
    assert controller.toggle_bookmark(1, authenticated=True) is True
    assert controller.toggle_bookmark(1, authenticated=True) is False


def test_restart_clears_progress_but_keeps_materials(controller, materials):
    _load(controller, materials(flashcards=2))
    controller.rate_card('hard')
    controller.restart()
    assert controller.session_ratings == [None, None]
    assert controller.session_stats.difficult == 0
    assert controller.phase is Phase.ACTIVE
    assert len(controller.content.flashcards) == 2


def test_snapshot_round_trip_keeps_session(controller, materials, clock):
    _load(controller, materials(flashcards=3, quizzes=1))
    controller.rate_card('hard')
    controller.toggle_bookmark(2, authenticated=True)
    clock.advance(15)

    restored = StudySessionController.from_dict(controller.to_dict(), clock=clock)
    assert restored.state() == controller.state()


def test_upload_scenario_ten_flashcards(controller, materials):
    kind = DeckSession(document_id='55')
    controller.load_content(load_content(materials(flashcards=10)), kind, kind.identifier)
    assert controller.active_tab is Tab.FLASHCARDS

    for _ in range(9):
        controller.rate_card('good')
        assert not controller.is_overall_complete
    controller.rate_card('good')

    assert controller.is_overall_complete
    assert controller.stats.correct == 10
    assert controller.stats.difficult == 0


def test_review_scenario_three_hard_cards(controller, materials):
    _load(controller, materials(flashcards=5))
    for rating in ('hard', 'hard', 'hard', 'good', 'good'):
        controller.rate_card(rating)

    controller.switch_tab('review')
    assert len(controller.difficult_cards()) == 3
    correct_before = controller.session_stats.correct

    controller.mark_reviewed(0)
    assert len(controller.difficult_cards()) == 2
    assert controller.session_stats.correct == correct_before + 1
