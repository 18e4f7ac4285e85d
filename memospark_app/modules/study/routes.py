"""JSON endpoints of the study session."""

from __future__ import annotations

from flask import jsonify, request

from ...core.error_handlers import ValidationError, success_response
from . import study_bp
from .services import StudyService, parse_index


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _state_response(service: StudyService, message: str = None, **extra):
    data = service.controller.state()
    data.update(extra)
    return jsonify(success_response(data, message))


@study_bp.route('/state', methods=['GET'])
def get_state():
    service = StudyService.for_request()
    return _state_response(service)


@study_bp.route('/load', methods=['POST'])
def load():
    """Load a deck (``deck``), a search result (``source=search_flashcards``) or uploaded content."""
    body = _json_body()
    service = StudyService.for_request()
    service.load(
        deck=body.get('deck') or request.args.get('deck'),
        source=body.get('source') or request.args.get('source'),
        search_id=body.get('search_id') or request.args.get('search_id'),
        force=bool(body.get('force')),
    )
    return _state_response(service, 'Study materials loaded')


@study_bp.route('/rate', methods=['POST'])
def rate():
    rating = _json_body().get('rating')
    if not rating:
        raise ValidationError('rating is required', errors={'rating': ['Missing value']})
    service = StudyService.for_request()
    result = service.rate(str(rating))
    return _state_response(service, rating_result=result)


@study_bp.route('/flip', methods=['POST'])
def flip():
    service = StudyService.for_request()
    service.controller.flip()
    service.save()
    return _state_response(service)


@study_bp.route('/previous', methods=['POST'])
def previous_card():
    service = StudyService.for_request()
    service.controller.previous_card()
    service.save()
    return _state_response(service)


@study_bp.route('/tab', methods=['POST'])
def switch_tab():
    tab = _json_body().get('tab')
    if not tab:
        raise ValidationError('tab is required', errors={'tab': ['Missing value']})
    service = StudyService.for_request()
    service.switch_tab(tab)
    return _state_response(service)


# -- quiz ---------------------------------------------------------------

@study_bp.route('/quiz/answer', methods=['POST'])
def answer_quiz():
    option = _json_body().get('option')
    if option is None:
        raise ValidationError('option is required', errors={'option': ['Missing value']})
    service = StudyService.for_request()
    service.controller.answer_quiz(str(option))
    service.save()
    return _state_response(service)


@study_bp.route('/quiz/next', methods=['POST'])
def next_quiz():
    service = StudyService.for_request()
    service.controller.next_quiz()
    service.save()
    return _state_response(service)


@study_bp.route('/quiz/previous', methods=['POST'])
def previous_quiz():
    service = StudyService.for_request()
    service.controller.previous_quiz()
    service.save()
    return _state_response(service)


@study_bp.route('/quiz/submit', methods=['POST'])
def submit_quiz():
    service = StudyService.for_request()
    result = service.submit_quiz()
    return _state_response(service, result['title'])


@study_bp.route('/quiz/retry', methods=['POST'])
def retry_quiz():
    service = StudyService.for_request()
    service.controller.retry_quiz()
    service.save()
    return _state_response(service)


# -- exercises ----------------------------------------------------------

@study_bp.route('/exercises/answer', methods=['POST'])
def answer_exercise():
    body = _json_body()
    if 'answer' not in body:
        raise ValidationError('answer is required', errors={'answer': ['Missing value']})
    service = StudyService.for_request()
    service.controller.answer_exercise(body['answer'])
    service.save()
    return _state_response(service)


@study_bp.route('/exercises/next', methods=['POST'])
def next_exercise():
    service = StudyService.for_request()
    service.controller.next_exercise()
    service.save()
    return _state_response(service)


@study_bp.route('/exercises/previous', methods=['POST'])
def previous_exercise():
    service = StudyService.for_request()
    service.controller.previous_exercise()
    service.save()
    return _state_response(service)


@study_bp.route('/exercises/submit', methods=['POST'])
def submit_exercises():
    service = StudyService.for_request()
    result = service.submit_exercises()
    return _state_response(service, result['title'])


@study_bp.route('/exercises/retry', methods=['POST'])
def retry_exercises():
    service = StudyService.for_request()
    service.controller.retry_exercises()
    service.save()
    return _state_response(service)


# -- review tab ---------------------------------------------------------

@study_bp.route('/review', methods=['GET'])
def review():
    service = StudyService.for_request()
    cards = service.controller.difficult_cards()
    return jsonify(success_response({
        'difficult_cards': cards,
        'count': len(cards),
        'stats': service.controller.stats.to_dict(),
    }))


@study_bp.route('/review/<index>/reviewed', methods=['POST'])
def mark_reviewed(index):
    service = StudyService.for_request()
    result = service.mark_reviewed(parse_index(index))
    return _state_response(service, 'Card marked as reviewed', review_result=result)


@study_bp.route('/review/<index>/again', methods=['POST'])
def study_again(index):
    service = StudyService.for_request()
    service.controller.study_again(parse_index(index))
    service.save()
    return _state_response(service)


# -- timer, bookmarks, restart, export -----------------------------------

TIMER_ACTIONS = {
    'pause': 'pause',
    'resume': 'resume',
    'stop': 'stop',
    'reset': 'reset_timers',
}


@study_bp.route('/timer/<action>', methods=['POST'])
def timer_control(action):
    method = TIMER_ACTIONS.get(action)
    if method is None:
        raise ValidationError(f'Unknown timer action: {action}', errors={'action': list(TIMER_ACTIONS)})
    service = StudyService.for_request()
    getattr(service.controller, method)()
    service.save()
    return _state_response(service)


@study_bp.route('/bookmark/<index>', methods=['POST'])
def toggle_bookmark(index):
    service = StudyService.for_request()
    bookmarked = service.toggle_bookmark(parse_index(index))
    message = 'Bookmark added' if bookmarked else 'Bookmark removed'
    return _state_response(service, message, bookmarked=bookmarked)


@study_bp.route('/restart', methods=['POST'])
def restart():
    service = StudyService.for_request()
    service.restart()
    return _state_response(service, 'Study session restarted')


@study_bp.route('/export', methods=['GET'])
def export_progress():
    service = StudyService.for_request()
    return jsonify(success_response(service.controller.export_progress()))
