import pytest

from memospark_app.core.error_handlers import BackendUnavailable, NotFoundError, PollTimeoutError
from memospark_app.core.polling import StatusPoller
from memospark_app.models import PollingJob
from memospark_app.services.polling_jobs import PollingJobRunner, create_job, latest_job, request_stop


def _sequence(*payloads):
    """Fetcher answering with ``payloads`` in order, repeating the last one."""
    remaining = list(payloads)

    def fetch():
        item = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(item, Exception):
            raise item
        return item

    return fetch


def _status(status, **data):
    data['status'] = status
    return {'success': True, 'data': data}


@pytest.fixture
def sleep(clock):
    slept = []

    def _sleep(seconds):
        slept.append(seconds)
        clock.advance(seconds)

    _sleep.slept = slept
    return _sleep


def test_poller_stops_at_a_terminal_status(clock, sleep):
    seen = []
    poller = StatusPoller(
        _sequence(_status('processing'), _status('processing'), _status('completed')),
        interval=2, timeout=60, sleep=sleep, clock=clock,
        on_status=lambda status, payload: seen.append(status),
    )
    outcome = poller.run()

    assert outcome.succeeded
    assert outcome.attempts == 3
    assert seen == ['processing', 'processing', 'completed']
    assert sum(sleep.slept) == 4
    assert max(sleep.slept) <= 0.5


def test_poller_times_out_with_its_message(clock, sleep):
    poller = StatusPoller(
        _sequence(_status('processing')), interval=2, timeout=5, sleep=sleep, clock=clock,
        timeout_message='Taking too long',
    )
    with pytest.raises(PollTimeoutError) as excinfo:
        poller.run()
    assert excinfo.value.message == 'Taking too long'
    assert clock.now == 1_005.0


def test_poller_keeps_going_after_a_transport_error(clock, sleep):
    poller = StatusPoller(
        _sequence(BackendUnavailable(), _status('failed', message='Bad file')),
        interval=1, timeout=30, sleep=sleep, clock=clock,
    )
    outcome = poller.run()
    assert outcome.status == 'failed'
    assert outcome.attempts == 2
    assert outcome.payload['data']['message'] == 'Bad file'


def test_stop_request_interrupts_the_wait(clock, sleep):
    stop = []

    def fetch():
        stop.append(True)
        return _status('processing')

    poller = StatusPoller(fetch, interval=3, timeout=60, sleep=sleep, clock=clock, should_stop=lambda: bool(stop))
    outcome = poller.run()
    assert outcome.status == 'cancelled'
    assert outcome.attempts == 1
    assert sleep.slept == [0.5]


def test_custom_terminal_statuses(clock, sleep):
    poller = StatusPoller(
        _sequence(_status('not_found')), interval=2, timeout=10, sleep=sleep, clock=clock,
        terminal_statuses=frozenset({'completed', 'failed', 'not_found'}),
    )
    assert poller.run().status == 'not_found'
    assert StatusPoller.status_of({'unexpected': True}) == 'unknown'


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        StatusPoller(lambda: {}, interval=0, timeout=1)


def _runner(job, fetch, clock, sleep, on_completed=None, timeout=30):
    return PollingJobRunner(
        job,
        fetch,
        on_completed or (lambda job, payload: {'staged': True}),
        interval=1,
        timeout=timeout,
        sleep=sleep,
        clock=clock,
    )


def test_runner_records_progress_and_result(app_ctx, clock, sleep):
    job = create_job('client-a', PollingJob.KIND_DOCUMENT, 55, 'Uploaded')
    fetch = _sequence(
        _status('processing', progress=40, message='Extracting text'),
        _status('completed', message='Done'),
    )
    runner = _runner(job, fetch, clock, sleep)

    runner.poller.poll_once()
    assert job.status == PollingJob.STATUS_PROCESSING
    assert job.progress == 40
    assert job.message == 'Extracting text'

    finished = runner.run()
    assert finished.status == PollingJob.STATUS_COMPLETED
    assert finished.progress == 100
    assert finished.result == {'staged': True}
    assert finished.message == 'Done'


def test_runner_marks_failed_when_staging_fails(app_ctx, clock, sleep):
    job = create_job('client-a', PollingJob.KIND_DOCUMENT, 56)

    def on_completed(job, payload):
        raise NotFoundError('No study content was generated')

    finished = _runner(job, _sequence(_status('completed')), clock, sleep, on_completed).run()
    assert finished.status == PollingJob.STATUS_FAILED
    assert finished.message == 'No study content was generated'


def test_runner_reports_backend_failure_message(app_ctx, clock, sleep):
    job = create_job('client-a', PollingJob.KIND_DOCUMENT, 57)
    finished = _runner(job, _sequence(_status('failed', message='Unsupported PDF')), clock, sleep).run()
    assert finished.status == PollingJob.STATUS_FAILED
    assert finished.message == 'Unsupported PDF'


def test_runner_times_out(app_ctx, clock, sleep):
    job = create_job('client-a', PollingJob.KIND_SEARCH, 'job-1')
    finished = _runner(job, _sequence(_status('processing')), clock, sleep, timeout=3).run()
    assert finished.status == PollingJob.STATUS_TIMED_OUT
    assert finished.is_finished


def test_stop_without_a_worker_cancels_immediately(app_ctx, clock, sleep):
    job = create_job('client-a', PollingJob.KIND_SEARCH, 'job-2')
    request_stop(job)
    assert job.status == PollingJob.STATUS_CANCELLED
    assert job.stop_requested

    finished = _runner(job, _sequence(_status('processing')), clock, sleep).run()
    assert finished.status == PollingJob.STATUS_CANCELLED


def test_check_once_finishes_a_completed_job(app_ctx, clock, sleep):
    job = create_job('client-a', PollingJob.KIND_DOCUMENT, 58)
    runner = _runner(job, _sequence(_status('processing'), _status('completed')), clock, sleep)

    assert runner.check_once().status == PollingJob.STATUS_PROCESSING
    assert runner.check_once().status == PollingJob.STATUS_COMPLETED
    assert latest_job('client-a', PollingJob.KIND_DOCUMENT).job_id == job.job_id
