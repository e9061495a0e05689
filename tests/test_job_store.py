"""Tests for the job store."""

import pytest

from studio.workers.base import JobStatus


def test_create_starts_pending(job_store, make_job):
    job = job_store.get(make_job(total_count=4))

    assert job.status == JobStatus.PENDING
    assert job.completed_count == 0
    assert job.total_count == 4
    assert job.remaining_count == 4
    assert job.resolved_parameters == {"steps": 28}


def test_get_missing_returns_none(job_store):
    assert job_store.get(999) is None
    assert job_store.get_status(999) is None


def test_error_message_only_kept_for_failed(job_store, make_job):
    job_id = make_job()

    job_store.set_status(job_id, JobStatus.FAILED, error_message="NAI API error 500")
    assert job_store.get(job_id).error_message == "NAI API error 500"

    job_store.reset_for_retry(job_id)
    job = job_store.get(job_id)
    assert job.status == JobStatus.PENDING
    assert job.error_message is None


def test_set_status_rejects_unknown_status(job_store, make_job):
    with pytest.raises(ValueError):
        job_store.set_status(make_job(), "exploded")


def test_completed_count_never_decreases(job_store, make_job):
    job_id = make_job(total_count=5)

    job_store.set_completed_count(job_id, 3)
    job_store.set_completed_count(job_id, 2)

    assert job_store.get(job_id).completed_count == 3


def test_reset_for_retry_keeps_progress(job_store, make_job):
    job_id = make_job(total_count=5)
    job_store.set_completed_count(job_id, 2)
    job_store.set_status(job_id, JobStatus.FAILED, error_message="boom")

    job_store.reset_for_retry(job_id)

    job = job_store.get(job_id)
    assert job.completed_count == 2
    assert job.remaining_count == 3


def test_insert_result_copies_job_context(job_store):
    job = job_store.create(
        resolved_prompts={"general_prompt": "x"},
        resolved_parameters={},
        total_count=1,
        project_id=3,
        scene_id=11,
        source_scene_id=10,
    )

    image = job_store.insert_result(job.id, file_path="a.png", thumbnail_path="t.png", seed=5)

    assert image.project_id == 3
    assert image.scene_id == 11
    assert image.source_scene_id == 10
    assert image.image_metadata == {}


def test_insert_result_for_missing_job_raises(job_store):
    with pytest.raises(LookupError):
        job_store.insert_result(999, file_path="a.png", thumbnail_path=None, seed=None)


def test_requeue_interrupted_and_pending_order(job_store, make_job):
    first = make_job("a")
    second = make_job("b")
    third = make_job("c")
    job_store.set_status(first, JobStatus.RUNNING)
    job_store.set_status(third, JobStatus.COMPLETED)

    assert job_store.requeue_interrupted() == 1
    assert job_store.list_pending_ids() == [first, second]


def test_list_jobs_filters(job_store, make_job):
    a = make_job("a", project_id=1)
    b = make_job("b", project_id=2)
    job_store.set_status(b, JobStatus.COMPLETED)

    assert [j.id for j in job_store.list_jobs(project_id=1)] == [a]
    assert [j.id for j in job_store.list_jobs(status=JobStatus.COMPLETED)] == [b]
    assert len(job_store.list_jobs(limit=1)) == 1


def test_list_active_puts_halted_job_first(job_store, make_job):
    failed = make_job("failed")
    pending = make_job("pending")
    done = make_job("done")
    job_store.set_status(failed, JobStatus.FAILED, error_message="boom")
    job_store.set_status(done, JobStatus.COMPLETED)

    assert [j.id for j in job_store.list_active()] == [pending]
    assert [j.id for j in job_store.list_active(include_job_id=failed)] == [failed, pending]
    assert [j.id for j in job_store.list_active(include_job_id=pending)] == [pending]
