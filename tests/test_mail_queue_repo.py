"""
Tests for the mail queue repository: required fields, soft delete and
the sender-facing queries.
"""

import pytest

from models.errors import ValidationError
from models.result import Err, NOT_FOUND

USER = "6f1d2c3b-aaaa-4bbb-8ccc-0123456789ab"
OTHER_USER = "0a9b8c7d-1111-4222-9333-444455556666"


def _queue(repo, user=USER, subject="Welcome", **extra):
    return repo.create({"user_uuid": user, "subject": subject, "body": "<p>Hi</p>", **extra}).unwrap()


@pytest.mark.parametrize("field", ["user_uuid", "subject", "body"])
def test_create_requires_fields(mail_queue, field):
    data = {"user_uuid": USER, "subject": "Hi", "body": "Body"}
    data[field] = "  "
    result = mail_queue.create(data)
    assert isinstance(result, Err)
    assert isinstance(result.error, ValidationError)
    assert field in result.error.fields


def test_new_entries_are_pending_and_visible(mail_queue):
    mail_id = _queue(mail_queue)
    record = mail_queue.get_by_id(mail_id).unwrap()
    assert record["status"] == "pending"
    assert not record["locked"]
    assert not record["deleted"]


def test_soft_delete_round_trip(mail_queue):
    keep = _queue(mail_queue, subject="keep")
    gone = _queue(mail_queue, subject="gone")

    assert mail_queue.soft_delete(gone) is True
    assert [r["id"] for r in mail_queue.get_all()] == [keep]
    assert {r["id"] for r in mail_queue.get_all(include_soft_deleted=True)} == {keep, gone}
    assert mail_queue.get_count() == 1

    # still reachable by id while soft-deleted
    assert mail_queue.get_by_id(gone).unwrap()["deleted"]
    assert gone in mail_queue.get_by_ids([gone])

    assert mail_queue.restore(gone) is True
    assert {r["id"] for r in mail_queue.get_all()} == {keep, gone}


def test_soft_delete_leaves_other_columns_untouched(mail_queue):
    mail_id = _queue(mail_queue)
    before = mail_queue.get_by_id(mail_id).unwrap()
    mail_queue.soft_delete(mail_id)
    after = mail_queue.get_by_id(mail_id).unwrap()
    assert after["deleted"]
    del before["deleted"]
    del after["deleted"]
    assert before == after


def test_delete_is_soft_for_mail_queue(mail_queue):
    mail_id = _queue(mail_queue)
    assert mail_queue.delete(mail_id) is True
    assert mail_queue.get_by_id(mail_id).unwrap()["deleted"]


def test_hard_delete_ignores_flag(mail_queue):
    mail_id = _queue(mail_queue)
    mail_queue.soft_delete(mail_id)
    assert mail_queue.hard_delete(mail_id) is True
    assert mail_queue.get_by_id(mail_id) is NOT_FOUND


def test_get_pending_skips_locked_sent_and_deleted(mail_queue):
    pending = _queue(mail_queue)
    locked = _queue(mail_queue)
    sent = _queue(mail_queue)
    deleted = _queue(mail_queue)

    mail_queue.lock(locked)
    mail_queue.mark_status(sent, "sent")
    mail_queue.soft_delete(deleted)

    assert [r["id"] for r in mail_queue.get_pending()] == [pending]


def test_mark_status_releases_lock(mail_queue):
    mail_id = _queue(mail_queue)
    mail_queue.lock(mail_id)
    assert mail_queue.mark_status(mail_id, "failed") is True
    record = mail_queue.get_by_id(mail_id).unwrap()
    assert record["status"] == "failed"
    assert not record["locked"]


def test_mark_status_rejects_unknown_status(mail_queue):
    with pytest.raises(ValueError):
        mail_queue.mark_status(1, "bounced")


def test_search_by_subject(mail_queue):
    match = _queue(mail_queue, subject="Password Reset")
    _queue(mail_queue, subject="Welcome")
    assert [r["id"] for r in mail_queue.get_all(search="reset")] == [match]
    assert mail_queue.get_count(search="reset") == 1


def test_delete_all_by_user_uuid(mail_queue):
    mine = [_queue(mail_queue), _queue(mail_queue)]
    theirs = _queue(mail_queue, user=OTHER_USER)
    mail_queue.soft_delete(mine[1])

    assert mail_queue.delete_all_by_user_uuid(USER) is True
    assert mail_queue.get_by_ids(mine + [theirs]).keys() == {theirs}
    assert mail_queue.get_by_user_uuid(USER, include_deleted=True) == []


def test_delete_all_by_user_uuid_without_rows_still_succeeds(mail_queue):
    assert mail_queue.delete_all_by_user_uuid(OTHER_USER) is True


def test_lock_is_granted_once(mail_queue):
    mail_id = _queue(mail_queue)
    assert mail_queue.lock(mail_id) is True
    assert mail_queue.lock(mail_id) is False
    assert mail_queue.get_by_id(mail_id).unwrap()["locked"]


def test_lock_can_be_taken_again_after_unlock(mail_queue):
    mail_id = _queue(mail_queue)
    mail_queue.lock(mail_id)
    assert mail_queue.unlock(mail_id) is True
    assert mail_queue.lock(mail_id) is True


def test_lock_refuses_deleted_and_missing_entries(mail_queue):
    mail_id = _queue(mail_queue)
    mail_queue.soft_delete(mail_id)
    assert mail_queue.lock(mail_id) is False
    assert mail_queue.lock(404) is False
