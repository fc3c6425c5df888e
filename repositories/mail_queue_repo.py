"""
repositories/mail_queue_repo.py
--------------------------------
Data access layer for the outgoing mail queue.
All SQL queries related to the `mail_queue` table live here.

Queue entries are soft-deleted: `delete()` only flips the `deleted`
flag, so an entry stays reachable by id and can be restored.
"""

from models.entity import EntityDescriptor
from repositories.base import EntityRepository

MAIL_QUEUE = EntityDescriptor(
    table="mail_queue",
    fields=(
        "user_uuid", "subject", "body", "status",
        "locked", "deleted", "created_at", "updated_at",
    ),
    required_fields=("user_uuid", "subject", "body"),
    searchable_fields=("subject",),
    soft_delete_field="deleted",
    touch_field="updated_at",
)

STATUSES = ("pending", "sent", "failed")


class MailQueueRepository(EntityRepository):
    """Repository for CRUD operations on the mail_queue table."""

    def __init__(self, **kwargs):
        super().__init__(MAIL_QUEUE, **kwargs)

    # ── READ ──────────────────────────────────────────────

    def get_pending(self, limit: int | None = None) -> list[dict]:
        """
        Entries the mail sender should pick up next: pending, unlocked
        and not deleted, oldest first.
        """
        return self.get_all(limit=limit, filters={"status": "pending", "locked": False})

    def get_by_user_uuid(self, user_uuid: str, include_deleted: bool = False) -> list[dict]:
        """All queue entries addressed to one user."""
        return self.get_all(include_soft_deleted=include_deleted, filters={"user_uuid": user_uuid})

    # ── UPDATE ────────────────────────────────────────────

    def lock(self, mail_id: int) -> bool:
        """
        Claim an entry for sending.

        The flag is only flipped if the entry is still unlocked and not
        deleted, in a single statement, so of several senders racing
        for the same entry exactly one gets True.

        Returns:
            True if this caller now holds the lock.
        """
        sql = """
            UPDATE mail_queue SET locked = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s AND locked = %s AND deleted = %s;
        """
        affected = self._execute(sql, (True, mail_id, False, False), f"lock mail_queue #{mail_id}")
        return bool(affected)

    def unlock(self, mail_id: int) -> bool:
        return self.update(mail_id, {"locked": False})

    def mark_status(self, mail_id: int, status: str) -> bool:
        """
        Record the delivery outcome and release the lock.

        Raises:
            ValueError: If `status` is not one of STATUSES.
        """
        if status not in STATUSES:
            raise ValueError(f"Unknown mail status {status!r}")
        return self.update(mail_id, {"status": status, "locked": False})

    # ── DELETE ────────────────────────────────────────────

    def delete_all_by_user_uuid(self, user_uuid: str) -> bool:
        """Permanently remove every queue entry of a user (account deletion)."""
        return self.delete_where({"user_uuid": user_uuid})
