"""Record access for the value store.

`ValueStore` wraps a SQLAlchemy session and implements the five record
operations the HTTP layer needs. Every mutation is a single read-modify-write:

1. read the current value document (or start from an empty one)
2. compute the new document in-process with `valuestore.merge`
3. write it back with one `UPDATE`/`INSERT` statement and commit

No application-level locking is done. Two concurrent writers to the same
(account, project) race at the database and the last commit wins.
"""

import logging
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from .errors import NoOp, NotFound, StorageFailure
from .merge import apply_unset, deep_merge, plan_unset, sanitize
from .models import VALUE_FIELD, Record, utcnow

logger = logging.getLogger(__name__)


def is_valid_id(value):
    """Return True if `value` looks like a record id (a UUID, any common spelling)."""
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def normalize_id(value):
    return uuid.UUID(str(value)).hex


def updated_value(base, patch):
    """Apply `patch` to the stored document `base`.

    The sanitized patch is deep-merged into `base`, then every field the
    original patch set to null is removed.

    Args:
        base: Current value document (`{}` for a new record).
        patch: Patch as submitted by the client.

    Returns:
        dict: The document to persist.
    """
    merged = deep_merge(base, sanitize(patch))
    unset = plan_unset(patch, VALUE_FIELD)
    if not unset:
        return merged
    return apply_unset({VALUE_FIELD: merged}, unset)[VALUE_FIELD]


class ValueStore:
    def __init__(self, session):
        self.session = session

    def fetch(self, account, project):
        """Return the record for (account, project), or None if there is none."""
        return self.session.scalars(
            select(Record).where(Record.account == account, Record.project == project)
        ).first()

    def fetch_by_id(self, record_id):
        """Return the record with id `record_id`.

        Raises:
            NotFound: If no such record exists.
        """
        record = self.session.get(Record, normalize_id(record_id))
        if record is None:
            raise NotFound("Value not found")
        return record

    def upsert(self, account, project, patch):
        """Create or update the record for (account, project).

        A new record starts from the sanitized patch. An existing record has the
        patch merged into its value. If another writer creates the record
        between our lookup and insert, the unique constraint rejects our insert
        and the patch is merged into theirs instead.

        Returns:
            tuple[Record, bool]: The stored record and whether it was created.
        """
        record = self.fetch(account, project)

        if record is None:
            try:
                return self._create(account, project, patch), True
            except IntegrityError:
                self.session.rollback()
                logger.info("Concurrent create for %s/%s, merging instead", account, project)
                record = self.fetch(account, project)
                if record is None:
                    raise

        if not self._write(record, updated_value(record.value or {}, patch)):
            raise StorageFailure("Failed to save values")
        return record, False

    def update_by_id(self, record_id, patch):
        """Merge `patch` into the record with id `record_id`.

        Raises:
            NotFound: If no such record exists (including one deleted while
                the update was being computed).
            NoOp: If `patch` is None.
        """
        record = self.fetch_by_id(record_id)

        if patch is None:
            raise NoOp("No values provided for update")

        if not self._write(record, updated_value(record.value or {}, patch)):
            raise NotFound("Value not found")
        return record

    def delete_by_id(self, record_id):
        """Delete the record with id `record_id`.

        Raises:
            NotFound: If no such record exists.
        """
        result = self.session.execute(
            delete(Record).where(Record.id == normalize_id(record_id))
        )
        if result.rowcount == 0:
            self.session.rollback()
            raise NotFound("Value not found")

        self.session.commit()
        logger.info("Deleted record %s", record_id)

    def _create(self, account, project, patch):
        now = utcnow()
        record = Record(
            account=account,
            project=project,
            value=sanitize(patch),
            created_at=now,
            updated_at=now,
        )
        self.session.add(record)
        self.session.commit()
        logger.info("Created record %s for %s/%s", record.id, account, project)
        return record

    def _write(self, record, value):
        """Persist `value` for `record` in one statement; False if the row is gone."""
        result = self.session.execute(
            update(Record)
            .where(Record.id == record.id)
            .values(value=value, updated_at=utcnow())
        )
        if result.rowcount == 0:
            self.session.rollback()
            return False

        self.session.commit()
        return True
