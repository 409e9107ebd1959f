"""Value store API routes.

Responsibilities:
- account/project-addressed read and upsert (`/values`), guarded by the
  shared bearer token
- id-addressed read, update and delete (`/values/{record_id}`)

The id-addressed routes are intentionally left without token checks; see
DESIGN.md for the open question on unifying the policy.

All handlers return the `{status, message, data}` envelope. Domain errors
raised here or in `ValueStore` are rendered by the application's exception
handlers.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import require_token
from ..db import get_db
from ..errors import ValidationError, storage_errors
from ..models import VALUE_FIELD
from ..schemas import ValuesIn, ValuesUpdate, success
from ..store import ValueStore, is_valid_id

router = APIRouter(prefix="/values")


def _check_id(record_id):
    if not is_valid_id(record_id):
        raise ValidationError("Invalid ID format")


@router.get("", dependencies=[Depends(require_token)])
def get_values(
    account: str | None = Query(None),
    project: str | None = Query(None),
    db: Session = Depends(get_db),
):
    """Fetch the value document for an (account, project) pair.

    A pair that has never been written is not an error: the response carries
    an empty `values` object.

    Args:
        account: Tenant identifier.
        project: Project identifier within the tenant.
        db: SQLAlchemy session (injected).

    Returns:
        dict: Envelope with `data = {account, project, values}`.

    Raises:
        ValidationError: 400 if either query parameter is missing or empty.
    """
    if not account or not project:
        raise ValidationError("Missing required parameters: account and project")

    with storage_errors("Failed to retrieve values"):
        record = ValueStore(db).fetch(account, project)

    if record is None:
        data = {"account": account, "project": project, VALUE_FIELD: {}}
    else:
        data = record.to_dict()

    return success("Values retrieved successfully", data)


@router.post("", dependencies=[Depends(require_token)])
def save_values(payload: ValuesIn, db: Session = Depends(get_db)):
    """Create or update the value document for an (account, project) pair.

    The first POST for a pair creates the record from the sanitized values.
    Later POSTs deep-merge into the stored document; fields sent as `null`
    are removed.

    Args:
        payload: `{account, project, values}`.
        db: SQLAlchemy session (injected).

    Returns:
        dict: Envelope with the persisted `{account, project, values}`.

    Raises:
        ValidationError: 400 if any field is missing.
        StorageFailure: 500 if the write fails.
    """
    if not payload.account or not payload.project or payload.values is None:
        raise ValidationError("Missing required fields: account, project, or values")

    with storage_errors("Failed to save values"):
        record, created = ValueStore(db).upsert(payload.account, payload.project, payload.values)

    message = "Values saved successfully" if created else "Values updated successfully"
    return success(message, record.to_dict())


@router.get("/{record_id}")
def get_value_by_id(record_id: str, db: Session = Depends(get_db)):
    """Fetch a record by id.

    Raises:
        ValidationError: 400 for a malformed id.
        NotFound: 404 if the record does not exist.
    """
    _check_id(record_id)

    with storage_errors("Failed to retrieve value"):
        record = ValueStore(db).fetch_by_id(record_id)

    return success("Value retrieved successfully", record.to_dict(include_id=True))


@router.put("/{record_id}")
def update_value_by_id(
    record_id: str,
    payload: ValuesUpdate | None = None,
    db: Session = Depends(get_db),
):
    """Merge `values` into the record with the given id.

    Args:
        record_id: Record id.
        payload: `{values}`; a missing or null `values` is rejected.
        db: SQLAlchemy session (injected).

    Returns:
        dict: Envelope with the persisted `{id, account, project, values}`.

    Raises:
        ValidationError: 400 for a malformed id.
        NotFound: 404 if the record does not exist.
        NoOp: 400 if no values were provided.
    """
    _check_id(record_id)
    patch = payload.values if payload is not None else None

    with storage_errors("Failed to update value"):
        record = ValueStore(db).update_by_id(record_id, patch)

    return success("Value updated successfully", record.to_dict(include_id=True))


@router.delete("/{record_id}")
def delete_value_by_id(record_id: str, db: Session = Depends(get_db)):
    """Delete the record with the given id.

    Raises:
        ValidationError: 400 for a malformed id.
        NotFound: 404 if the record does not exist.
    """
    _check_id(record_id)

    with storage_errors("Failed to delete value"):
        ValueStore(db).delete_by_id(record_id)

    return success("Value deleted successfully")
