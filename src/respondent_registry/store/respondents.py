"""Record store adapter for respondents.

Create, read, update and delete respondents in the document store. Every
write is validated first, checked for phone uniqueness, and followed by a
change event so readers refetch.
"""

import time
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from respondent_registry.logging_audit import get_operation_logger
from respondent_registry.models.respondent import RespondentRecord, SchemaVariant
from respondent_registry.store.client import StoreClient
from respondent_registry.store.documents import (
    RespondentDocument,
    to_document_fields,
    to_record,
    to_storage_datetime,
)
from respondent_registry.store.notifier import ChangeEvent, ChangeNotifier
from respondent_registry.utils.dates import now_utc
from respondent_registry.utils.exceptions import (
    DuplicatePhoneError,
    ReadFailure,
    RecordNotFoundError,
    StoreError,
)
from respondent_registry.validation import require_valid

logger = get_operation_logger("store")

# Wire timestamps carry milliseconds
CREATED_AT_STEP = timedelta(milliseconds=1)


class RespondentStore:
    """Respondent persistence on top of a StoreClient.

    Attributes:
        client: Opened store client
        variant: Active schema variant used to validate writes
        notifier: Receives a ChangeEvent after every successful write

    Example:
        >>> store = RespondentStore(client, SchemaVariant.BASE)
        >>> record = store.create({"name": "Ana Lopez", ...})
        >>> store.read_all()[0].id == record.id
        True
    """

    def __init__(
        self,
        client: StoreClient,
        variant: SchemaVariant = SchemaVariant.BASE,
        notifier: Optional[ChangeNotifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.client = client
        self.variant = SchemaVariant(variant)
        self.notifier = notifier or ChangeNotifier()
        self._clock = clock or now_utc

    def today(self) -> date:
        """Current date according to the store's clock."""
        return self._clock().date()

    def create(self, data: Any) -> RespondentRecord:
        """Validate and insert a new respondent.

        Args:
            data: Untyped respondent fields

        Returns:
            The stored record with its assigned id and created_at

        Raises:
            ValidationError: If any field violates its constraints
            DuplicatePhoneError: If the phone number is already on file
            StoreError: If the store fails unexpectedly
        """
        record_input = require_valid(data, self.variant, today=self.today())
        start_time = time.time()

        try:
            with self.client.session() as session:
                if self._phone_holder(session, record_input.phone) is not None:
                    raise DuplicatePhoneError(record_input.phone)

                document = RespondentDocument(
                    id=uuid.uuid4().hex,
                    created_at=self._next_created_at(session),
                    **to_document_fields(record_input),
                )
                session.add(document)
                session.flush()
                record = to_record(document)
        except IntegrityError as e:
            # Another writer inserted the same phone between check and insert
            logger.warning("Unique phone index rejected a concurrent insert")
            raise DuplicatePhoneError(record_input.phone) from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create respondent: {e}") from e

        logger.info(
            f"Created respondent {record.id} in {time.time() - start_time:.3f}s"
        )
        self.notifier.publish(ChangeEvent("created", record.id))
        return record

    def read_all(self) -> list[RespondentRecord]:
        """Fetch every respondent, newest first.

        Raises:
            ReadFailure: If the store cannot be read
        """
        try:
            with self.client.session() as session:
                documents = session.scalars(
                    select(RespondentDocument).order_by(
                        RespondentDocument.created_at.desc()
                    )
                ).all()
                records = [to_record(doc) for doc in documents]
        except (SQLAlchemyError, StoreError) as e:
            raise ReadFailure(f"Failed to read respondents: {e}") from e

        logger.debug(f"Read {len(records)} respondent(s)")
        return records

    def get(self, record_id: str) -> RespondentRecord:
        """Fetch one respondent by id.

        Raises:
            RecordNotFoundError: If no respondent has this id
            StoreError: If the store fails unexpectedly
        """
        try:
            with self.client.session() as session:
                document = session.get(RespondentDocument, record_id)
                if document is None:
                    raise RecordNotFoundError(record_id)
                return to_record(document)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read respondent {record_id}: {e}") from e

    def update(self, record_id: str, data: Any) -> RespondentRecord:
        """Validate and overwrite every field of an existing respondent.

        The id and created_at are preserved. Fields the active schema does not
        carry are cleared.

        Raises:
            ValidationError: If any field violates its constraints
            DuplicatePhoneError: If a different respondent holds the phone
            RecordNotFoundError: If no respondent has this id
            StoreError: If the store fails unexpectedly
        """
        record_input = require_valid(data, self.variant, today=self.today())

        try:
            with self.client.session() as session:
                holder = self._phone_holder(
                    session, record_input.phone, exclude_id=record_id
                )
                if holder is not None:
                    raise DuplicatePhoneError(record_input.phone, record_id=holder)

                document = session.get(RespondentDocument, record_id)
                if document is None:
                    raise RecordNotFoundError(record_id)

                for name, value in to_document_fields(record_input).items():
                    setattr(document, name, value)
                session.flush()
                record = to_record(document)
        except IntegrityError as e:
            logger.warning("Unique phone index rejected a concurrent update")
            raise DuplicatePhoneError(record_input.phone) from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update respondent {record_id}: {e}") from e

        logger.info(f"Updated respondent {record_id}")
        self.notifier.publish(ChangeEvent("updated", record_id))
        return record

    def delete(self, record_id: str) -> None:
        """Remove a respondent. Deleting a missing id is not an error.

        Raises:
            StoreError: If the store fails unexpectedly
        """
        try:
            with self.client.session() as session:
                result = session.execute(
                    delete(RespondentDocument).where(RespondentDocument.id == record_id)
                )
                removed = result.rowcount
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete respondent {record_id}: {e}") from e

        if removed:
            logger.info(f"Deleted respondent {record_id}")
        else:
            logger.info(f"Delete requested for missing respondent {record_id}")
        self.notifier.publish(ChangeEvent("deleted", record_id))

    def _phone_holder(
        self, session: Session, phone: str, exclude_id: Optional[str] = None
    ) -> Optional[str]:
        """Return the id of the respondent holding ``phone``, if any."""
        query = select(RespondentDocument.id).where(RespondentDocument.phone == phone)
        if exclude_id is not None:
            query = query.where(RespondentDocument.id != exclude_id)
        return session.scalars(query.limit(1)).first()

    def _next_created_at(self, session: Session) -> datetime:
        """Creation timestamp strictly after every stored one."""
        now = to_storage_datetime(self._clock())
        now = now.replace(microsecond=now.microsecond // 1000 * 1000)
        latest = session.scalar(select(func.max(RespondentDocument.created_at)))
        if latest is not None and now <= latest:
            now = latest + CREATED_AT_STEP
        return now
