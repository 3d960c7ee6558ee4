"""
Persistence of payment state.

Both product tables share one shape: a row per (user, product) written with
a dialect-native upsert on that unique key. They differ only in how "paid"
is stored, which `SubjectTable` subclasses translate.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from panavest.billing.reconciliation import SUCCESS, PaymentState
from panavest.errors import NotConfiguredError, PersistenceError
from panavest.models import EbookPurchase, Enrollment, Payment

logger = logging.getLogger(__name__)

FAILED_GATEWAY_STATUSES = frozenset({"failed", "abandoned", "reversed"})


def _insert_for(session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotConfiguredError(f"Upserts are not supported on the {dialect} dialect")
    return insert


def upsert(session, model, key_columns, values):
    """INSERT ... ON CONFLICT (key_columns) DO UPDATE with every non-key value."""
    insert = _insert_for(session)
    stmt = insert(model.__table__).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(key_columns),
        set_={
            name: stmt.excluded[name]
            for name in values
            if name not in key_columns and name != "created_at"
        },
    )
    session.execute(stmt)


class SubjectTable:
    model = None
    key_columns = ()

    def paid_values(self, state):
        raise NotImplementedError

    def is_paid(self, row):
        raise NotImplementedError

    def to_state(self, row):
        return PaymentState(
            paid=self.is_paid(row),
            paid_at=row.paid_at,
            currency=row.currency,
            amount_minor=row.amount_minor,
            gateway_reference=row.gateway_reference,
            gateway_status=row.gateway_status,
            last_webhook_at=row.last_webhook_at,
            updated_at=row.updated_at,
        )

    def to_values(self, subject, state, gateway):
        return {
            **subject.key(),
            **self.paid_values(state),
            "paid_at": state.paid_at,
            "currency": state.currency,
            "amount_minor": state.amount_minor,
            "gateway": gateway,
            "gateway_reference": state.gateway_reference,
            "gateway_status": state.gateway_status,
            "last_webhook_at": state.last_webhook_at,
            "created_at": state.updated_at,
            "updated_at": state.updated_at,
        }


class EnrollmentTable(SubjectTable):
    model = Enrollment
    key_columns = ("user_id", "course_id")

    def paid_values(self, state):
        return {"paid": state.paid}

    def is_paid(self, row):
        return bool(row.paid)


class EbookPurchaseTable(SubjectTable):
    model = EbookPurchase
    key_columns = ("user_id", "ebook_id")

    def paid_values(self, state):
        if state.paid:
            status = "paid"
        elif state.gateway_status in FAILED_GATEWAY_STATUSES:
            status = "failed"
        else:
            status = "pending"
        return {"status": status}

    def is_paid(self, row):
        return row.status == "paid"


SUBJECT_TABLES = {
    "course": EnrollmentTable(),
    "ebook": EbookPurchaseTable(),
}


class PaymentStore:
    """
    Reads and writes payment state through one SQLAlchemy session.

    Writes only become visible when the surrounding `transaction()` block
    commits; any database error rolls the whole block back.
    """

    def __init__(self, session, gateway_name="paystack"):
        self.session = session
        self.gateway_name = gateway_name

    def _table(self, subject):
        return SUBJECT_TABLES[subject.kind]

    def find(self, subject, lock=False):
        table = self._table(subject)
        stmt = select(table.model).filter_by(**subject.key())
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def load(self, subject):
        """Current state of `subject`, locked for the rest of the transaction."""
        row = self.find(subject, lock=True)
        return None if row is None else self._table(subject).to_state(row)

    def save(self, subject, state):
        table = self._table(subject)
        upsert(self.session, table.model, table.key_columns,
               table.to_values(subject, state, self.gateway_name))

    def record_payment(self, reference, subject, *, status, amount_minor, currency, source, now):
        """Ledger entry per reference. A success is never overwritten by a later report."""
        existing = self.session.execute(
            select(Payment).filter_by(reference=reference).with_for_update()
        ).scalar_one_or_none()

        if existing is not None and existing.status == SUCCESS:
            status = existing.status
            amount_minor = existing.amount_minor
            currency = existing.currency
            source = existing.source

        upsert(self.session, Payment, ("reference",), {
            "reference": reference,
            "kind": subject.kind,
            "user_id": subject.user_id,
            "subject_id": subject.subject_id,
            "amount_minor": amount_minor,
            "currency": currency,
            "status": status,
            "source": getattr(source, "value", source),
            "provider": self.gateway_name,
            "created_at": now,
            "updated_at": now,
        })

    @contextmanager
    def transaction(self):
        try:
            yield self
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Payment store write failed", exc_info=True)
            raise PersistenceError("Could not record payment state") from e
        except Exception:
            self.session.rollback()
            raise
