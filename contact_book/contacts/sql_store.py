"""Relational contact store backed by SQLAlchemy.

Phone uniqueness is enforced twice: a check-then-insert inside one
transaction, and a UNIQUE constraint that turns any race into an
IntegrityError (surfaced as DuplicatePhone). On SQLite the table uses
AUTOINCREMENT so ids of deleted rows are never reused.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, List

from sqlalchemy import Boolean, Column, DateTime, Integer, String, create_engine, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .errors import ContactNotFound, DuplicatePhone, StorageFailure
from .importer import ImportReport, reconcile
from .models import Contact, ContactPatch, NewContact, now_utc
from .query import ContactQuery, QueryResult
from .store import ContactStore

logger = logging.getLogger(__name__)

Base = declarative_base()


class ContactRow(Base):
    __tablename__ = "contacts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, default="")
    social_account = Column(String(255), nullable=False, default="")
    address = Column(String(500), nullable=False, default="")
    favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def to_contact(self) -> Contact:
        return Contact(
            id=self.id,
            name=self.name,
            phone=self.phone,
            email=self.email or "",
            social_account=self.social_account or "",
            address=self.address or "",
            favorite=bool(self.favorite),
            created_at=_aware(self.created_at),
            updated_at=_aware(self.updated_at),
        )

    def assign(self, contact: Contact) -> None:
        self.name = contact.name
        self.phone = contact.phone
        self.email = contact.email
        self.social_account = contact.social_account
        self.address = contact.address
        self.favorite = contact.favorite
        self.created_at = contact.created_at
        self.updated_at = contact.updated_at


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


SEARCH_COLUMNS = (
    ContactRow.name,
    ContactRow.phone,
    ContactRow.email,
    ContactRow.social_account,
    ContactRow.address,
)


class SqlContactStore(ContactStore):
    """Contact store over a single ``contacts`` table."""

    backend = "sql"

    def __init__(self, database_url: str, **options: Any) -> None:
        super().__init__(**options)
        self.database_url = database_url
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        try:
            self.engine = create_engine(database_url, connect_args=connect_args)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            logger.error("[Contacts] Database unavailable at %s: %s", database_url, exc)
            raise StorageFailure(f"Could not open contact database: {exc}") from exc
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        session = self._sessions()
        try:
            with session.begin():
                yield session
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.error("[Contacts] Database error: %s", exc)
            raise StorageFailure(f"Database operation failed: {exc}") from exc
        finally:
            session.close()

    def _row(self, session: Session, contact_id: int) -> ContactRow:
        row = session.get(ContactRow, contact_id)
        if row is None:
            raise ContactNotFound(contact_id)
        return row

    @staticmethod
    def _phone_taken(session: Session, phone: str, exclude_id: int | None = None) -> bool:
        stmt = select(ContactRow.id).where(ContactRow.phone == phone)
        if exclude_id is not None:
            stmt = stmt.where(ContactRow.id != exclude_id)
        return session.execute(stmt.limit(1)).first() is not None

    # --- public operations ---

    def create(self, fields: NewContact) -> Contact:
        candidate = fields.normalized()
        try:
            with self._transaction() as session:
                if self._phone_taken(session, candidate.phone):
                    raise DuplicatePhone(candidate.phone)
                row = ContactRow()
                row.assign(candidate.build(contact_id=0))
                session.add(row)
                session.flush()
                contact = row.to_contact()
        except IntegrityError as exc:
            raise DuplicatePhone(candidate.phone) from exc
        logger.info("[Contacts] Created contact %s", contact.id)
        return contact

    def get(self, contact_id: int) -> Contact:
        with self._transaction() as session:
            return self._row(session, contact_id).to_contact()

    def update(self, contact_id: int, patch: ContactPatch) -> Contact:
        changes = patch.normalized()
        try:
            with self._transaction() as session:
                row = self._row(session, contact_id)
                if changes.phone is not None and self._phone_taken(
                    session, changes.phone, exclude_id=contact_id
                ):
                    raise DuplicatePhone(changes.phone)
                updated = changes.apply(row.to_contact())
                row.assign(updated)
        except IntegrityError as exc:
            raise DuplicatePhone(changes.phone or "") from exc
        logger.info("[Contacts] Updated contact %s", contact_id)
        return updated

    def remove(self, contact_id: int) -> None:
        with self._transaction() as session:
            session.delete(self._row(session, contact_id))
        logger.info("[Contacts] Deleted contact %s", contact_id)

    def all(self) -> List[Contact]:
        with self._transaction() as session:
            rows = session.scalars(select(ContactRow).order_by(ContactRow.id)).all()
            return [row.to_contact() for row in rows]

    def _search(self, query: ContactQuery) -> QueryResult:
        stmt = select(ContactRow)
        if query.query:
            needle = query.query.lower()
            stmt = stmt.where(
                or_(
                    *(
                        func.lower(func.coalesce(column, "")).contains(needle, autoescape=True)
                        for column in SEARCH_COLUMNS
                    )
                )
            )
        if query.favorite_only:
            stmt = stmt.where(ContactRow.favorite.is_(True))

        with self._transaction() as session:
            total = session.scalar(select(func.count()).select_from(stmt.subquery())) or 0
            rows = session.scalars(
                stmt.order_by(ContactRow.updated_at.desc(), ContactRow.id.asc())
                .offset(query.offset)
                .limit(query.page_size)
            ).all()
            items = [row.to_contact() for row in rows]

        return QueryResult(items=items, total=total, page=query.page, page_size=query.page_size)

    def _import(self, rows: List[Any], mode: str, error_limit: int) -> ImportReport:
        try:
            with self._transaction() as session:
                phones = session.scalars(select(ContactRow.phone)).all()
                plan = reconcile(rows, phones, mode=mode, error_limit=error_limit)
                stamp = now_utc()
                for phone, patch in plan.overwrites.items():
                    row = session.scalars(
                        select(ContactRow).where(ContactRow.phone == phone)
                    ).one()
                    row.assign(patch.apply(row.to_contact(), stamp))
                for candidate in plan.creates:
                    row = ContactRow()
                    row.assign(candidate.build(contact_id=0, when=stamp))
                    session.add(row)
        except IntegrityError as exc:
            logger.error("[ContactImport] Batch rolled back: %s", exc)
            raise StorageFailure(f"Import batch rolled back: {exc}") from exc
        logger.info("[ContactImport] %s", plan.report.message)
        return plan.report

    def describe(self) -> str:
        return f"sql:{self.engine.url.render_as_string(hide_password=True)}"
