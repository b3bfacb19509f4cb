import logging
from typing import Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from .errors import DuplicateIdentifier, ProblemNotFound, StoreError, ValidationError
from .models import Problem, ProblemRecord, from_record, to_record

logger = logging.getLogger(__name__)

# Columns that stay fixed once a problem is stored
IMMUTABLE_COLUMNS = {"id", "problem_id", "solved_date"}


def build_engine(database_url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def create_db_and_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


class ProblemStore:
    """SQLModel-backed persistence for problems and their review slots."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _find(self, session: Session, identifier: str) -> Optional[ProblemRecord]:
        return session.exec(
            select(ProblemRecord).where(ProblemRecord.problem_id == identifier)
        ).first()

    def list_all(self) -> List[Problem]:
        try:
            with Session(self.engine) as session:
                records = session.exec(select(ProblemRecord).order_by(ProblemRecord.id)).all()
                return [from_record(record) for record in records]
        except SQLAlchemyError as exc:
            logger.error(f"Loading problems failed: {exc}")
            raise StoreError("Could not load problems") from exc

    def get(self, identifier: str) -> Optional[Problem]:
        try:
            with Session(self.engine) as session:
                record = self._find(session, identifier)
                return from_record(record) if record else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load problem {identifier}") from exc

    def insert(self, problem: Problem) -> Problem:
        record = to_record(problem)
        try:
            with Session(self.engine) as session:
                session.add(record)
                session.commit()
                session.refresh(record)
                logger.info(f"Stored problem {record.problem_id} (row {record.id})")
                return from_record(record)
        except IntegrityError as exc:
            raise DuplicateIdentifier(problem.identifier) from exc
        except SQLAlchemyError as exc:
            logger.error(f"Inserting problem {problem.identifier} failed: {exc}")
            raise StoreError(f"Could not add problem {problem.identifier}") from exc

    def update_fields(self, identifier: str, fields: Dict[str, object]) -> None:
        unknown = set(fields) - set(ProblemRecord.model_fields)
        if unknown:
            raise ValidationError(f"Unknown fields: {sorted(unknown)}")
        frozen = set(fields) & IMMUTABLE_COLUMNS
        if frozen:
            raise ValidationError(f"Fields cannot be changed: {sorted(frozen)}")

        try:
            with Session(self.engine) as session:
                record = self._find(session, identifier)
                if record is None:
                    raise ProblemNotFound(identifier)
                for column, value in fields.items():
                    setattr(record, column, value)
                session.add(record)
                session.commit()
        except SQLAlchemyError as exc:
            logger.error(f"Updating problem {identifier} failed: {exc}")
            raise StoreError(f"Could not update problem {identifier}") from exc

    def delete(self, identifier: str) -> None:
        try:
            with Session(self.engine) as session:
                record = self._find(session, identifier)
                if record is None:
                    raise ProblemNotFound(identifier)
                session.delete(record)
                session.commit()
                logger.info(f"Deleted problem {identifier}")
        except SQLAlchemyError as exc:
            logger.error(f"Deleting problem {identifier} failed: {exc}")
            raise StoreError(f"Could not delete problem {identifier}") from exc
