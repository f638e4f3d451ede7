"""Table-scoped reads and writes with row-level access policies.

Each table declares which column (if any) names the owning user. Owned rows
are only visible to, and only insertable by, the session user they name.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from models import db, Expense, Profile
from .errors import DataStoreError, PolicyViolationError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TablePolicy:
    model: type
    owner_column: str | None = None  # None: readable by anyone
    writable: bool = False


TABLES = {
    'expenses': TablePolicy(Expense, owner_column='user_id', writable=True),
    'profiles': TablePolicy(Profile),
}


@dataclass
class APIResponse:
    data: list = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.data)


def _parse_timestamp(value):
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError as exc:
            raise DataStoreError(f'invalid input syntax for type timestamp: "{value}"') from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _serialize(value):
    if isinstance(value, datetime):
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value


class QueryBuilder:
    def __init__(self, client, name: str):
        self._client = client
        self._name = name
        self._op = 'select'
        self._columns = None
        self._order = []
        self._rows = []

    def select(self, columns: str = '*'):
        self._op = 'select'
        if columns.strip() != '*':
            self._columns = [c.strip() for c in columns.split(',') if c.strip()]
        return self

    def order(self, column: str, desc: bool = False):
        self._order.append((column, desc))
        return self

    def insert(self, rows):
        self._op = 'insert'
        self._rows = [rows] if isinstance(rows, dict) else list(rows)
        return self

    def execute(self) -> APIResponse:
        policy = TABLES.get(self._name)
        if policy is None:
            raise DataStoreError(f'relation "{self._name}" does not exist')
        session = self._client.auth.get_session()
        uid = session.user.id if session else None
        try:
            if self._op == 'insert':
                return self._execute_insert(policy, uid)
            return self._execute_select(policy, uid)
        except DataStoreError:
            db.session.rollback()
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            log.exception('%s on %s failed', self._op, self._name)
            raise DataStoreError(str(exc.orig) if getattr(exc, 'orig', None) else str(exc)) from exc

    # ---------------------- Internals ----------------------
    def _column(self, policy: TablePolicy, name: str):
        columns = inspect(policy.model).columns
        if name not in columns:
            raise DataStoreError(f'column {self._name}.{name} does not exist')
        return columns[name]

    def _execute_select(self, policy: TablePolicy, uid: str | None) -> APIResponse:
        names = self._columns or [c.key for c in inspect(policy.model).columns]
        for name in names:
            self._column(policy, name)
        if policy.owner_column and uid is None:
            # anonymous callers see no owned rows
            return APIResponse(data=[])

        q = policy.model.query
        if policy.owner_column:
            q = q.filter(getattr(policy.model, policy.owner_column) == uid)
        for column, desc in self._order:
            col = self._column(policy, column)
            q = q.order_by(col.desc() if desc else col.asc())
        rows = q.all()
        return APIResponse(data=[{n: _serialize(getattr(r, n)) for n in names} for r in rows])

    def _execute_insert(self, policy: TablePolicy, uid: str | None) -> APIResponse:
        violation = f'new row violates row-level security policy for table "{self._name}"'
        created = []
        for row in self._rows:
            if not policy.writable:
                raise PolicyViolationError(violation)
            if policy.owner_column and (uid is None or row.get(policy.owner_column) != uid):
                log.warning('Rejected insert into %s for user %s', self._name, uid)
                raise PolicyViolationError(violation)
            values = {}
            for key, value in row.items():
                col = self._column(policy, key)
                if value is not None and isinstance(col.type, db.DateTime):
                    value = _parse_timestamp(value)
                values[key] = value
            obj = policy.model(**values)
            db.session.add(obj)
            created.append(obj)
        db.session.commit()
        names = [c.key for c in inspect(policy.model).columns]
        return APIResponse(data=[{n: _serialize(getattr(o, n)) for n in names} for o in created])
