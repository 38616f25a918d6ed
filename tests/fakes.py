import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

ADMIN = {"id": "admin-1", "email": "admin@example.com"}
MODERATOR = {"id": "mod-1", "email": "mod@example.com"}
AUTHOR = {"id": "author-1", "email": "author@example.com"}
OTHER_AUTHOR = {"id": "author-2", "email": "other@example.com"}


def _parse(value):
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            return value
    return value


def _like(pattern: str, value: Any) -> bool:
    if value is None:
        return False
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    return re.match(regex, str(value), re.IGNORECASE) is not None


class FakeResult:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable stand-in for the postgrest query builder"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.mode = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.order_by = []
        self.limit_n = None
        self.range_bounds = None
        self.single_mode = None
        self.head = False
        self.count = None

    # verbs

    def select(self, *columns, count=None, head=False):
        self.mode = "select"
        self.count = count
        self.head = head
        return self

    def insert(self, payload):
        self.mode, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.mode, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict=None):
        self.mode, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.mode = "delete"
        return self

    # filters

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and _parse(row[column]) >= _parse(value))
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and _parse(row[column]) <= _parse(value))
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def ilike(self, column, pattern):
        self.filters.append(lambda row: _like(pattern, row.get(column)))
        return self

    def or_(self, expression):
        clauses = []
        for part in expression.split(","):
            column, op, value = part.split(".", 2)
            clauses.append((column, op, value))

        def match(row):
            for column, op, value in clauses:
                if op == "ilike" and _like(value, row.get(column)):
                    return True
                if op == "eq" and str(row.get(column)) == value:
                    return True
            return False
        self.filters.append(match)
        return self

    # modifiers

    def order(self, column, desc=False):
        self.order_by.append((column, desc))
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def range(self, start, end):
        self.range_bounds = (start, end)
        return self

    def single(self):
        self.single_mode = "single"
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    # execution

    def _matching(self) -> List[Dict[str, Any]]:
        return [row for row in self.db.tables.setdefault(self.table, []) if all(f(row) for f in self.filters)]

    def _new_row(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat()}
        row.update(payload)
        self.db.tables.setdefault(self.table, []).append(row)
        return row

    def execute(self):
        self.db.calls.append((self.table, self.mode))
        if self.table in self.db.fail_tables:
            raise RuntimeError(f"{self.table} unavailable")

        if self.mode == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResult([dict(self._new_row(p)) for p in payloads])

        if self.mode == "update":
            rows = self._matching()
            for row in rows:
                row.update(self.payload)
            return FakeResult([dict(r) for r in rows])

        if self.mode == "upsert":
            keys = (self.on_conflict or "id").split(",")
            existing = [
                row for row in self.db.tables.setdefault(self.table, [])
                if all(k in self.payload and row.get(k) == self.payload[k] for k in keys)
            ]
            if existing:
                existing[0].update(self.payload)
                return FakeResult([dict(existing[0])])
            return FakeResult([dict(self._new_row(self.payload))])

        if self.mode == "delete":
            rows = self._matching()
            self.db.tables[self.table] = [r for r in self.db.tables[self.table] if r not in rows]
            return FakeResult([dict(r) for r in rows])

        rows = self._matching()
        for column, desc in reversed(self.order_by):
            rows.sort(key=lambda r: (r.get(column) is None, str(r.get(column))), reverse=desc)
        count = len(rows) if self.count else None
        if self.range_bounds:
            start, end = self.range_bounds
            rows = rows[start:end + 1]
        if self.limit_n is not None:
            rows = rows[:self.limit_n]
        data = [dict(r) for r in rows]

        if self.single_mode == "single":
            if len(data) != 1:
                raise RuntimeError("JSON object requested, multiple (or no) rows returned")
            return FakeResult(data[0], count)
        if self.single_mode == "maybe":
            return FakeResult(data[0] if data else None, count)
        return FakeResult([] if self.head else data, count)


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, file, file_options=None):
        self.storage.objects[(self.name, path)] = (file, file_options or {})
        return {"path": path}

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.objects = {}

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.fail_tables = set()
        self.calls = []
        self.storage = FakeStorage()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.get(name, [])


