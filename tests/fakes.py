"""
In-memory stand-ins for the external services.

FakeSupabase mimics the slice of the postgrest query builder the services use,
including the unique constraints and ON DELETE CASCADE foreign keys of the real
schema. FakeStorage records what the API put into and removed from the bucket.
"""

import copy
import itertools
import re
import threading
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from postgrest.exceptions import APIError

from reefing.core.auth import JWKSClient

UNIQUE = {
    "users": ("email", "username", "identity_provider_id"),
}

# child table -> (foreign key column, parent table)
FOREIGN_KEYS = {
    "aquariums": ("user_id", "users"),
    "aquarium_photos": ("aquarium_id", "aquariums"),
    "equipment": ("aquarium_id", "aquariums"),
    "corals": ("aquarium_id", "aquariums"),
}

NO_UPDATED_AT = {"aquarium_photos"}

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.4\n%test\n"


def generate_rsa_pem() -> bytes:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def like_to_regex(pattern: str) -> "re.Pattern[str]":
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$", re.DOTALL)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[Callable[[dict], bool]] = []
        self.order_by: Optional[tuple] = None
        self.max_rows: Optional[int] = None
        self.row_range: Optional[tuple] = None

    def select(self, columns: str = "*"):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column: str, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column: str, values):
        allowed = set(values)
        self.filters.append(lambda row: row.get(column) in allowed)
        return self

    def like(self, column: str, pattern: str):
        regex = like_to_regex(pattern)
        self.filters.append(lambda row: row.get(column) is not None and bool(regex.match(str(row[column]))))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, size: int):
        self.max_rows = size
        return self

    def range(self, start: int, end: int):
        self.row_range = (start, end)
        return self

    def _matching(self) -> List[dict]:
        return [row for row in self.db.tables[self.table] if all(f(row) for f in self.filters)]

    def execute(self):
        self.db.calls.append((self.table, self.op))
        if self.db.fail_tables.get(self.table) in (self.op, "*"):
            raise APIError({"message": "connection refused", "code": "08006", "details": None, "hint": None})
        with self.db.lock:
            if self.op == "insert":
                data = self.db.insert_rows(self.table, self.payload)
            elif self.op == "update":
                data = self.db.update_rows(self.table, self._matching(), self.payload)
            elif self.op == "delete":
                data = self.db.delete_rows(self.table, self._matching())
            else:
                data = self._matching()
                if self.order_by:
                    column, desc = self.order_by
                    data = sorted(data, key=lambda row: row.get(column) or "", reverse=desc)
                if self.row_range:
                    start, end = self.row_range
                    data = data[start:end + 1]
                if self.max_rows is not None:
                    data = data[:self.max_rows]
            return SimpleNamespace(data=copy.deepcopy(data))


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[dict]] = {name: [] for name in ("users", *FOREIGN_KEYS)}
        self.lock = threading.RLock()
        self.calls: List[tuple] = []
        self.fail_tables: Dict[str, str] = {}
        # Called with (table, rows) right before an insert is applied
        self.before_insert: Optional[Callable[[str, List[dict]], None]] = None
        self._clock = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def now(self) -> str:
        return (EPOCH + timedelta(seconds=next(self._clock))).isoformat()

    def seed(self, table: str, **values) -> dict:
        with self.lock:
            return copy.deepcopy(self.insert_rows(table, values)[0])

    def _check_unique(self, table: str, row: dict, ignore: Optional[dict] = None) -> None:
        for column in UNIQUE.get(table, ()):
            value = row.get(column)
            if value is None:
                continue
            for other in self.tables[table]:
                if other is not ignore and other.get(column) == value:
                    raise APIError({
                        "message": f'duplicate key value violates unique constraint "{table}_{column}_key"',
                        "code": "23505",
                        "details": f"Key ({column})=({value}) already exists.",
                        "hint": None,
                    })

    def insert_rows(self, table: str, payload) -> List[dict]:
        rows = payload if isinstance(payload, list) else [payload]
        if self.before_insert is not None:
            hook, self.before_insert = self.before_insert, None
            hook(table, rows)
        created = []
        for values in rows:
            row = {"id": str(uuid.uuid4()), "created_at": self.now(), **values}
            if table not in NO_UPDATED_AT:
                row.setdefault("updated_at", row["created_at"])
            self._check_unique(table, row)
            self.tables[table].append(row)
            created.append(row)
        return created

    def update_rows(self, table: str, rows: List[dict], values: dict) -> List[dict]:
        for row in rows:
            self._check_unique(table, {**row, **values}, ignore=row)
        for row in rows:
            row.update(values)
        return rows

    def delete_rows(self, table: str, rows: List[dict]) -> List[dict]:
        ids = {row["id"] for row in rows}
        self.tables[table] = [row for row in self.tables[table] if row["id"] not in ids]
        for child, (column, parent) in FOREIGN_KEYS.items():
            if parent == table:
                self.delete_rows(child, [row for row in self.tables[child] if row.get(column) in ids])
        return rows


class FakeStorage:
    def __init__(self, bucket_name: str = "reefing-test"):
        self.bucket_name = bucket_name
        self.objects: Dict[str, tuple] = {}
        self.deleted: List[str] = []
        # Every upload and delete attempt in call order, as (operation, key)
        self.events: List[tuple] = []
        self.fail_deletes = False
        self.fail_signing = False
        self.bucket_reachable = True
        # Uploads whose key contains one of these fragments fail
        self.failing_uploads: set = set()

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        self.events.append(("upload", key))
        if any(fragment in key for fragment in self.failing_uploads):
            raise RuntimeError(f"upload of {key} refused")
        self.objects[key] = (file_content, content_type)
        return key

    def get_signed_url(self, key: str) -> str:
        if self.fail_signing:
            raise RuntimeError("signing unavailable")
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}?X-Amz-Signature=test"

    def delete_file(self, key: str) -> None:
        self.events.append(("delete", key))
        if self.fail_deletes:
            raise RuntimeError("S3 unavailable")
        self.deleted.append(key)
        self.objects.pop(key, None)

    def check_bucket(self) -> None:
        if not self.bucket_reachable:
            raise RuntimeError("bucket unreachable")


class StaticJWKSClient(JWKSClient):
    """JWKS client serving a fixed key set and counting fetches"""

    def __init__(self, jwks: dict, **kwargs):
        super().__init__("https://test.invalid/.well-known/jwks.json", **kwargs)
        self.jwks = jwks
        self.fetches = 0

    def _fetch_jwks(self) -> dict:
        self.fetches += 1
        return self.jwks
