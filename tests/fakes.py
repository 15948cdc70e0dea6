"""In-memory stand-ins for the parts of supabase-py the service touches."""
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
from postgrest.exceptions import APIError

DEFAULTS = {
    "users": {"full_name": ""},
    "chat_sessions": {"title": "New Chat"},
    "messages": {},
}


def rls_denied():
    return APIError({
        "message": "new row violates row-level security policy",
        "code": "42501",
        "hint": None,
        "details": None,
    })


def _sort_key(value):
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.descending = False
        self.row_limit = None
        self.ignore_duplicates = False

    def select(self, *columns):
        self.action = "select"
        return self

    def insert(self, row, **kwargs):
        self.action = "insert"
        self.payload = row
        return self

    def upsert(self, row, ignore_duplicates=False, **kwargs):
        self.action = "upsert"
        self.payload = row
        self.ignore_duplicates = ignore_duplicates
        return self

    def update(self, values, **kwargs):
        self.action = "update"
        self.payload = values
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False, **kwargs):
        self.order_by = column
        self.descending = desc
        return self

    def limit(self, size, **kwargs):
        self.row_limit = size
        return self

    def _matching(self):
        rows = self.db.tables[self.table]
        return [r for r in rows if all(r.get(c) == v for c, v in self.filters)]

    def execute(self):
        self.db.calls.append((self.table, self.action))
        self.db.check(self.table, self.action, self.payload)

        if self.action == "select":
            rows = [dict(r) for r in self._matching()]
            if self.order_by:
                rows.sort(key=lambda r: _sort_key(r[self.order_by]), reverse=self.descending)
            if self.row_limit is not None:
                rows = rows[:self.row_limit]
            return SimpleNamespace(data=rows, count=None)

        if self.action in ("insert", "upsert"):
            existing = [r for r in self.db.tables[self.table] if r["id"] == self.payload.get("id")]
            if existing:
                if self.ignore_duplicates:
                    return SimpleNamespace(data=[], count=None)
                existing[0].update(self.payload)
                return SimpleNamespace(data=[dict(existing[0])], count=None)
            row = self.db.new_row(self.table, self.payload)
            return SimpleNamespace(data=[dict(row)], count=None)

        if self.action == "update":
            rows = self._matching()
            for r in rows:
                r.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in rows], count=None)

        raise AssertionError(f"unsupported action {self.action}")


class FakeAuth:
    def __init__(self):
        self.accounts = {}
        self.tokens = {}
        self.signed_out = []
        self.confirm_email = False
        self.fail_sign_out = False
        self.admin = SimpleNamespace(sign_out=self._admin_sign_out)

    def create_account(self, email, password="secret"):
        user = SimpleNamespace(id=str(uuid.uuid4()), email=email)
        self.accounts[email] = (user, password)
        return user

    def _session(self, user):
        token = f"token-{user.id}"
        self.tokens[token] = user
        return SimpleNamespace(access_token=token, refresh_token=f"refresh-{user.id}")

    def sign_up(self, credentials):
        if credentials["email"] in self.accounts:
            raise Exception("User already registered")
        user = self.create_account(credentials["email"], credentials["password"])
        session = None if self.confirm_email else self._session(user)
        return SimpleNamespace(user=user, session=session)

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if account is None or account[1] != credentials["password"]:
            raise Exception("Invalid login credentials")
        return SimpleNamespace(user=account[0], session=self._session(account[0]))

    def sign_in_as(self, email, password="secret"):
        """Create the account if needed and return a valid access token."""
        if email not in self.accounts:
            self.create_account(email, password)
        response = self.sign_in_with_password({"email": email, "password": password})
        return response.session.access_token

    def get_user(self, token):
        user = self.tokens.get(token)
        if user is None:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=user)

    def _admin_sign_out(self, token, scope="global"):
        if self.fail_sign_out:
            raise Exception("network down")
        self.signed_out.append(token)
        self.tokens.pop(token, None)


class FakeSupabase:
    def __init__(self):
        self.tables = {name: [] for name in DEFAULTS}
        self.calls = []
        self.auth = FakeAuth()
        self._denials = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def table(self, name):
        return FakeQuery(self, name)

    def now(self):
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def new_row(self, table, payload):
        stamp = self.now()
        row = {"id": str(uuid.uuid4()), "created_at": stamp}
        if table != "messages":
            row["updated_at"] = stamp
        row.update(DEFAULTS[table])
        row.update(payload)
        self.tables[table].append(row)
        return row

    def deny(self, table, action, when=None, error=None):
        """Reject matching writes the way RLS (or a dropped connection) would."""
        self._denials.append((table, action, when, error))

    def allow_all(self):
        self._denials = []

    def check(self, table, action, payload):
        for d_table, d_action, when, error in self._denials:
            if d_table != table or d_action != action:
                continue
            if when is None or when(payload or {}):
                raise error if error is not None else rls_denied()


def connection_error():
    return httpx.ConnectError("connection refused")
