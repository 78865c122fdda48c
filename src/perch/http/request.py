"""Immutable HTTP request.

Frozen metadata plus the fully read body. The dispatch core is
synchronous, so the ASGI boundary reads the body before dispatch and
every accessor here is a plain method.
"""

from __future__ import annotations

import ipaddress
import json as json_module
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qs, urlsplit

from perch.errors import BadRequest, ValidationError
from perch.http.headers import Headers
from perch.http.query import QueryParams

_BEARER = re.compile(r"Bearer\s+(\S+)")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "client-ip")


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` never carries the query string; ``query`` holds it parsed.
    ``path_params`` is filled in by the route entry once a match is known.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    body: bytes = b""
    path_params: dict[str, str] = field(default_factory=dict)
    client: tuple[str, int] | None = None

    # Parsed body cache (dict contents are mutable even though the field is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Factories --

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], body: bytes = b"") -> Request:
        """Create a Request from an ASGI scope and an already-read body."""
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            body=body,
            client=tuple(client) if client else None,
        )

    @classmethod
    def build(
        cls,
        method: str,
        uri: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> Request:
        """Create a Request from a method and a ``path?query`` URI.

        Passing *json* serializes it as the body and sets the content type.
        """
        parts = urlsplit(uri)
        merged = dict(headers or {})
        if json is not None:
            body = json_module.dumps(json).encode("utf-8")
            merged.setdefault("content-type", "application/json")
        return cls(
            method=method.upper(),
            path=parts.path or "/",
            headers=Headers.from_mapping(merged),
            query=QueryParams(parts.query),
            body=body or b"",
        )

    def with_path_params(self, params: Mapping[str, str]) -> Request:
        """Return a copy carrying the captured route parameters."""
        return replace(self, path_params=dict(params), _cache=self._cache)

    # -- Computed properties --

    @property
    def uri(self) -> str:
        """Path plus query string, as the client sent it."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def is_json(self) -> bool:
        return "application/json" in (self.content_type or "").lower()

    @property
    def ip(self) -> str:
        """Client address, honouring proxy headers that carry a public IP."""
        for name in _CLIENT_IP_HEADERS:
            value = self.headers.get(name)
            if not value:
                continue
            candidate = value.split(",")[0].strip()
            try:
                addr = ipaddress.ip_address(candidate)
            except ValueError:
                continue
            if addr.is_global:
                return candidate
        if self.client:
            return self.client[0]
        return "0.0.0.0"

    # -- Body access --

    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises ``BadRequest`` when the body is not valid JSON.
        """
        if "_json" not in self._cache:
            try:
                self._cache["_json"] = json_module.loads(self.body or b"null")
            except ValueError as exc:
                raise BadRequest("Malformed JSON body") from exc
        return self._cache["_json"]

    def form(self) -> dict[str, str]:
        """URL-encoded form fields (first value per key)."""
        if "_form" not in self._cache:
            parsed = parse_qs(self.body.decode("latin-1"), keep_blank_values=True)
            self._cache["_form"] = {k: v[0] for k, v in parsed.items()}
        return self._cache["_form"]

    def _json_fields(self) -> dict[str, Any]:
        if self.method not in _BODY_METHODS or not self.is_json or not self.body:
            return {}
        try:
            data = self.json()
        except BadRequest:
            return {}
        return data if isinstance(data, dict) else {}

    def _form_fields(self) -> dict[str, str]:
        ct = (self.content_type or "").lower()
        if self.method != "POST" or "application/x-www-form-urlencoded" not in ct:
            return {}
        return self.form()

    # -- Input helpers --

    def all(self) -> dict[str, Any]:
        """Merged input: query string, then form fields, then JSON body."""
        merged: dict[str, Any] = {k: self.query[k] for k in self.query}
        merged.update(self._form_fields())
        merged.update(self._json_fields())
        return merged

    def input(self, key: str, default: Any = None) -> Any:
        """One input value; JSON body wins over form fields over query."""
        return self.all().get(key, default)

    def only(self, keys: Iterable[str]) -> dict[str, Any]:
        data = self.all()
        return {k: data[k] for k in keys if k in data}

    def has(self, key: str) -> bool:
        return key in self.all()

    def header(self, name: str, default: str = "") -> str:
        value = self.headers.get(name)
        return default if value is None else value

    def bearer_token(self) -> str | None:
        """The token from an ``Authorization: Bearer ...`` header."""
        m = _BEARER.search(self.header("authorization"))
        return m.group(1) if m else None

    def validate(self, rules: Mapping[str, Iterable[str]]) -> dict[str, Any]:
        """Check input against simple rules and return the validated fields.

        Supported rules: ``required``, ``integer``, ``numeric``, ``email``.
        Raises ``ValidationError`` listing one message per failing field.
        """
        errors: dict[str, str] = {}
        for name, rule_set in rules.items():
            rule_set = set(rule_set)
            value = self.input(name)
            if "required" in rule_set and value in (None, "", [], {}):
                errors[name] = f"The {name} field is required."
                continue
            if value is None:
                continue
            if "integer" in rule_set and not _is_integer(value):
                errors[name] = f"The {name} must be an integer."
            if "numeric" in rule_set and not _is_numeric(value):
                errors[name] = f"The {name} must be numeric."
            if "email" in rule_set and not (isinstance(value, str) and _EMAIL.match(value)):
                errors[name] = f"The {name} must be a valid email."
        if errors:
            raise ValidationError(errors)
        return self.only(rules)


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    try:
        int(str(value))
    except ValueError:
        return False
    return True


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return True
    try:
        float(str(value))
    except ValueError:
        return False
    return True
