"""
=============================================================================
FORM LOGIN
=============================================================================

Checks a username/password submitted from the login page against a
line-oriented credential file.

=============================================================================
THE PROTOCOL
=============================================================================

    Browser                                Server
       │                                      │
       │  GET /login.html                     │
       │ ───────────────────────────────────► │  login page, served verbatim
       │                                      │
       │  POST /login.html                    │
       │  Content-Type: application/x-www-form-urlencoded
       │                                      │
       │  username=al%40ice&password=p%40ss   │
       │ ───────────────────────────────────► │  decode form
       │                                      │  read LoginInfo.txt (fresh)
       │                                      │  compare every record
       │  200 Login successful!               │
       │ ◄─────────────────────────────────── │  (or 400 / 401 / 500)

No cookie, session or token is issued. Every request that needs
authentication must carry the credentials again.

=============================================================================
THE CREDENTIAL FILE
=============================================================================

One record per line, split on the FIRST "=":

    alice=secret
    al@ice=p@ss
    bob=pa=ss          ← password is "pa=ss"

A single-line file is just the one-record case. Blank lines are ignored.
The file is re-read on every login attempt, so edits apply immediately.

    ┌──────────────────────────────┬────────────────────────────────────┐
    │ Store state                  │ Response                           │
    ├──────────────────────────────┼────────────────────────────────────┤
    │ missing                      │ 401 "User credentials file not     │
    │                              │      found."                       │
    │ empty / line without "="     │ 500 (data-integrity fault)         │
    │ valid, no record matches     │ 401 "Incorrect username or         │
    │                              │      password."                    │
    │ valid, a record matches      │ 200 "Login successful!"            │
    └──────────────────────────────┴────────────────────────────────────┘

=============================================================================
INTERVIEW QUESTIONS ABOUT LOGIN FORMS
=============================================================================

Q: "Why compare with hmac.compare_digest instead of ==?"
A: "== returns as soon as two strings differ, so the response time leaks
   how many leading characters were right. compare_digest takes the same
   time whatever the input. We also compare against every record instead
   of stopping at the first match, so the number of records checked does
   not leak either."

Q: "Why is a missing credential file a 401 and not a 500?"
A: "From the client's point of view the login failed. A 500 would say the
   server is broken; an unreadable or corrupt file is that, a missing one
   just means nobody can log in."

=============================================================================
"""

import hmac
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union
from urllib.parse import unquote_plus

from ..http.errors import (
    BadCredentials,
    CredentialStoreNotFound,
    IOFailure,
    MalformedCredentialStore,
    MalformedRequest,
)
from ..http.request import HTTPRequest
from ..http.response import ResponseWriter, text_response


logger = logging.getLogger(__name__)


LOGIN_SUCCESS_MESSAGE = "Login successful!"
INVALID_LOGIN_MESSAGE = "Invalid login request."


# =============================================================================
# FORM PARSING
# =============================================================================

def parse_form(body: str) -> Dict[str, str]:
    """
    Parse an application/x-www-form-urlencoded body.

    Pairs are split on "&", each pair on its first "=", and both sides are
    percent-decoded ("+" is a space). Pairs without "=" are skipped; a later
    duplicate key overrides an earlier one.

    Example:
        >>> parse_form("username=al%40ice&password=p%40ss")
        {'username': 'al@ice', 'password': 'p@ss'}
    """
    form: Dict[str, str] = {}

    for pair in body.rstrip("\r\n").split("&"):
        key, sep, value = pair.partition("=")
        if not sep:
            continue
        form[unquote_plus(key)] = unquote_plus(value)

    return form


# =============================================================================
# CREDENTIAL STORE
# =============================================================================

@dataclass(frozen=True)
class CredentialRecord:
    """A stored username/password pair."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"CredentialRecord(username={self.username!r}, password='***')"


class CredentialStore:
    """
    A `username=password` file, read fresh on every call.

    Usage:
        store = CredentialStore("/srv/www/LoginInfo.txt")
        record = store.verify("alice", "secret")   # CredentialRecord or None
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> List[CredentialRecord]:
        """
        Read and parse every record.

        Raises:
            CredentialStoreNotFound: The file does not exist.
            MalformedCredentialStore: No records, a line without "=", or an
                                      empty username or password.
            IOFailure: The file exists but cannot be read.
        """
        if not self.path.exists():
            raise CredentialStoreNotFound(detail=f"{self.path} does not exist")

        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            # Removed between the exists() check and the read
            raise CredentialStoreNotFound(detail=f"{self.path} does not exist") from e
        except (OSError, UnicodeDecodeError) as e:
            raise IOFailure(detail=f"Cannot read {self.path}: {e}") from e

        records: List[CredentialRecord] = []
        for line_number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue

            username, sep, password = line.partition("=")
            username, password = username.strip(), password.strip()
            if not sep or not username or not password:
                raise MalformedCredentialStore(
                    detail=f"{self.path}:{line_number} is not a username=password record"
                )
            records.append(CredentialRecord(username, password))

        if not records:
            raise MalformedCredentialStore(detail=f"{self.path} is empty")

        return records

    def verify(self, username: str, password: str) -> Optional[CredentialRecord]:
        """
        Check a username/password pair against every stored record.

        Comparison is exact and case-sensitive, in constant time per field.

        Returns:
            The first matching record, or None.

        Raises:
            Whatever load() raises.
        """
        supplied_user = username.encode("utf-8")
        supplied_pass = password.encode("utf-8")

        matched: Optional[CredentialRecord] = None
        for record in self.load():
            user_ok = hmac.compare_digest(record.username.encode("utf-8"), supplied_user)
            pass_ok = hmac.compare_digest(record.password.encode("utf-8"), supplied_pass)
            if user_ok and pass_ok and matched is None:
                matched = record

        return matched


# =============================================================================
# HANDLER
# =============================================================================

class LoginHandler:
    """
    Handles POST submissions of the login form.

    Raises typed errors for every failure; the dispatcher turns them into
    responses. On success writes `200 OK` with a text/plain body.
    """

    def __init__(self, store: CredentialStore):
        self.store = store

    def handle(self, request: HTTPRequest, writer: ResponseWriter) -> None:
        """
        Authenticate the credentials in the request body.

        Raises:
            MalformedRequest: Missing/undecodable body or missing fields (400).
            CredentialStoreNotFound: No credential file (401).
            MalformedCredentialStore: Corrupt credential file (500).
            IOFailure: Unreadable credential file (500).
            BadCredentials: No record matches (401).
        """
        logger.info("Handling login request")

        username, password = self._read_credentials(request)

        if self.store.verify(username, password) is None:
            logger.info(f"Login failed for user {username!r}")
            raise BadCredentials()

        logger.info(f"Login successful for user {username!r}")
        writer.send(text_response(LOGIN_SUCCESS_MESSAGE))

    def _read_credentials(self, request: HTTPRequest) -> tuple[str, str]:
        if not request.body:
            raise MalformedRequest(INVALID_LOGIN_MESSAGE, detail="Login request has no body")

        try:
            form = parse_form(request.body.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise MalformedRequest(INVALID_LOGIN_MESSAGE, detail=f"Body is not UTF-8: {e}") from e

        username = form.get("username")
        password = form.get("password")
        if not username or not password:
            raise MalformedRequest(
                INVALID_LOGIN_MESSAGE,
                detail=f"Form fields present: {sorted(form)}",
            )

        return username, password
