"""
Account storage and management.

Accounts live in a JSON document file, one document per account keyed by
account id. The store owns three invariants:

- email, phone, github_id and email_verification_token are unique when
  present (sparse unique indexes), re-checked inside the write lock against
  the freshly loaded collection on every write;
- the password is only ever persisted as a bcrypt hash, recomputed only when
  a write carries a new password;
- a verification token or SMS code is consumed by one compare-and-update
  operation, so it can match at most once.
"""

import asyncio
import json
import logging
import os
import secrets
import tempfile
import uuid
from pathlib import Path
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass, asdict, field, fields

from .errors import DuplicateIdentityError
from .password import PasswordHandler, normalize_phone
from .schema import normalize_account_fields, validate_account_fields

logger = logging.getLogger(__name__)

# Default storage path
DEFAULT_ACCOUNTS_FILE = Path(__file__).parent.parent.parent / "data" / "accounts.json"

# Sparse unique indexes: None never collides
UNIQUE_FIELDS = ("email", "phone", "github_id", "email_verification_token")

# Fields a caller may change through update(); "password" is re-hashed
UPDATABLE_FIELDS = frozenset({
    "surname",
    "given_name",
    "phone",
    "email",
    "password",
    "preferred_verification",
    "is_email_verified",
    "is_sms_verified",
    "email_verification_token",
    "sms_verification_code",
    "password_reset_token",
    "password_reset_expires",
    "github_id",
})

# Patch keys that go through the field validator
_VALIDATED_FIELDS = frozenset({
    "surname",
    "given_name",
    "phone",
    "email",
    "password",
    "preferred_verification",
    "email_verification_token",
    "sms_verification_code",
})


def _now() -> str:
    return datetime.utcnow().isoformat()


@dataclass
class Account:
    """Account document."""
    account_id: str
    surname: str
    given_name: str
    phone: str  # National form, 0XXXXXXXXX
    email: str  # Lowercase
    preferred_verification: str  # "email" or "sms"
    password_hash: Optional[str] = field(default=None, repr=False)
    is_email_verified: bool = False
    is_sms_verified: bool = False
    email_verification_token: Optional[str] = field(default=None, repr=False)
    sms_verification_code: Optional[str] = field(default=None, repr=False)
    # Reserved for a password reset flow
    password_reset_token: Optional[str] = field(default=None, repr=False)
    password_reset_expires: Optional[str] = None
    github_id: Optional[str] = None
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        """Storage representation (includes secrets)."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_public_dict(self) -> dict:
        """
        External representation.

        Never contains the password hash, the verification artifacts or the
        reset token.
        """
        return {
            "id": self.account_id,
            "nume": self.surname,
            "prenume": self.given_name,
            "email": self.email,
            "nrTelefon": self.phone,
            "isEmailVerified": self.is_email_verified,
            "isSMSVerified": self.is_sms_verified,
            "preferredVerification": self.preferred_verification,
            "githubLinked": self.github_id is not None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @property
    def full_name(self) -> str:
        return f"{self.surname} {self.given_name}"

    def is_verified(self) -> bool:
        """Whether the preferred channel has been verified (the login gate)."""
        if self.preferred_verification == "sms":
            return self.is_sms_verified
        return self.is_email_verified


class AccountStore:
    """
    JSON document store for accounts.

    All operations are coroutines. File I/O and bcrypt run in worker threads;
    writes are serialized by the store's lock and replace the file atomically.
    """

    def __init__(
        self,
        file_path: Optional[Path] = None,
        password_handler: Optional[PasswordHandler] = None
    ):
        """
        Initialize account store.

        Args:
            file_path: Path to the accounts JSON file (default: data/accounts.json)
            password_handler: bcrypt handler (default work factor if not given)
        """
        self.file_path = Path(file_path) if file_path else DEFAULT_ACCOUNTS_FILE
        self.password_handler = password_handler or PasswordHandler()
        self._write_lock = asyncio.Lock()
        self._dummy_hash: Optional[str] = None
        self._ensure_file()

    # -- file access ------------------------------------------------------

    def _ensure_file(self):
        """Ensure the storage file and directory exist."""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.file_path.exists() or self.file_path.stat().st_size == 0:
            self._save_all({})

    def _load_all(self) -> Dict[str, dict]:
        """Load all account documents from file."""
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return {}

    def _save_all(self, documents: Dict[str, dict]):
        """Write all documents, replacing the file atomically."""
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.file_path.parent), prefix=".accounts-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(documents, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.file_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def _load(self) -> Dict[str, dict]:
        return await asyncio.to_thread(self._load_all)

    async def _save(self, documents: Dict[str, dict]):
        await asyncio.to_thread(self._save_all, documents)

    @staticmethod
    def _check_unique(documents: Dict[str, dict], candidate: dict):
        """Enforce the sparse unique indexes against every other document."""
        for name in UNIQUE_FIELDS:
            value = candidate.get(name)
            if value is None:
                continue
            for account_id, doc in documents.items():
                if account_id != candidate["account_id"] and doc.get(name) == value:
                    raise DuplicateIdentityError(name)

    async def _find_one(self, predicate: Callable[[dict], bool]) -> Optional[Account]:
        documents = await self._load()
        for doc in documents.values():
            if predicate(doc):
                return Account.from_dict(doc)
        return None

    # -- create -----------------------------------------------------------

    async def create_account(
        self,
        surname: str,
        given_name: str,
        phone: str,
        email: str,
        password: str,
        preferred_verification: str,
        email_verification_token: Optional[str] = None,
        sms_verification_code: Optional[str] = None,
        github_id: Optional[str] = None,
        is_email_verified: bool = False,
        is_sms_verified: bool = False
    ) -> Account:
        """
        Create a new account.

        Args:
            surname, given_name: 2-50 characters after trimming
            phone: Romanian number, any accepted format
            email: Address (stored lowercase)
            password: Plain text password, hashed before persisting
            preferred_verification: "email" or "sms"
            email_verification_token, sms_verification_code: Verification artifacts
            github_id: Linked GitHub account id
            is_email_verified, is_sms_verified: Initial verification flags

        Returns:
            Created Account

        Raises:
            ValidationError: If a field violates the account constraints
            DuplicateIdentityError: If email, phone or github id is taken
        """
        candidate = normalize_account_fields({
            "surname": surname,
            "given_name": given_name,
            "phone": phone,
            "email": email,
            "password": password,
            "preferred_verification": preferred_verification,
            "email_verification_token": email_verification_token,
            "sms_verification_code": sms_verification_code,
        })

        # Early combined existence check, reported ahead of field errors; the index
        # check below is authoritative
        existing = await self._find_one(
            lambda doc: doc.get("email") == candidate["email"] or doc.get("phone") == candidate["phone"]
        )
        if existing:
            raise DuplicateIdentityError("email" if existing.email == candidate["email"] else "phone")

        validate_account_fields(candidate)

        password_hash = await self.password_handler.hash_async(candidate.pop("password"))

        account = Account(
            account_id=str(uuid.uuid4()),
            password_hash=password_hash,
            github_id=github_id,
            is_email_verified=is_email_verified,
            is_sms_verified=is_sms_verified,
            **candidate
        )

        async with self._write_lock:
            documents = await self._load()
            document = account.to_dict()
            self._check_unique(documents, document)
            documents[account.account_id] = document
            await self._save(documents)

        logger.info(f"Created account {account.account_id} (verification via {account.preferred_verification})")
        return account

    # -- lookups ----------------------------------------------------------

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        """Get account by id."""
        if not account_id:
            return None
        documents = await self._load()
        data = documents.get(account_id)
        return Account.from_dict(data) if data else None

    async def find_by_identity(self, login: str) -> Optional[Account]:
        """
        Find the account whose email or phone matches a login string.

        Email matching is case-insensitive; phone matching accepts any of the
        formats normalize_phone() understands.
        """
        if not login:
            return None

        email = login.strip().lower()
        phone = normalize_phone(login)

        return await self._find_one(
            lambda doc: doc.get("email") == email or (phone is not None and doc.get("phone") == phone)
        )

    async def find_by_email(self, email: str) -> Optional[Account]:
        if not email:
            return None
        email = email.strip().lower()
        return await self._find_one(lambda doc: doc.get("email") == email)

    async def find_by_github_id(self, github_id: str) -> Optional[Account]:
        if not github_id:
            return None
        return await self._find_one(lambda doc: doc.get("github_id") == github_id)

    async def find_by_verification_token(self, token: str) -> Optional[Account]:
        """Find the account holding an unconsumed email token."""
        if not token:
            return None
        return await self._find_one(lambda doc: doc.get("email_verification_token") == token)

    async def find_by_phone_and_code(self, phone: str, code: str) -> Optional[Account]:
        """Find the account holding an unconsumed SMS code for a phone."""
        normalized = normalize_phone(phone) if phone else None
        if not normalized or not code:
            return None
        return await self._find_one(
            lambda doc: doc.get("phone") == normalized and doc.get("sms_verification_code") == code
        )

    async def verify_password(self, account: Optional[Account], password: str) -> bool:
        """
        Compare a plain text password with the stored hash.

        Without an account the password is checked against a throwaway hash, so
        an unknown identity costs the same bcrypt work as a wrong password.
        """
        if account is None:
            if self._dummy_hash is None:
                self._dummy_hash = await self.password_handler.hash_async(secrets.token_urlsafe(16))
            await self.password_handler.verify_async(password, self._dummy_hash)
            return False
        return await self.password_handler.verify_async(password, account.password_hash)

    # -- updates ----------------------------------------------------------

    async def update(self, account_id: str, patch: Dict[str, Any]) -> Account:
        """
        Apply a partial update.

        Changed fields are normalized and revalidated; the password is re-hashed
        only when the patch carries one.

        Raises:
            ValueError: If the patch names a field that cannot be updated
            ValidationError: If a changed field violates the constraints
            DuplicateIdentityError: If a changed unique field is taken
            KeyError: If the account does not exist
        """
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        changes = normalize_account_fields(patch)
        validated = [name for name in changes if name in _VALIDATED_FIELDS]
        # Clearing an artifact (None) is always allowed
        validated = [
            name for name in validated
            if not (name in ("email_verification_token", "sms_verification_code") and changes[name] is None)
        ]
        validate_account_fields(changes, only=validated)

        if "password" in changes:
            changes["password_hash"] = await self.password_handler.hash_async(changes.pop("password"))

        async with self._write_lock:
            documents = await self._load()
            if account_id not in documents:
                raise KeyError(account_id)

            document = dict(documents[account_id])
            document.update(changes)
            document["updated_at"] = _now()
            self._check_unique(documents, document)
            documents[account_id] = document
            await self._save(documents)

        logger.debug(f"Updated account {account_id}: {', '.join(sorted(patch))}")
        return Account.from_dict(document)

    async def _consume(self, predicate: Callable[[dict], bool], changes: Dict[str, Any]) -> Optional[Account]:
        """Atomically find the first matching document and apply changes."""
        async with self._write_lock:
            documents = await self._load()
            for account_id, doc in documents.items():
                if predicate(doc):
                    document = dict(doc)
                    document.update(changes)
                    document["updated_at"] = _now()
                    documents[account_id] = document
                    await self._save(documents)
                    return Account.from_dict(document)
        return None

    async def consume_email_token(self, token: str) -> Optional[Account]:
        """
        Mark the email verified for the account holding a token and clear it.

        Returns:
            Updated Account, or None if no account holds the token
        """
        if not token:
            return None
        return await self._consume(
            lambda doc: doc.get("email_verification_token") == token,
            {"is_email_verified": True, "email_verification_token": None},
        )

    async def consume_sms_code(self, phone: str, code: str) -> Optional[Account]:
        """
        Mark the phone verified for the (phone, code) pair and clear the code.

        Returns:
            Updated Account, or None if the pair does not match
        """
        normalized = normalize_phone(phone) if phone else None
        if not normalized or not code:
            return None
        return await self._consume(
            lambda doc: doc.get("phone") == normalized and doc.get("sms_verification_code") == code,
            {"is_sms_verified": True, "sms_verification_code": None},
        )

    async def link_github(self, account_id: str, github_id: str) -> Account:
        """Attach a GitHub id and trust the provider-asserted email."""
        return await self.update(account_id, {"github_id": github_id, "is_email_verified": True})
