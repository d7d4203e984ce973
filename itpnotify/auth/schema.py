"""
Account field constraints.

The store checks every candidate document against ACCOUNT_SCHEMA before it is
persisted, so the rules do not depend on what the storage backend can enforce.
Messages are the ones shown to the end user.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Pattern, Tuple

from .errors import ValidationError
from .password import MAX_PASSWORD_BYTES, normalize_phone

VERIFICATION_CHANNELS = ("email", "sms")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&]).+$")
SMS_CODE_PATTERN = re.compile(r"^\d{6}$")


@dataclass(frozen=True)
class FieldRule:
    """Constraint description for one account field."""
    name: str
    required: bool = True
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Pattern] = None
    choices: Optional[Tuple[str, ...]] = None
    required_message: str = "Câmpul este obligatoriu"
    length_message: str = "Lungimea câmpului nu este validă"
    format_message: str = "Valoarea câmpului nu este validă"

    def check(self, value: Any) -> Optional[str]:
        """Return the violation message for a value, or None if it is valid."""
        if value is None or value == "":
            return self.required_message if self.required else None

        if not isinstance(value, str):
            return self.format_message

        if self.min_length is not None and len(value) < self.min_length:
            return self.length_message
        if self.max_length is not None and len(value) > self.max_length:
            return self.length_message
        if self.pattern is not None and not self.pattern.match(value):
            return self.format_message
        if self.choices is not None and value not in self.choices:
            return self.format_message
        return None


ACCOUNT_SCHEMA: Dict[str, FieldRule] = {
    "surname": FieldRule(
        name="surname",
        min_length=2,
        max_length=50,
        required_message="Numele este obligatoriu",
        length_message="Numele trebuie să aibă între 2 și 50 de caractere",
    ),
    "given_name": FieldRule(
        name="given_name",
        min_length=2,
        max_length=50,
        required_message="Prenumele este obligatoriu",
        length_message="Prenumele trebuie să aibă între 2 și 50 de caractere",
    ),
    "phone": FieldRule(
        name="phone",
        # Checked after normalization, which only ever yields this shape
        pattern=re.compile(r"^0[267]\d{8}$"),
        required_message="Numărul de telefon este obligatoriu",
        format_message="Numărul de telefon nu este valid (format românesc)",
    ),
    "email": FieldRule(
        name="email",
        pattern=EMAIL_PATTERN,
        required_message="Email-ul este obligatoriu",
        format_message="Email-ul nu este valid",
    ),
    "password": FieldRule(
        name="password",
        min_length=8,
        pattern=PASSWORD_PATTERN,
        required_message="Parola este obligatorie",
        length_message="Parola trebuie să aibă cel puțin 8 caractere",
        format_message=(
            "Parola trebuie să conțină cel puțin: o literă mică, o literă mare, "
            "o cifră și un caracter special (@$!%*?&)"
        ),
    ),
    "preferred_verification": FieldRule(
        name="preferred_verification",
        choices=VERIFICATION_CHANNELS,
        required_message="Metoda de verificare este obligatorie",
        format_message="Metoda de verificare trebuie să fie email sau sms",
    ),
    "sms_verification_code": FieldRule(
        name="sms_verification_code",
        required=False,
        pattern=SMS_CODE_PATTERN,
        format_message="Codul SMS trebuie să aibă 6 cifre",
    ),
    "email_verification_token": FieldRule(
        name="email_verification_token",
        required=False,
        min_length=10,
        format_message="Token-ul de verificare nu este valid",
        length_message="Token-ul de verificare este prea scurt",
    ),
}


def normalize_account_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply the storage normalization rules to a candidate or patch.

    Names are trimmed, email is trimmed and lowercased, phone is brought to
    national form. A phone that cannot be normalized is kept as given so the
    validator reports it.
    """
    normalized = dict(fields)

    for name in ("surname", "given_name"):
        if isinstance(normalized.get(name), str):
            normalized[name] = normalized[name].strip()

    if isinstance(normalized.get("email"), str):
        normalized["email"] = normalized["email"].strip().lower()

    if isinstance(normalized.get("phone"), str):
        normalized["phone"] = normalize_phone(normalized["phone"]) or normalized["phone"].strip()

    return normalized


def validate_account_fields(fields: Dict[str, Any], only: Optional[Iterable[str]] = None) -> None:
    """
    Check fields against ACCOUNT_SCHEMA.

    Args:
        fields: Normalized field values
        only: Restrict the check to these field names (partial updates)

    Raises:
        ValidationError: With a message per offending field
    """
    names = list(only) if only is not None else list(ACCOUNT_SCHEMA)
    errors: Dict[str, str] = {}

    for name in names:
        rule = ACCOUNT_SCHEMA.get(name)
        if rule is None:
            continue
        message = rule.check(fields.get(name))
        if message:
            errors[name] = message

    password = fields.get("password")
    if "password" in names and "password" not in errors and isinstance(password, str):
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            errors["password"] = f"Parola nu poate depăși {MAX_PASSWORD_BYTES} de octeți"

    if errors:
        raise ValidationError(errors=errors)
