import re

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
# Optional leading +, 7 to 15 digits once separators are removed
PHONE_RE = re.compile(r"^\+?\d{7,15}$")
PHONE_SEPARATORS_RE = re.compile(r"[\s().-]")

MIN_PASSWORD_LENGTH = 8

# Column sizes in models/user.py
EMAIL_MAX_LENGTH = 255
NAME_MAX_LENGTH = 255
PHONE_MAX_LENGTH = 32

ROLES = ("admin", "customer")
DEFAULT_ROLE = "customer"


def is_valid_email(email) -> bool:
    return isinstance(email, str) and len(email) <= EMAIL_MAX_LENGTH and bool(EMAIL_RE.match(email))


def is_valid_password(password) -> bool:
    return isinstance(password, str) and len(password) >= MIN_PASSWORD_LENGTH


def is_valid_phone(phone) -> bool:
    if not isinstance(phone, str) or len(phone) > PHONE_MAX_LENGTH:
        return False
    return bool(PHONE_RE.match(PHONE_SEPARATORS_RE.sub("", phone)))


def is_valid_name(name) -> bool:
    return name is None or (isinstance(name, str) and len(name) <= NAME_MAX_LENGTH)


def is_valid_role(role) -> bool:
    return role in ROLES


def sanitize(value):
    """Trim surrounding whitespace; None stays None."""
    return value.strip() if isinstance(value, str) else value
