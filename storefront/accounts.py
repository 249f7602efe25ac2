"""Admin credential store backed by the ``users`` collection."""

import secrets
from datetime import datetime
from typing import Dict, Optional

import bcrypt

ADMIN_ROLE = "admin"

_dummy_hashes: Dict[int, str] = {}


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode(
        "utf-8"
    )


def check_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def _dummy_hash(rounds: int) -> str:
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = hash_password(secrets.token_hex(16), rounds)
    return _dummy_hashes[rounds]


def find_account(db, username: str):
    return db.users.find_one({"username": username})


def authenticate(db, username: str, password: str, rounds: int = 12):
    """Return the account matching ``username`` and ``password``, or None.

    Unknown usernames still pay for one bcrypt comparison so that a
    missing account and a wrong password take the same time to reject.
    """
    account = find_account(db, username)
    if not account:
        check_password(password, _dummy_hash(rounds))
        return None

    if not check_password(password, account.get("password")):
        return None

    return account


def ensure_account_indexes(db):
    db.users.create_index("username", unique=True)


def seed_default_admin(db, username: str, password: str, rounds: int = 12) -> bool:
    """Create the default admin unless some admin account already exists."""
    if db.users.find_one({"role": ADMIN_ROLE}):
        return False

    db.users.insert_one(
        {
            "username": username,
            "password": hash_password(password, rounds),
            "role": ADMIN_ROLE,
            "created_at": datetime.utcnow(),
        }
    )
    return True


def account_census(db, username: str) -> Dict[str, object]:
    return {
        "default_admin_exists": db.users.count_documents({"username": username}) > 0,
        "total_accounts": db.users.count_documents({}),
    }


def serialize_account(account) -> Dict[str, str]:
    return {
        "id": str(account.get("_id")),
        "username": account.get("username", ""),
        "role": account.get("role", ADMIN_ROLE),
    }
