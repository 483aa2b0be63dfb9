"""
Idempotent super admin bootstrap from env.

When BOOTSTRAP_SUPER_ADMIN_EMAIL and BOOTSTRAP_SUPER_ADMIN_PASSWORD are set and
no user has that email, create an active super_admin with no organization.
A password shorter than the minimum is rejected and nothing is created.
An existing user with the email is left untouched.
Never logs or returns plaintext passwords.
"""
import os
import logging
from datetime import datetime, timezone
from database import database
from models import UserRole, AuditAction
from utils.audit import create_audit_log
from auth import hash_password, validate_password_strength
from services.user_service import generate_user_id, email_match

logger = logging.getLogger(__name__)

BOOTSTRAP_EMAIL_KEY = "BOOTSTRAP_SUPER_ADMIN_EMAIL"
BOOTSTRAP_PASSWORD_KEY = "BOOTSTRAP_SUPER_ADMIN_PASSWORD"
BOOTSTRAP_NAME_KEY = "BOOTSTRAP_SUPER_ADMIN_NAME"


async def run_bootstrap_super_admin() -> dict:
    """
    Returns dict with keys: action (str), user_id (str|None), message (str).
    """
    email = os.environ.get(BOOTSTRAP_EMAIL_KEY, "").strip()
    password = os.environ.get(BOOTSTRAP_PASSWORD_KEY, "").strip()
    if not email or not password:
        return {
            "action": "skipped",
            "user_id": None,
            "message": f"{BOOTSTRAP_EMAIL_KEY} / {BOOTSTRAP_PASSWORD_KEY} not set",
        }

    valid, message = validate_password_strength(password)
    if not valid:
        logger.warning("Bootstrap super admin: skipped, %s", message)
        return {
            "action": "skipped",
            "user_id": None,
            "message": f"{BOOTSTRAP_PASSWORD_KEY} rejected: {message}",
        }

    db = database.get_db()
    existing = await db.users.find_one(
        {"email": email_match(email)},
        {"_id": 0, "user_id": 1, "email": 1}
    )
    if existing:
        logger.info("Bootstrap super admin: already exists (email=%s)", email)
        return {
            "action": "already_exists",
            "user_id": existing["user_id"],
            "message": "User already exists for this email",
        }

    user_id = generate_user_id()
    now = datetime.now(timezone.utc).isoformat()
    await db.users.insert_one({
        "user_id": user_id,
        "name": os.environ.get(BOOTSTRAP_NAME_KEY, "").strip() or "Super Admin",
        "email": email,
        "password_hash": hash_password(password),
        "role": UserRole.SUPER_ADMIN.value,
        "active": True,
        "organization_id": None,
        "last_login": None,
        "created_at": now,
        "updated_at": now,
    })
    await create_audit_log(
        action=AuditAction.SUPER_ADMIN_BOOTSTRAPPED,
        actor_id=user_id,
        actor_role=UserRole.SUPER_ADMIN,
        resource_type="user",
        resource_id=user_id,
        metadata={"email": email, "method": "bootstrap_env"},
    )
    logger.info("Bootstrap super admin: created (email=%s)", email)
    return {
        "action": "created",
        "user_id": user_id,
        "message": "Super admin created from env",
    }
