from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum
import uuid


class UserRole(str, Enum):
    AGENT = "agent"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class LeadStatus(str, Enum):
    PENDING = "PENDING"
    REJECTED = "REJECTED"
    VERIFIED = "VERIFIED"
    REJECTED_BY_CLIENT = "REJECTED_BY_CLIENT"
    PAID = "PAID"
    DUPLICATE = "DUPLICATE"
    NOT_RESPONDING = "NOT_RESPONDING"
    FELONY = "FELONY"
    DEAD_LEAD = "DEAD_LEAD"
    WORKING = "WORKING"
    CALL_BACK = "CALL_BACK"
    ATTEMPT_1 = "ATTEMPT_1"
    ATTEMPT_2 = "ATTEMPT_2"
    ATTEMPT_3 = "ATTEMPT_3"
    ATTEMPT_4 = "ATTEMPT_4"
    CHARGEBACK = "CHARGEBACK"
    WAITING_ID = "WAITING_ID"
    SENT_CLIENT = "SENT_CLIENT"
    QC = "QC"
    ID_VERIFIED = "ID_VERIFIED"
    BILLABLE = "BILLABLE"
    CAMPAIGN_PAUSED = "CAMPAIGN_PAUSED"
    SENT_TO_LAW_FIRM = "SENT_TO_LAW_FIRM"


class AuditAction(str, Enum):
    USER_LOGIN_SUCCESS = "USER_LOGIN_SUCCESS"
    USER_LOGIN_FAILED = "USER_LOGIN_FAILED"
    USER_REGISTERED = "USER_REGISTERED"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    ORGANIZATION_CREATED = "ORGANIZATION_CREATED"
    ORGANIZATION_UPDATED = "ORGANIZATION_UPDATED"
    LEAD_CREATED = "LEAD_CREATED"
    LEAD_STATUS_CHANGED = "LEAD_STATUS_CHANGED"
    SUPER_ADMIN_BOOTSTRAPPED = "SUPER_ADMIN_BOOTSTRAPPED"


# Auth

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# Leads

class LeadCreateRequest(BaseModel):
    """Intake payload. Every attribute is optional; fields is a key->value map."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    application_type: Optional[str] = None
    lawsuit: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[LeadStatus] = None
    fields: Optional[Dict[str, Optional[str]]] = None


class LeadUpdateRequest(BaseModel):
    """General lead update. Attributes are applied only when truthy."""
    status: Optional[LeadStatus] = None
    status_note: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    application_type: Optional[str] = None
    lawsuit: Optional[str] = None
    notes: Optional[str] = None
    fields: Optional[Dict[str, Optional[str]]] = None


class LeadStatusUpdateRequest(BaseModel):
    """Admin status transition."""
    status: LeadStatus
    notes: Optional[str] = None


# Users

class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    role: UserRole = UserRole.AGENT
    organization_id: Optional[str] = None


class UserUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    active: Optional[bool] = None
    organization_id: Optional[str] = None


# Organizations

class OrganizationCreateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class OrganizationUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    active: Optional[bool] = None


class AuditLog(BaseModel):
    model_config = ConfigDict(extra="ignore")

    audit_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    action: AuditAction
    actor_role: Optional[UserRole] = None
    actor_id: Optional[str] = None
    organization_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Principal(BaseModel):
    """The authenticated caller, as carried in the session token."""
    id: str
    email: str
    role: UserRole

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)
