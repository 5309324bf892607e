# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the Viangola registry.
"""

import re
import datetime as dt
from datetime import date, datetime
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from domain import permissions as role_permissions
from domain.plates import canonical_plate, format_plate, validate_plate
from .base import BaseEntity
from .enums import (
    UserRole,
    VehicleStatus,
    DriverStatus,
    DocumentStatus,
    FineStatus,
    NotificationType,
    NotificationPriority
)


EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')
RUPE_PATTERN = re.compile(r'^RUPE\d{8}$')

DEFAULT_MAX_POINTS = 12


def check_plate(value: str) -> str:
    """Validate a plate and return its canonical stored form."""
    if not validate_plate(value):
        raise ValueError(f'Invalid Angolan plate: {value}')
    return canonical_plate(value)


def check_email(value: str) -> str:
    """Validate and normalize an email address."""
    if not EMAIL_PATTERN.match(value.lower()):
        raise ValueError('Invalid email format')
    return value.lower()


def check_not_blank(value: str, label: str) -> str:
    """Strip a required text field and reject blanks."""
    if not value.strip():
        raise ValueError(f'{label} cannot be empty')
    return value.strip()


class User(BaseEntity):
    """Registered user. The role is fixed at creation."""

    email: str = Field(..., description="User email address")
    name: str = Field(..., min_length=1, max_length=200, description="User full name")
    role: UserRole = Field(..., description="User role")
    badge: Optional[str] = Field(None, max_length=50, description="Operator or agent badge number")
    company: Optional[str] = Field(None, max_length=200, description="Company name for company accounts")
    photo: Optional[str] = Field(None, description="Profile photo URL")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    birth_date: Optional[date] = Field(None, description="Birth date")
    last_login: Optional[datetime] = Field(None, description="Last login timestamp")
    is_active: bool = Field(default=True, description="Whether the account is active")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        return check_email(v)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate user name."""
        return check_not_blank(v, 'User name')

    @model_validator(mode='after')
    def validate_role_fields(self):
        """Company accounts carry a company name."""
        if self.role == UserRole.COMPANY and not self.company:
            raise ValueError('company is required for company accounts')
        return self


class Vehicle(BaseEntity):
    """Registered vehicle."""

    plate: str = Field(..., description="Canonical plate (no hyphens)")
    brand: str = Field(..., min_length=1, max_length=100, description="Manufacturer")
    model: str = Field(..., min_length=1, max_length=100, description="Model name")
    year: int = Field(..., description="Year of manufacture")
    color: Optional[str] = Field(None, max_length=50, description="Colour")
    type: str = Field(default="Ligeiro", min_length=1, max_length=50, description="Vehicle type")
    owner_id: str = Field(..., description="Owning user ID")
    insurance_expiry: Optional[date] = Field(None, description="Insurance expiry date")
    circulation_expiry: Optional[date] = Field(None, description="Circulation tax expiry date")
    inspection_expiry: Optional[date] = Field(None, description="Inspection expiry date")
    status: VehicleStatus = Field(default=VehicleStatus.ACTIVE, description="Registration status")

    @field_validator('plate')
    @classmethod
    def validate_plate_field(cls, v):
        """Validate plate shape and store it canonical."""
        return check_plate(v)

    @field_validator('year')
    @classmethod
    def validate_year(cls, v):
        """Validate year of manufacture."""
        if v < 1900 or v > datetime.utcnow().year + 1:
            raise ValueError('Invalid year of manufacture')
        return v

    @property
    def display_plate(self) -> str:
        return format_plate(self.plate)

    def to_response(self) -> Dict[str, Any]:
        data = super().to_response()
        data["plate_display"] = self.display_plate
        return data


class Driver(BaseEntity):
    """Driving licence holder."""

    name: str = Field(..., min_length=1, max_length=200, description="Driver full name")
    license_number: str = Field(..., min_length=1, max_length=50, description="Driving licence number")
    categories: List[str] = Field(default_factory=lambda: ["B"], description="Licence categories")
    issue_date: date = Field(..., description="Licence issue date")
    expiry_date: date = Field(..., description="Licence expiry date")
    birth_date: date = Field(..., description="Birth date")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")
    email: Optional[str] = Field(None, description="Email address")
    photo: Optional[str] = Field(None, description="Photo URL")
    status: DriverStatus = Field(default=DriverStatus.VALID, description="Licence status")
    points: int = Field(default=0, ge=0, description="Penalty points")
    max_points: int = Field(default=DEFAULT_MAX_POINTS, ge=1, description="Points before suspension")
    medical_exam: Optional[date] = Field(None, description="Medical exam date")
    company: Optional[str] = Field(None, max_length=200, description="Employing company")
    owner_id: Optional[str] = Field(None, description="User ID the record belongs to")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate driver name."""
        return check_not_blank(v, 'Driver name')

    @field_validator('license_number')
    @classmethod
    def validate_license_number(cls, v):
        """Normalize licence number."""
        return check_not_blank(v, 'Licence number').upper()

    @field_validator('categories')
    @classmethod
    def validate_categories(cls, v):
        """Normalize licence categories."""
        categories = [c.strip().upper() for c in v if c and c.strip()]
        if not categories:
            raise ValueError('At least one licence category is required')
        return categories

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate optional email."""
        if v is None:
            return v
        return check_email(v)

    @model_validator(mode='after')
    def validate_dates(self):
        """Validate licence dates."""
        if self.expiry_date < self.issue_date:
            raise ValueError('expiry_date cannot be before issue_date')
        return self


class Document(BaseEntity):
    """Vehicle document (insurance, registration booklet, inspection, title)."""

    type: str = Field(..., min_length=1, max_length=100, description="Document type")
    vehicle_plate: str = Field(..., description="Canonical plate of the vehicle")
    file_name: str = Field(..., min_length=1, max_length=255, description="Original file name")
    file_url: Optional[str] = Field(None, description="Storage URL of the uploaded file")
    upload_date: date = Field(default_factory=date.today, description="Upload date")
    expiry_date: Optional[date] = Field(None, description="Document expiry date")
    status: DocumentStatus = Field(default=DocumentStatus.VALID, description="Validity status")
    size: Optional[str] = Field(None, description="Human-readable file size")
    owner_id: str = Field(..., description="Owning user ID")

    @field_validator('vehicle_plate')
    @classmethod
    def validate_plate_field(cls, v):
        """Validate plate shape and store it canonical."""
        return check_plate(v)

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        """Validate document type."""
        return check_not_blank(v, 'Document type')


class Fine(BaseEntity):
    """Traffic fine."""

    type: str = Field(..., min_length=1, max_length=200, description="Infraction type")
    vehicle_plate: str = Field(..., description="Canonical plate of the vehicle")
    driver_name: str = Field(..., min_length=1, max_length=200, description="Driver name")
    driver_license: str = Field(..., min_length=1, max_length=50, description="Driver licence number")
    amount: float = Field(..., ge=0, description="Amount in kwanza")
    points: int = Field(default=0, ge=0, description="Penalty points")
    location: str = Field(..., min_length=1, max_length=300, description="Where the infraction occurred")
    date: dt.date = Field(..., description="Infraction date")
    time: str = Field(..., description="Infraction time (HH:MM)")
    status: FineStatus = Field(default=FineStatus.PENDING, description="Workflow status")
    description: Optional[str] = Field(None, max_length=2000, description="Details")
    agent_id: Optional[str] = Field(None, description="Issuing agent user ID")
    agent_name: Optional[str] = Field(None, description="Issuing agent name")
    agent_badge: Optional[str] = Field(None, description="Issuing agent badge")
    photos: List[str] = Field(default_factory=list, description="Photo URLs")
    evidence: List[str] = Field(default_factory=list, description="Evidence URLs")
    payment_date: Optional[datetime] = Field(None, description="Payment timestamp")
    contest_date: Optional[datetime] = Field(None, description="Contest timestamp")
    contest_reason: Optional[str] = Field(None, max_length=2000, description="Reason given when contesting")
    rupe_reference: Optional[str] = Field(None, description="RUPE payment reference")

    @field_validator('vehicle_plate')
    @classmethod
    def validate_plate_field(cls, v):
        """Validate plate shape and store it canonical."""
        return check_plate(v)

    @field_validator('driver_license')
    @classmethod
    def validate_driver_license(cls, v):
        """Normalize licence number."""
        return check_not_blank(v, 'Licence number').upper()

    @field_validator('time')
    @classmethod
    def validate_time(cls, v):
        """Validate HH:MM time."""
        if not TIME_PATTERN.match(v):
            raise ValueError('time must be in HH:MM format')
        return v

    @field_validator('rupe_reference')
    @classmethod
    def validate_rupe_reference(cls, v):
        """Validate RUPE reference format."""
        if v is not None and not RUPE_PATTERN.match(v):
            raise ValueError('Invalid RUPE reference')
        return v

    @model_validator(mode='after')
    def validate_status_fields(self):
        """Validate status-dependent fields."""
        if self.status == FineStatus.PAID and not self.payment_date:
            raise ValueError('payment_date is required when status is paid')

        if self.status == FineStatus.CONTESTED and not self.contest_reason:
            raise ValueError('contest_reason is required when status is contested')

        return self

    def to_response(self) -> Dict[str, Any]:
        data = super().to_response()
        data["vehicle_plate_display"] = format_plate(self.vehicle_plate)
        return data


class Notification(BaseEntity):
    """In-app notification for a single user."""

    user_id: str = Field(..., description="Recipient user ID")
    type: NotificationType = Field(..., description="Notification type")
    title: str = Field(..., min_length=1, max_length=200, description="Title")
    description: str = Field(..., min_length=1, max_length=2000, description="Body")
    vehicle_plate: Optional[str] = Field(None, description="Related vehicle plate")
    priority: NotificationPriority = Field(default=NotificationPriority.MEDIUM, description="Priority")
    read: bool = Field(default=False, description="Whether the user has read it")

    @field_validator('vehicle_plate')
    @classmethod
    def validate_plate_field(cls, v):
        """Store related plate canonical."""
        if v is None:
            return v
        return canonical_plate(v)


class UserContext(BaseModel):
    """Authenticated caller with role and derived permissions."""

    user_id: str = Field(..., description="Authenticated user ID")
    role: UserRole = Field(..., description="User role")
    email: Optional[str] = Field(None, description="User email")
    name: Optional[str] = Field(None, description="User display name")
    badge: Optional[str] = Field(None, description="Agent or operator badge")
    permissions: List[str] = Field(default_factory=list, description="Permission strings for the role")
    token_payload: Optional[Dict[str, Any]] = Field(None, description="Original JWT payload")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")

    model_config = ConfigDict(
        use_enum_values=True
    )

    def has_permission(self, resource: str, action: str) -> bool:
        """Check the role table for a resource/action pair."""
        return role_permissions.has_permission(self.role, resource, action)

    @property
    def is_staff(self) -> bool:
        """Operators and agents see every record."""
        return self.role in (UserRole.OPERATOR.value, UserRole.AGENT.value)
