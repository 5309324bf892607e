# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.
"""

import datetime as dt
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from .base import BaseEntityCreate, BaseEntityUpdate
from .entities import check_email, check_plate, TIME_PATTERN
from .enums import UserRole, VehicleStatus, DriverStatus, DocumentStatus, FineStatus


class CreateVehicleRequest(BaseEntityCreate):
    """Request model for registering a vehicle."""

    plate: str = Field(..., description="Plate, hyphenated or not")
    brand: str = Field(..., min_length=1, max_length=100, description="Manufacturer")
    model: str = Field(..., min_length=1, max_length=100, description="Model name")
    year: int = Field(..., description="Year of manufacture")
    color: Optional[str] = Field(None, max_length=50, description="Colour")
    type: str = Field(default="Ligeiro", min_length=1, max_length=50, description="Vehicle type")
    owner_id: Optional[str] = Field(None, description="Owner user ID (operators only)")
    insurance_expiry: Optional[dt.date] = Field(None, description="Insurance expiry date")
    circulation_expiry: Optional[dt.date] = Field(None, description="Circulation tax expiry date")
    inspection_expiry: Optional[dt.date] = Field(None, description="Inspection expiry date")
    status: VehicleStatus = Field(default=VehicleStatus.ACTIVE, description="Registration status")

    @field_validator('plate')
    @classmethod
    def validate_plate(cls, v):
        """Validate plate shape."""
        return check_plate(v)


class UpdateVehicleRequest(BaseEntityUpdate):
    """Request model for updating a vehicle."""

    plate: Optional[str] = Field(None, description="Plate, hyphenated or not")
    brand: Optional[str] = Field(None, min_length=1, max_length=100, description="Manufacturer")
    model: Optional[str] = Field(None, min_length=1, max_length=100, description="Model name")
    year: Optional[int] = Field(None, description="Year of manufacture")
    color: Optional[str] = Field(None, max_length=50, description="Colour")
    type: Optional[str] = Field(None, min_length=1, max_length=50, description="Vehicle type")
    insurance_expiry: Optional[dt.date] = Field(None, description="Insurance expiry date")
    circulation_expiry: Optional[dt.date] = Field(None, description="Circulation tax expiry date")
    inspection_expiry: Optional[dt.date] = Field(None, description="Inspection expiry date")
    status: Optional[VehicleStatus] = Field(None, description="Registration status")

    @field_validator('plate')
    @classmethod
    def validate_plate(cls, v):
        """Validate plate shape."""
        if v is None:
            return v
        return check_plate(v)


class CreateDriverRequest(BaseEntityCreate):
    """Request model for registering a driving licence."""

    name: str = Field(..., min_length=1, max_length=200, description="Driver full name")
    license_number: str = Field(..., min_length=1, max_length=50, description="Driving licence number")
    categories: List[str] = Field(default_factory=lambda: ["B"], description="Licence categories")
    issue_date: dt.date = Field(..., description="Licence issue date")
    expiry_date: dt.date = Field(..., description="Licence expiry date")
    birth_date: dt.date = Field(..., description="Birth date")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")
    email: Optional[str] = Field(None, description="Email address")
    medical_exam: Optional[dt.date] = Field(None, description="Medical exam date")
    company: Optional[str] = Field(None, max_length=200, description="Employing company")
    owner_id: Optional[str] = Field(None, description="Owner user ID (operators only)")


class UpdateDriverRequest(BaseEntityUpdate):
    """Request model for updating a driving licence."""

    name: Optional[str] = Field(None, min_length=1, max_length=200, description="Driver full name")
    categories: Optional[List[str]] = Field(None, description="Licence categories")
    issue_date: Optional[dt.date] = Field(None, description="Licence issue date")
    expiry_date: Optional[dt.date] = Field(None, description="Licence expiry date")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")
    email: Optional[str] = Field(None, description="Email address")
    status: Optional[DriverStatus] = Field(None, description="Licence status")
    points: Optional[int] = Field(None, ge=0, description="Penalty points")
    medical_exam: Optional[dt.date] = Field(None, description="Medical exam date")
    company: Optional[str] = Field(None, max_length=200, description="Employing company")


class CreateDocumentRequest(BaseEntityCreate):
    """Request model for registering an uploaded vehicle document."""

    type: str = Field(..., min_length=1, max_length=100, description="Document type")
    vehicle_plate: str = Field(..., description="Plate of the vehicle")
    file_name: str = Field(..., min_length=1, max_length=255, description="Original file name")
    file_url: Optional[str] = Field(None, description="Storage URL of the uploaded file")
    expiry_date: Optional[dt.date] = Field(None, description="Document expiry date")
    size: Optional[str] = Field(None, description="Human-readable file size")

    @field_validator('vehicle_plate')
    @classmethod
    def validate_plate(cls, v):
        """Validate plate shape."""
        return check_plate(v)


class UpdateDocumentRequest(BaseEntityUpdate):
    """Request model for updating a document."""

    type: Optional[str] = Field(None, min_length=1, max_length=100, description="Document type")
    file_name: Optional[str] = Field(None, min_length=1, max_length=255, description="Original file name")
    file_url: Optional[str] = Field(None, description="Storage URL of the uploaded file")
    expiry_date: Optional[dt.date] = Field(None, description="Document expiry date")
    status: Optional[DocumentStatus] = Field(None, description="Validity status")
    size: Optional[str] = Field(None, description="Human-readable file size")


class CreateFineRequest(BaseEntityCreate):
    """Request model for applying a fine."""

    type: str = Field(..., min_length=1, max_length=200, description="Infraction type")
    vehicle_plate: str = Field(..., description="Plate of the vehicle")
    driver_name: str = Field(..., min_length=1, max_length=200, description="Driver name")
    driver_license: str = Field(..., min_length=1, max_length=50, description="Driver licence number")
    amount: float = Field(..., ge=0, description="Amount in kwanza")
    points: int = Field(default=0, ge=0, description="Penalty points")
    location: str = Field(..., min_length=1, max_length=300, description="Where the infraction occurred")
    date: dt.date = Field(..., description="Infraction date")
    time: str = Field(..., description="Infraction time (HH:MM)")
    description: Optional[str] = Field(None, max_length=2000, description="Details")
    photos: List[str] = Field(default_factory=list, description="Photo URLs")
    evidence: List[str] = Field(default_factory=list, description="Evidence URLs")

    @field_validator('vehicle_plate')
    @classmethod
    def validate_plate(cls, v):
        """Validate plate shape."""
        return check_plate(v)

    @field_validator('time')
    @classmethod
    def validate_time(cls, v):
        """Validate HH:MM time."""
        if not TIME_PATTERN.match(v):
            raise ValueError('time must be in HH:MM format')
        return v


class UpdateFineRequest(BaseEntityUpdate):
    """Request model for correcting a fine. Status changes go through the workflow endpoints."""

    type: Optional[str] = Field(None, min_length=1, max_length=200, description="Infraction type")
    vehicle_plate: Optional[str] = Field(None, description="Plate of the vehicle")
    driver_name: Optional[str] = Field(None, min_length=1, max_length=200, description="Driver name")
    driver_license: Optional[str] = Field(None, min_length=1, max_length=50, description="Driver licence number")
    amount: Optional[float] = Field(None, ge=0, description="Amount in kwanza")
    points: Optional[int] = Field(None, ge=0, description="Penalty points")
    location: Optional[str] = Field(None, min_length=1, max_length=300, description="Location")
    description: Optional[str] = Field(None, max_length=2000, description="Details")
    photos: Optional[List[str]] = Field(None, description="Photo URLs")
    evidence: Optional[List[str]] = Field(None, description="Evidence URLs")

    @field_validator('vehicle_plate')
    @classmethod
    def validate_plate(cls, v):
        """Validate plate shape."""
        if v is None:
            return v
        return check_plate(v)


class ContestFineRequest(BaseModel):
    """Request model for contesting a fine."""

    reason: str = Field(..., min_length=1, max_length=2000, description="Why the fine is contested")


class CreateUserRequest(BaseEntityCreate):
    """Request model for creating a user record."""

    id: Optional[str] = Field(None, description="Identity provider subject, when known")
    email: str = Field(..., description="User email address")
    name: str = Field(..., min_length=1, max_length=200, description="User full name")
    role: UserRole = Field(..., description="User role")
    badge: Optional[str] = Field(None, max_length=50, description="Badge number")
    company: Optional[str] = Field(None, max_length=200, description="Company name")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    birth_date: Optional[dt.date] = Field(None, description="Birth date")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        return check_email(v)


class UpdateUserRequest(BaseEntityUpdate):
    """Request model for an administrative user edit."""

    name: Optional[str] = Field(None, min_length=1, max_length=200, description="User full name")
    role: Optional[UserRole] = Field(None, description="User role")
    badge: Optional[str] = Field(None, max_length=50, description="Badge number")
    company: Optional[str] = Field(None, max_length=200, description="Company name")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    is_active: Optional[bool] = Field(None, description="Whether the account is active")


class UpdateProfileRequest(BaseEntityUpdate):
    """Request model for a user editing their own profile."""

    name: Optional[str] = Field(None, min_length=1, max_length=200, description="User full name")
    photo: Optional[str] = Field(None, description="Profile photo URL")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    birth_date: Optional[dt.date] = Field(None, description="Birth date")


class PaginationParams(BaseModel):
    """Pagination query parameters."""

    model_config = ConfigDict(use_enum_values=True)

    page: int = Field(default=1, ge=1, description="Page number")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")


class VehicleFilters(PaginationParams):
    """Vehicle list query parameters."""

    status: Optional[VehicleStatus] = Field(None, description="Filter by registration status")


class DriverFilters(PaginationParams):
    """Driver list query parameters."""

    status: Optional[DriverStatus] = Field(None, description="Filter by licence status")


class DocumentFilters(PaginationParams):
    """Document list query parameters."""

    type: Optional[str] = Field(None, description="Filter by document type")
    plate: Optional[str] = Field(None, description="Filter by vehicle plate")

    @field_validator('plate')
    @classmethod
    def validate_plate(cls, v):
        """Validate plate shape."""
        if v is None:
            return v
        return check_plate(v)


class FineFilters(PaginationParams):
    """Fine list query parameters."""

    status: Optional[FineStatus] = Field(None, description="Filter by workflow status")


class PendingFinesQuery(BaseModel):
    """Lookup of pending fines by plate and/or licence."""

    plate: Optional[str] = Field(None, description="Vehicle plate")
    license: Optional[str] = Field(None, description="Driving licence number")

    @field_validator('plate')
    @classmethod
    def validate_plate(cls, v):
        """Validate plate shape."""
        if v is None:
            return v
        return check_plate(v)

    @model_validator(mode='after')
    def validate_criteria(self):
        """At least one lookup key is required."""
        if not self.plate and not self.license:
            raise ValueError('plate or license is required')
        return self


class NotificationFilters(PaginationParams):
    """Notification list query parameters."""

    unread_only: bool = Field(default=False, description="Only unread notifications")


class UserFilters(PaginationParams):
    """User list query parameters."""

    role: Optional[UserRole] = Field(None, description="Filter by role")


class SearchQuery(BaseModel):
    """Free-text registry search."""

    q: str = Field(..., min_length=1, max_length=100, description="Search term")
    type: Optional[Literal["vehicles", "drivers", "fines"]] = Field(None, description="Restrict to one resource")
    limit: int = Field(default=20, ge=1, le=100, description="Results per resource")


class ReportQuery(BaseModel):
    """Summary report query parameters."""

    period: Optional[Literal["week", "month", "quarter", "year"]] = Field(None, description="Reporting period")


class PlateQuery(BaseModel):
    """Raw plate input."""

    value: str = Field(default="", max_length=50, description="Plate as typed")
