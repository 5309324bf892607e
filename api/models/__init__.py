# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the Viangola registry.
"""

# Base models
from .base import BaseEntity, BaseEntityCreate, BaseEntityUpdate, to_storage_fields

# Enumerations
from .enums import (
    UserRole,
    PermissionAction,
    PermissionResource,
    VehicleStatus,
    DriverStatus,
    DocumentStatus,
    FineStatus,
    NotificationType,
    NotificationPriority
)

# Core entities
from .entities import (
    User,
    Vehicle,
    Driver,
    Document,
    Fine,
    Notification,
    UserContext
)

# Request models
from .requests import (
    CreateVehicleRequest,
    UpdateVehicleRequest,
    CreateDriverRequest,
    UpdateDriverRequest,
    CreateDocumentRequest,
    UpdateDocumentRequest,
    CreateFineRequest,
    UpdateFineRequest,
    ContestFineRequest,
    CreateUserRequest,
    UpdateUserRequest,
    UpdateProfileRequest,
    PaginationParams,
    VehicleFilters,
    DriverFilters,
    DocumentFilters,
    FineFilters,
    PendingFinesQuery,
    NotificationFilters,
    UserFilters,
    SearchQuery,
    ReportQuery,
    PlateQuery
)

__all__ = [
    # Base models
    "BaseEntity",
    "BaseEntityCreate",
    "BaseEntityUpdate",
    "to_storage_fields",

    # Enumerations
    "UserRole",
    "PermissionAction",
    "PermissionResource",
    "VehicleStatus",
    "DriverStatus",
    "DocumentStatus",
    "FineStatus",
    "NotificationType",
    "NotificationPriority",

    # Core entities
    "User",
    "Vehicle",
    "Driver",
    "Document",
    "Fine",
    "Notification",
    "UserContext",

    # Request models
    "CreateVehicleRequest",
    "UpdateVehicleRequest",
    "CreateDriverRequest",
    "UpdateDriverRequest",
    "CreateDocumentRequest",
    "UpdateDocumentRequest",
    "CreateFineRequest",
    "UpdateFineRequest",
    "ContestFineRequest",
    "CreateUserRequest",
    "UpdateUserRequest",
    "UpdateProfileRequest",
    "PaginationParams",
    "VehicleFilters",
    "DriverFilters",
    "DocumentFilters",
    "FineFilters",
    "PendingFinesQuery",
    "NotificationFilters",
    "UserFilters",
    "SearchQuery",
    "ReportQuery",
    "PlateQuery"
]
