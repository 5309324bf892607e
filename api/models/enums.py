# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the Viangola registry.
"""

from enum import Enum


class UserRole(str, Enum):
    """Fixed user categories determining permission scope."""
    OPERATOR = "operator"
    AGENT = "agent"
    CITIZEN = "citizen"
    COMPANY = "company"


class PermissionAction(str, Enum):
    """Available permission actions."""
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class PermissionResource(str, Enum):
    """Functional areas subject to access control."""
    VEHICLES = "vehicles"
    DRIVERS = "drivers"
    DOCUMENTS = "documents"
    FINES = "fines"
    USERS = "users"
    REPORTS = "reports"
    SEARCH = "search"
    PROFILE = "profile"
    FLEET = "fleet"


class VehicleStatus(str, Enum):
    """Vehicle registration status."""
    ACTIVE = "active"
    SOLD = "sold"
    DAMAGED = "damaged"
    INACTIVE = "inactive"


class DriverStatus(str, Enum):
    """Driving licence status."""
    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class DocumentStatus(str, Enum):
    """Document validity status."""
    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"


class FineStatus(str, Enum):
    """Fine workflow status."""
    PENDING = "pending"
    PAID = "paid"
    CONTESTED = "contested"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    """In-app notification type."""
    EXPIRY = "expiry"
    FINE = "fine"
    REMINDER = "reminder"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    """In-app notification priority."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
