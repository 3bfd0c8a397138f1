"""
Roster models for the Squadra team management application.

This module contains the entities that live outside a single match: players,
permission groups, users and training sessions with their attendance.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .match import generate_id


def _text(value: Any) -> str:
    """Text form of a JSON scalar; numbers sent by clients become strings."""
    return "" if value is None else str(value)


class UserStatus(Enum):
    """Account status for application users."""
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class Player:
    """A registered player of the team."""
    first_name: str
    last_name: str
    birth_date: str = ""
    license_number: str = ""
    is_active: bool = True
    id: str = field(default_factory=generate_id)
    phone: Optional[str] = None
    email: Optional[str] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    parent_email: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "birth_date": self.birth_date,
            "license_number": self.license_number,
            "is_active": self.is_active,
            "phone": self.phone,
            "email": self.email,
            "parent_name": self.parent_name,
            "parent_phone": self.parent_phone,
            "parent_email": self.parent_email,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """Create from dictionary for JSON deserialization."""
        player = cls(
            first_name=_text(data.get("first_name")),
            last_name=_text(data.get("last_name")),
            birth_date=_text(data.get("birth_date")),
            license_number=_text(data.get("license_number")),
            is_active=bool(data.get("is_active", True)),
            phone=data.get("phone"),
            email=data.get("email"),
            parent_name=data.get("parent_name"),
            parent_phone=data.get("parent_phone"),
            parent_email=data.get("parent_email"),
        )
        if data.get("id"):
            player.id = data["id"]
        return player


@dataclass
class Permissions:
    """Feature switches granted to a group."""
    team_management: bool = False
    match_management: bool = False
    results_view: bool = False
    statistics_view: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "team_management": self.team_management,
            "match_management": self.match_management,
            "results_view": self.results_view,
            "statistics_view": self.statistics_view,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Permissions":
        if not data:
            return cls()
        return cls(**{k: bool(data.get(k, False)) for k in cls.__dataclass_fields__})


@dataclass
class Group:
    """A permission group users belong to."""
    name: str
    description: str = ""
    icon: str = "Users"
    permissions: Permissions = field(default_factory=Permissions)
    id: str = field(default_factory=generate_id)
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "permissions": self.permissions.to_dict(),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Group":
        group = cls(
            name=data.get("name", ""),
            description=data.get("description") or "",
            icon=data.get("icon") or "Users",
            permissions=Permissions.from_dict(data.get("permissions")),
            created_at=data.get("created_at") or "",
        )
        if data.get("id"):
            group.id = data["id"]
        return group


@dataclass
class User:
    """An application user attached to a group."""
    first_name: str
    last_name: str
    username: str
    password: str
    email: str
    phone: str
    matricola: str
    expiration_date: str
    group_id: str
    status: UserStatus = UserStatus.ACTIVE
    id: str = field(default_factory=generate_id)
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        # The password is never serialized back to clients
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
            "matricola": self.matricola,
            "status": self.status.value,
            "expiration_date": self.expiration_date,
            "group_id": self.group_id,
            "created_at": self.created_at,
        }


@dataclass
class Training:
    """A training session and who attended it."""
    date: str
    time: str = ""
    attendances: Dict[str, bool] = field(default_factory=dict)
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "time": self.time,
            "attendances": dict(self.attendances),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Training":
        training = cls(
            date=data.get("date", ""),
            time=data.get("time") or "",
            attendances={str(k): bool(v) for k, v in (data.get("attendances") or {}).items()},
        )
        if data.get("id"):
            training.id = data["id"]
        return training
