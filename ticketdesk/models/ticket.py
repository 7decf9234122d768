"""
Ticket models
"""
import logging
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum

from .status import DisplayStatus, is_terminal

logger = logging.getLogger(__name__)


class TicketPriority(str, Enum):
    """Ticket priority levels (the support API stores them lower-case)"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: Any) -> Optional["TicketPriority"]:
        """Case-insensitive lookup; blank values mean 'unset'."""
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if not text:
            return None
        return cls(text)

    @classmethod
    def from_record(cls, value: Any) -> Optional["TicketPriority"]:
        """Lenient parse for API records: an unknown priority reads as unset."""
        try:
            return cls.parse(value)
        except ValueError:
            logger.warning(f"Unknown ticket priority {value!r}, treating it as unset")
            return None


class TicketCategory(str, Enum):
    """Categories a customer can file a ticket under"""
    BILLING = "billing"
    TECHNICAL = "technical"
    ACCOUNT = "account"
    SERVICE = "service"
    OTHER = "other"


def _as_str_id(value: Any) -> Any:
    if isinstance(value, int):
        return str(value)
    return value


class Technician(BaseModel):
    """Technician as returned by the directory service"""
    id: str = Field(..., alias="_id")
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return _as_str_id(value)

    class Config:
        populate_by_name = True


class Note(BaseModel):
    """Append-only comment on a ticket"""
    content: str
    created_by: Optional[str] = Field(None, alias="createdBy")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True

    @field_validator("created_by", mode="before")
    @classmethod
    def _flatten_author(cls, value: Any) -> Any:
        # The API populates the author as a user object on some routes.
        if isinstance(value, dict):
            return value.get("name") or value.get("email") or value.get("_id")
        return value


class Ticket(BaseModel):
    """Ticket as seen by the desk; `status` holds the display label"""
    id: str = Field(..., alias="_id")
    title: str = ""
    description: str = ""
    category: str = ""
    attachments: List[Any] = Field(default_factory=list)
    priority: Optional[TicketPriority] = None
    status: str = DisplayStatus.PENDING.value
    assigned_to: Optional[Technician] = Field(None, alias="assignedTo")
    assigned: bool = False
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return _as_str_id(value)

    class Config:
        populate_by_name = True

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, value: Any) -> Optional[TicketPriority]:
        return TicketPriority.from_record(value)

    @field_validator("attachments", mode="before")
    @classmethod
    def _default_attachments(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _expand_assignee(cls, value: Any) -> Any:
        # Unpopulated references arrive as a bare technician id.
        if value in (None, ""):
            return None
        if isinstance(value, (str, int)):
            return {"_id": str(value)}
        return value

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def priority_label(self) -> str:
        return self.priority.label if self.priority else ""


class TechnicianTicket(Ticket):
    """Ticket with the fields returned on technician-scoped routes"""
    customer_name: Optional[str] = Field(None, alias="customerName")
    customer_email: Optional[str] = Field(None, alias="customerEmail")
    location: Optional[str] = None
    estimated_time: Optional[str] = Field(None, alias="estimatedTime")
    resolution: Optional[str] = None
    completed_date: Optional[str] = Field(None, alias="completedDate")
    notes: List[Note] = Field(default_factory=list)

    @field_validator("notes", mode="before")
    @classmethod
    def _default_notes(cls, value: Any) -> Any:
        return [] if value is None else value


class AssignTicketData(BaseModel):
    """Dispatcher assignment command"""
    ticket_id: str = Field(..., min_length=1)
    technician_id: str = Field(..., min_length=1)
    priority: TicketPriority
    notes: Optional[str] = None

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, value: Any) -> Optional[TicketPriority]:
        return TicketPriority.parse(value)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "technicianId": self.technician_id,
            "priority": self.priority.value,
        }
        if self.notes:
            payload["notes"] = self.notes
        return payload


class TicketCreate(BaseModel):
    """Customer ticket intake"""
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: TicketCategory = TicketCategory.OTHER
    priority: TicketPriority = TicketPriority.MEDIUM
    attachments: List[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, value: Any) -> Optional[TicketPriority]:
        return TicketPriority.parse(value)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "priority": self.priority.value,
            "attachments": list(self.attachments),
        }
