"""
Support chat related data models
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any


class SessionStatus(Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    ESCALATED = "escalated"


class SenderType(Enum):
    USER = "user"
    BOT = "bot"
    AGENT = "agent"


class MessageType(Enum):
    TEXT = "text"
    IMAGE = "image"
    QUICK_REPLY = "quick_reply"
    CARD = "card"
    ACTION = "action"


@dataclass
class Intent:
    """Keyword intent definition"""
    name: str
    keywords: List[str]
    confidence: float


@dataclass
class QuickReply:
    label: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass
class BotResponse:
    """Reply produced for one user message"""
    content: str
    message_type: MessageType = MessageType.TEXT
    metadata: Dict[str, Any] = field(default_factory=dict)
    intent: Optional[str] = None
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "content": self.content,
            "message_type": self.message_type.value,
            "metadata": self.metadata,
            "intent": self.intent,
            "confidence": self.confidence
        }


@dataclass
class FAQEntry:
    """FAQ entry data model"""
    id: str
    category: str
    question: str
    answer: str
    keywords: List[str] = field(default_factory=list)
    helpful_count: int = 0
    not_helpful_count: int = 0
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "category": self.category,
            "question": self.question,
            "answer": self.answer,
            "keywords": list(self.keywords),
            "helpful_count": self.helpful_count,
            "not_helpful_count": self.not_helpful_count
        }


@dataclass
class ChatSession:
    """Chat session data model"""
    id: str
    user_id: Optional[str]
    session_type: str
    status: SessionStatus
    created_at: str
    escalated_to: Optional[str] = None
    order_id: Optional[str] = None
    satisfaction_rating: Optional[int] = None
    resolution_time_seconds: Optional[int] = None
    closed_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "session_type": self.session_type,
            "status": self.status.value,
            "escalated_to": self.escalated_to,
            "order_id": self.order_id,
            "satisfaction_rating": self.satisfaction_rating,
            "resolution_time_seconds": self.resolution_time_seconds,
            "created_at": self.created_at,
            "closed_at": self.closed_at
        }


@dataclass
class ChatMessage:
    """Chat message data model"""
    id: str
    session_id: str
    sender_type: SenderType
    content: str
    message_type: MessageType
    created_at: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    intent_detected: Optional[str] = None
    confidence_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "session_id": self.session_id,
            "sender_type": self.sender_type.value,
            "content": self.content,
            "message_type": self.message_type.value,
            "metadata": self.metadata,
            "intent_detected": self.intent_detected,
            "confidence_score": self.confidence_score,
            "created_at": self.created_at
        }
