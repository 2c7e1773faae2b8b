"""
Chatbot service - keyword intent matching with FAQ fallback
"""
import re
import uuid
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Any, Optional, Tuple

from models.chat import (
    BotResponse, ChatMessage, ChatSession, FAQEntry, Intent, MessageType,
    QuickReply, SenderType, SessionStatus
)
from database.repository import ChatRepository, FAQRepository

logger = logging.getLogger(__name__)

INTENTS = [
    Intent("track_order", ["track", "where", "order", "status", "delivery"], 0.9),
    Intent("cancel_order", ["cancel", "stop", "abort"], 0.85),
    Intent("refund", ["refund", "money back", "return"], 0.85),
    Intent("wrong_order", ["wrong", "incorrect", "mistake", "not what"], 0.8),
    Intent("late_delivery", ["late", "taking long", "delay", "slow"], 0.8),
    Intent("payment", ["pay", "payment", "card", "charge"], 0.85),
    Intent("promo_code", ["promo", "discount", "coupon", "voucher", "code"], 0.9),
    Intent("account", ["account", "password", "login", "sign"], 0.85),
    Intent("greeting", ["hi", "hello", "hey", "good morning", "good afternoon"], 0.95),
    Intent("thanks", ["thank", "thanks", "cheers", "appreciated"], 0.95),
    Intent("human_agent", ["human", "agent", "person", "real", "talk to someone"], 0.9),
]

# 이 점수를 넘어야 인텐트로 인정, 아니면 FAQ 검색
MIN_INTENT_CONFIDENCE = 0.0
MIN_FAQ_SCORE = 2
FAQ_CONFIDENCE = 0.7

FAQ_CATEGORIES = [
    {"id": "orders", "label": "Orders & Delivery"},
    {"id": "payment", "label": "Payment & Pricing"},
    {"id": "account", "label": "Account & Settings"},
    {"id": "support", "label": "Help & Support"},
]


def _quick_replies(*pairs: Tuple[str, str]) -> List[Dict[str, str]]:
    return [QuickReply(label, value).to_dict() for label, value in pairs]


ISSUE_REPLY = BotResponse(
    content=(
        "I'm really sorry about that! Please report this issue through the app by going to "
        "your order and selecting 'Report Issue'. Include photos if applicable. Our team will "
        "review and process a refund or credit if applicable."
    ),
    message_type=MessageType.QUICK_REPLY,
    metadata={"quick_replies": _quick_replies(("Report issue now", "report_issue"),
                                              ("Talk to agent", "human_agent"))}
)

RESPONSES: Dict[str, BotResponse] = {
    "greeting": BotResponse(
        content="Hello! Welcome to EatLocal support. How can I help you today?",
        message_type=MessageType.QUICK_REPLY,
        metadata={"quick_replies": _quick_replies(("Track my order", "track_order"),
                                                  ("Report an issue", "report_issue"),
                                                  ("Payment help", "payment"),
                                                  ("Other", "other"))}
    ),
    "track_order": BotResponse(
        content=(
            "I can help you track your order! Please check the Orders tab in the app where "
            "you'll see real-time updates including driver location. Would you like me to show "
            "you your active orders?"
        ),
        message_type=MessageType.QUICK_REPLY,
        metadata={
            "quick_replies": _quick_replies(("View active orders", "view_orders"),
                                            ("Order not showing", "order_missing")),
            "action": "navigate",
            "route": "/orders"
        }
    ),
    "cancel_order": BotResponse(
        content=(
            "I understand you'd like to cancel your order. You can cancel within 2 minutes of "
            "placing it for a full refund. After the restaurant starts preparing, cancellation "
            "may incur a partial charge. Would you like to proceed?"
        ),
        message_type=MessageType.QUICK_REPLY,
        metadata={"quick_replies": _quick_replies(("Yes, cancel order", "confirm_cancel"),
                                                  ("No, keep order", "keep_order"))}
    ),
    "refund": BotResponse(
        content=(
            "I'm sorry you're having an issue. For refunds, please go to your order in the "
            "Orders tab and select 'Report Issue'. Our team reviews all requests within 24 hours "
            "and will process eligible refunds to your original payment method."
        )
    ),
    "wrong_order": ISSUE_REPLY,
    "late_delivery": ISSUE_REPLY,
    "payment": BotResponse(
        content=(
            "For payment questions: We accept all major credit/debit cards and EFT via PayFast. "
            "If your payment failed, please ensure your card details are correct and has "
            "sufficient funds. Need more specific help?"
        ),
        message_type=MessageType.QUICK_REPLY,
        metadata={"quick_replies": _quick_replies(("Payment failed", "payment_failed"),
                                                  ("Add payment method", "add_payment"),
                                                  ("Refund status", "refund"))}
    ),
    "promo_code": BotResponse(
        content=(
            "To apply a promo code: Add items to your cart, go to checkout, and look for the "
            "'Add Promo Code' field. Enter your code and the discount will apply automatically. "
            "Note: Some codes have minimum order requirements or specific restaurant restrictions."
        )
    ),
    "account": BotResponse(
        content=(
            "For account help: Go to Profile > Settings where you can update your details, "
            "change password, manage addresses, and adjust notification preferences. For "
            "password reset, use the 'Forgot Password' link on the login page."
        )
    ),
    "human_agent": BotResponse(
        content=(
            "I'll connect you with a human agent. Our support team is available Mon-Sun, "
            "8am-10pm. You can also email support@eatlocal.co.za or call 0800-EAT-LOCAL for "
            "immediate assistance."
        ),
        metadata={"escalate": True}
    ),
    "thanks": BotResponse(
        content="You're welcome! Is there anything else I can help you with?",
        message_type=MessageType.QUICK_REPLY,
        metadata={"quick_replies": _quick_replies(("No, all done", "close"),
                                                  ("Yes, another question", "continue"))}
    ),
}

FALLBACK_REPLY = BotResponse(
    content=(
        "I'm not quite sure I understand. Could you please rephrase that, or select one of "
        "the options below?"
    ),
    message_type=MessageType.QUICK_REPLY,
    metadata={"quick_replies": _quick_replies(("Track order", "track_order"),
                                              ("Payment issue", "payment"),
                                              ("Report problem", "report_issue"),
                                              ("Talk to human", "human_agent"))}
)


def detect_intent(message: str, intents: List[Intent] = INTENTS) -> Tuple[Optional[str], float]:
    # 키워드 포함 비율 * 인텐트 가중치, 최고 점수 인텐트 선택
    lower_message = message.lower()
    detected_intent = None
    max_confidence = MIN_INTENT_CONFIDENCE

    for intent in intents:
        matches = sum(1 for keyword in intent.keywords if keyword in lower_message)
        if matches == 0:
            continue
        adjusted = intent.confidence * (matches / len(intent.keywords))
        if adjusted > max_confidence:
            max_confidence = adjusted
            detected_intent = intent.name

    return detected_intent, (max_confidence if detected_intent else 0.0)


def search_faq(query: str, entries: List[FAQEntry]) -> Optional[FAQEntry]:
    # 키워드 포함 +2점, 질문 단어 일치 +1점
    lower_query = query.lower()
    words = re.split(r"\s+", lower_query.strip())

    best_entry = None
    best_score = 0

    for entry in entries:
        score = 0
        for keyword in entry.keywords:
            if keyword.lower() in lower_query:
                score += 2

        question_words = re.split(r"\s+", entry.question.lower().strip())
        for word in words:
            if word in question_words:
                score += 1

        if score > best_score:
            best_entry = entry
            best_score = score

    return best_entry if best_entry and best_score >= MIN_FAQ_SCORE else None


class ChatbotService:
    # 고객지원 챗봇 비즈니스 로직을 처리하는 서비스 클래스

    def __init__(self, chat_repository: ChatRepository, faq_repository: FAQRepository,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.chat_repo = chat_repository
        self.faq_repo = faq_repository
        self.clock = clock

    def build_response(self, message: str) -> BotResponse:
        # 메시지에 대한 봇 응답 생성 (저장하지 않음)
        intent, confidence = detect_intent(message)

        if intent:
            template = RESPONSES[intent]
            return BotResponse(
                content=template.content,
                message_type=template.message_type,
                metadata=dict(template.metadata),
                intent=intent,
                confidence=confidence
            )

        entry = search_faq(message, self.faq_repo.list_active())
        if entry:
            return BotResponse(content=entry.answer, intent="faq", confidence=FAQ_CONFIDENCE,
                               metadata={"faq_id": entry.id})

        return BotResponse(
            content=FALLBACK_REPLY.content,
            message_type=FALLBACK_REPLY.message_type,
            metadata=dict(FALLBACK_REPLY.metadata)
        )

    def get_or_create_session(self, user_id: Optional[str]) -> Optional[ChatSession]:
        # 활성 세션 조회, 없으면 새로 생성
        if not user_id:
            return None

        existing = self.chat_repo.get_active_session(user_id)
        if existing:
            return existing

        session = ChatSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            session_type="support",
            status=SessionStatus.ACTIVE,
            created_at=self.clock().isoformat()
        )
        if not self.chat_repo.create_session(session):
            return None
        return session

    def get_messages(self, session_id: Optional[str]) -> List[ChatMessage]:
        if not session_id:
            return []
        return self.chat_repo.get_messages(session_id)

    def _store(self, session_id: str, sender: SenderType, response: BotResponse) -> ChatMessage:
        message = ChatMessage(
            id=str(uuid.uuid4()),
            session_id=session_id,
            sender_type=sender,
            content=response.content,
            message_type=response.message_type,
            created_at=self.clock().isoformat(),
            metadata=response.metadata,
            intent_detected=response.intent if sender == SenderType.BOT else None,
            confidence_score=response.confidence if sender == SenderType.BOT else None
        )
        if not self.chat_repo.add_message(message):
            raise RuntimeError(f"Failed to store {sender.value} message")
        return message

    def send_message(self, session_id: str, content: str,
                     message_type: MessageType = MessageType.TEXT,
                     metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        # 사용자 메시지 저장 → 봇 응답 생성 → 봇 메시지 저장
        try:
            user_message = self._store(
                session_id, SenderType.USER,
                BotResponse(content=content, message_type=message_type, metadata=metadata or {})
            )

            response = self.build_response(content)
            if response.intent == "human_agent":
                self.chat_repo.update_session(session_id, status=SessionStatus.ESCALATED.value)
                logger.info("Chat session %s escalated to a human agent", session_id)

            bot_message = self._store(session_id, SenderType.BOT, response)

            return {
                "success": True,
                "user_message": user_message.to_dict(),
                "bot_message": bot_message.to_dict()
            }

        except Exception as e:
            logger.exception("Failed to process chat message for %s", session_id)
            return {"success": False, "error": str(e)}

    def close_session(self, session_id: str, rating: Optional[int] = None) -> Dict[str, Any]:
        # 세션 종료 (만족도, 해결 시간 기록)
        session = self.chat_repo.get_session(session_id)
        if not session:
            return {"success": False, "error": "Chat session not found"}

        now = self.clock()
        resolution_time = None
        try:
            started = datetime.fromisoformat(session.created_at)
            resolution_time = round((now - started).total_seconds())
        except (TypeError, ValueError):
            logger.warning("Chat session %s has an unreadable created_at", session_id)

        updated = self.chat_repo.update_session(
            session_id,
            status=SessionStatus.CLOSED.value,
            satisfaction_rating=rating,
            resolution_time_seconds=resolution_time,
            closed_at=now.isoformat()
        )
        if not updated:
            return {"success": False, "error": "Failed to close chat session"}
        return {"success": True, "resolution_time_seconds": resolution_time}

    def get_faq(self, category: Optional[str] = None) -> List[FAQEntry]:
        return self.faq_repo.list_active(category)

    def rate_faq(self, faq_id: str, helpful: bool) -> Dict[str, Any]:
        if not self.faq_repo.increment_counter(faq_id, helpful):
            return {"success": False, "error": "FAQ entry not found"}
        return {"success": True}
