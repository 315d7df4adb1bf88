# campusnet/api/routes/_services.py
from sqlalchemy.orm import Session

from campusnet.core.container import current_container
from campusnet.repositories.chat_repository import ChatRepository
from campusnet.repositories.message_repository import MessageRepository
from campusnet.repositories.user_repository import UserRepository
from campusnet.services.chat_service import ChatService
from campusnet.services.message_service import MessageService


def chat_service(session: Session) -> ChatService:
    return ChatService(chat_repo=ChatRepository(session), user_repo=UserRepository(session))


def message_service(session: Session) -> MessageService:
    chat_repo = ChatRepository(session)
    return MessageService(
        chat_service=ChatService(chat_repo=chat_repo, user_repo=UserRepository(session)),
        chat_repo=chat_repo,
        msg_repo=MessageRepository(session),
        notifier=current_container().message_notifier,
    )
