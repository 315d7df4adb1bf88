# campusnet/infrastructure/database/models/__init__.py
# registra os models no metadata (create_all / migrations)
from campusnet.infrastructure.database.models.user_model import UserModel  # noqa: F401
from campusnet.infrastructure.database.models.chat_model import ChatModel  # noqa: F401
from campusnet.infrastructure.database.models.message_model import MessageModel  # noqa: F401
