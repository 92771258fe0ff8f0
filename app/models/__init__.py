from app.models.connected_account import ConnectedAccount
from app.models.conversation import Conversation
from app.models.message import Message
from app.models.message_ai_analysis import MessageAIAnalysis
from app.models.team import ConversationTeam, Team

__all__ = [
    "ConnectedAccount",
    "Conversation",
    "ConversationTeam",
    "Message",
    "MessageAIAnalysis",
    "Team",
]
