from app.services.connected_account_service import ConnectedAccountService
from app.services.conversation_service import ConversationService
from app.services.message_ai_analysis_service import MessageAIAnalysisService
from app.services.message_service import MessageService
from app.services.team_service import TeamService

__all__ = [
    "ConnectedAccountService",
    "ConversationService",
    "MessageAIAnalysisService",
    "MessageService",
    "TeamService",
]
