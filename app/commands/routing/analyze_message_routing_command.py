"""
Command to route an inbound message to one of the owner's teams.

Asks the LLM which team fits, stores the analysis, and auto-assigns the
conversation when the model is confident enough.
"""

from __future__ import annotations

import logging
import time
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.constants.routing_prompt import RoutingPrompt
from app.exceptions import RoutingTargetNotFoundError
from app.models.conversation import Conversation
from app.models.message import Message
from app.models.team import Team
from app.schemas.routing import RoutingResult
from app.services.conversation_service import ConversationService
from app.services.message_ai_analysis_service import MessageAIAnalysisService
from app.services.message_service import MessageService
from app.services.team_service import TeamService
from app.workers.llm import RoutingLLM, build_routing_llm_from_env, parse_routing_response

logger = logging.getLogger(__name__)

ROUTING_CONFIDENCE_THRESHOLD = 0.6


def format_teams(teams: list[Team]) -> str:
    return "\n".join(
        f"- {team.name}: {team.description or 'No description'} (ID: {team.id})"
        for team in teams
    )


def build_routing_prompt(
    teams: list[Team], conversation: Conversation, message: Message
) -> str:
    sender = (
        message.sender_name
        or conversation.participant_name
        or message.sender_username
        or conversation.participant_username
        or "Unknown"
    )
    return RoutingPrompt.USER_TEMPLATE.format(
        teams=format_teams(teams),
        sender=sender,
        platform=conversation.platform,
        content=message.text_content or "",
    )


class AnalyzeMessageRoutingCommand:
    def __init__(
        self,
        db: Session,
        llm: Optional[RoutingLLM] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self._llm = llm
        self.conversation_service = ConversationService(db)
        self.message_service = MessageService(db)
        self.team_service = TeamService(db)
        self.analysis_service = MessageAIAnalysisService(db)

    def _get_llm(self) -> RoutingLLM:
        if self._llm is None:
            self._llm = build_routing_llm_from_env(self.settings)
        return self._llm

    async def execute(self, conversation_id: UUID, message_id: UUID) -> RoutingResult:
        """
        Analyze one message.

        Raises:
            RoutingTargetNotFoundError: message or conversation does not exist.
            RoutingError: the LLM call failed or its answer was not valid JSON.
        """
        message = self.message_service.get_message(message_id)
        if message is None or message.conversation_id != conversation_id:
            raise RoutingTargetNotFoundError("Message not found")
        conversation = self.conversation_service.get_conversation(conversation_id)
        if conversation is None:
            raise RoutingTargetNotFoundError("Conversation not found")

        teams = self.team_service.get_teams(conversation.user_id)
        if not teams:
            logger.info("No teams for user %s; routing skipped", conversation.user_id)
            return RoutingResult(success=True, routed=False)

        prompt = build_routing_prompt(teams, conversation, message)
        started = time.monotonic()
        reply = await self._get_llm().complete(prompt)
        processing_time_ms = int((time.monotonic() - started) * 1000)
        decision = parse_routing_response(reply.text)

        teams_by_id = {str(team.id): team for team in teams}
        team_id = (decision.team_id or "").lower() or None
        if team_id is not None and team_id not in teams_by_id:
            logger.warning("LLM suggested unknown team %s; ignoring", team_id)
            team_id = None

        self.analysis_service.create_analysis(
            message_id=message.id,
            conversation_id=conversation.id,
            analyzed_content=message.text_content,
            detected_intent=decision.detected_intent,
            detected_language=decision.detected_language,
            suggested_team_ids=[team_id] if team_id else [],
            confidence_scores={team_id: decision.confidence} if team_id else {},
            ai_reasoning=decision.reasoning,
            model_used=reply.model_name,
            tokens_used=reply.tokens_used,
            processing_time_ms=processing_time_ms,
        )

        if team_id is None or decision.confidence < ROUTING_CONFIDENCE_THRESHOLD:
            logger.info(
                "Message %s not routed (team=%s, confidence=%.2f)",
                message.id,
                team_id,
                decision.confidence,
            )
            return RoutingResult(
                success=True,
                routed=False,
                team_id=UUID(team_id) if team_id else None,
                confidence=decision.confidence,
            )

        assignment = self.team_service.assign_auto(
            conversation_id=conversation.id,
            team_id=teams_by_id[team_id].id,
            confidence=decision.confidence,
            reasoning=decision.reasoning,
        )
        if assignment is None:
            logger.info(
                "Conversation %s already manually assigned to team %s; keeping it",
                conversation.id,
                team_id,
            )
            return RoutingResult(
                success=True,
                routed=False,
                team_id=UUID(team_id),
                confidence=decision.confidence,
            )
        logger.info(
            "Conversation %s routed to team %s (confidence=%.2f)",
            conversation.id,
            team_id,
            decision.confidence,
        )
        return RoutingResult(
            success=True,
            routed=True,
            team_id=UUID(team_id),
            confidence=decision.confidence,
        )
