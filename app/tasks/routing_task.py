"""Celery task for AI team routing of inbound messages."""

from __future__ import annotations

import asyncio
from typing import Optional
from uuid import UUID

from app.commands.routing.analyze_message_routing_command import (
    AnalyzeMessageRoutingCommand,
)
from app.infra.celery_app import celery_app
from app.infra.logging_config import get_logger
from app.utils.db.db_session_helper import db_session

logger = get_logger("routing_task")


@celery_app.task(name="app.tasks.routing_task.analyze_message_routing_task")
def analyze_message_routing_task(
    conversation_id_str: str, message_id_str: str
) -> Optional[dict]:
    """
    Route one message. Failures are logged and re-raised for the worker; they
    never reach the webhook that stored the message.
    """
    try:
        conversation_id = UUID(conversation_id_str)
        message_id = UUID(message_id_str)
    except ValueError:
        logger.warning(
            "Invalid ids for routing: conversation=%s message=%s",
            conversation_id_str,
            message_id_str,
        )
        return None

    with db_session() as db:
        command = AnalyzeMessageRoutingCommand(db)
        try:
            result = asyncio.run(command.execute(conversation_id, message_id))
        except Exception:
            logger.exception("Routing failed for message %s", message_id_str)
            raise

    return result.model_dump(mode="json")
