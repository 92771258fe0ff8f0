class RoutingPrompt:
    """Prompts for the team routing analyzer."""

    SYSTEM = (
        "You analyze incoming customer messages and route them to the right team. "
        "Reply ONLY with valid JSON, without any additional text."
    )

    USER_TEMPLATE = """Analyze the following message and decide which team should handle it.

AVAILABLE TEAMS:
{teams}

MESSAGE:
From: {sender}
Platform: {platform}
Content: "{content}"

Reply ONLY with a JSON object in exactly this format:
{{
  "team_id": "team-uuid" or null if no team matches,
  "confidence": 0.85 (score between 0 and 1),
  "reasoning": "Short explanation of why this team",
  "detected_intent": "recruiting" or "support" or "sales" etc.,
  "detected_language": "fr" or "en" etc.
}}

IMPORTANT: Do not include any text before or after the JSON."""
