import logging

from reply_helper.schemas import HistoricalMatch, MatchProperties, SuggestedReply

logger = logging.getLogger(__name__)

DEMO_CATEGORY = "Having question or objection"

DEMO_SOURCE = "Previous email to Cameron about product features"

DEMO_JUSTIFICATION = (
    "I maintained the friendly tone and direct approach from previous communications. "
    "I acknowledged the customer's question and offered both self-service and direct "
    "assistance options, which is consistent with the communication style in similar past emails."
)

DEMO_REPLIES = (
    (
        "email1",
        "Hi John, thanks for your question about our product features. We do offer what you're "
        "looking for, and I'd be happy to schedule a demo to show you how it works. Let me know "
        "what time works best for you!",
        0.15,
    ),
    (
        "email2",
        "Hello Sarah, I understand your concern about pricing. Our premium plan does include all "
        "the features you mentioned, and there are no hidden fees. I've attached a detailed "
        "comparison sheet for your reference. Feel free to reach out if you have any other questions!",
        0.25,
    ),
    (
        "email3",
        "Hi Michael, regarding your question about integration capabilities - yes, our platform can "
        "integrate with the software you're currently using. We use standard APIs for most "
        "integrations, and I'm happy to connect you with our technical team to discuss the specific "
        "requirements for your setup.",
        0.35,
    ),
)


def _topic(inbound_email: str) -> str:
    return "your account" if "@" in inbound_email else inbound_email


def generate_fallback(inbound_email: str) -> tuple[SuggestedReply, list[HistoricalMatch]]:
    """Fixed demo reply and matches used when the live service is unavailable."""
    logger.info("Generating demo response (%d chars of input)", len(inbound_email))

    reply = SuggestedReply(
        answer=(
            "Hi there,\n\n"
            f"Thanks for reaching out! I understand you have a question about {_topic(inbound_email)}.\n\n"
            "We definitely can help with that. Based on similar questions we've handled before, "
            "I recommend checking out our FAQ section or I can walk you through the solution directly.\n\n"
            "Let me know if you need any additional information or have other questions!\n\n"
            "Best regards,\nFilip"
        ),
        source=DEMO_SOURCE,
        justification=DEMO_JUSTIFICATION,
    )

    matches = [
        HistoricalMatch(
            id=match_id,
            properties=MatchProperties(my_reply=body, category=DEMO_CATEGORY),
            similarity_distance=distance,
        )
        for match_id, body, distance in DEMO_REPLIES
    ]
    return reply, matches
