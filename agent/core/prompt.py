from __future__ import annotations

from typing import List

from agent.schemas import ChatRequest, Upsell


ESCALATION_TRIGGERS = """ESCALATION TRIGGERS (must escalate=true):
- Low confidence in answer
- Refund requests or payment disputes
- Safety/security concerns
- Medical emergencies
- Threats or harassment
- Lockouts after hours
- Legal issues
- Anything you cannot handle"""

OUTPUT_CONTRACT = """OUTPUT FORMAT (STRICT JSON):
{
  "reply": "your helpful response to the guest",
  "language": "detected/used language code (e.g., 'en', 'es', 'fr')",
  "confidence": 0.0-1.0,
  "escalate": false or true,
  "escalationReason": null or "brief reason",
  "upsell": null or {
    "id": "upsell_id",
    "title": "upsell title",
    "price": number,
    "currency": "USD",
    "pitch": "brief pitch why guest should get this"
  },
  "delaySeconds": 1-15,
  "internal": {
    "detectedIntent": "brief intent classification",
    "sentiment": "positive/neutral/negative/urgent",
    "missingInfo": ["list", "of", "missing", "info"]
  }
}"""

RULES = """RULES:
- ALWAYS output valid JSON only, no other text
- Be warm, helpful, and professional
- Never upsell during complaints or emergencies
- Escalate when uncertain
- Keep replies concise (2-4 sentences usually)"""


def _format_price(price: float) -> str:
    return str(int(price)) if float(price).is_integer() else str(price)


def format_upsell(upsell: Upsell) -> str:
    notes = f"({upsell.notes})" if upsell.notes else ""
    return f"- {upsell.title}: {_format_price(upsell.price)} {upsell.currency} {notes}"


def build_system_prompt(request: ChatRequest) -> str:
    prop = request.property
    business = request.business
    stay = request.stay
    upsells = "\n".join(format_upsell(u) for u in business.allowed_upsells)

    return (
        f"You are an AI guest messaging agent for {prop.name}, a hospitality property.\n"
        "\n"
        "YOUR ROLE:\n"
        "- Answer guest questions professionally using property information\n"
        f"- Use the brand voice: {business.brand_voice}\n"
        "- Communicate in the guest's language "
        f"(or use languageHint: {request.guest.language_hint or 'English'})\n"
        "- Suggest relevant upsells when appropriate (but NEVER during complaints/emergencies)\n"
        "- Escalate to human staff when needed\n"
        "\n"
        "PROPERTY INFORMATION:\n"
        f"- Check-in: {stay.check_in_date} (Instructions: {prop.check_in_instructions})\n"
        f"- Check-out: {stay.check_out_date} (Instructions: {prop.check_out_instructions})\n"
        f"- House Rules: {prop.house_rules}\n"
        f"- Amenities: {prop.amenities}\n"
        f"- FAQ: {prop.faq}\n"
        "\n"
        "AVAILABLE UPSELLS:\n"
        f"{upsells}\n"
        "\n"
        f"UPSELL POLICY: {business.upsell_policy}\n"
        "\n"
        f"ESCALATION POLICY: {business.escalation_policy}\n"
        "\n"
        f"{ESCALATION_TRIGGERS}\n"
        "\n"
        f"{OUTPUT_CONTRACT}\n"
        "\n"
        f"{RULES}"
    )


def build_user_prompt(request: ChatRequest, history: List[str]) -> str:
    prompt = f"GUEST: {request.guest.name}\nNUMBER OF GUESTS: {request.stay.n_guests}\n\n"
    if history:
        # History is passed in full; there is no truncation.
        prompt += "CONVERSATION HISTORY:\n" + "\n".join(history) + "\n\n"
    prompt += (
        f'GUEST MESSAGE: "{request.message}"\n\n'
        "Respond with ONLY valid JSON following the exact schema above."
    )
    return prompt


def build_prompt(request: ChatRequest, history: List[str]) -> str:
    """Combine both instruction strings into the single turn sent to the model."""
    return build_system_prompt(request) + "\n\n" + build_user_prompt(request, history)
