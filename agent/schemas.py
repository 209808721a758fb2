from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt


# Request numbers must arrive as JSON numbers; numeric strings are rejected.
JsonNumber = Union[StrictInt, StrictFloat]


class WireModel(BaseModel):
    """Base for models exchanged with the browser client (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class Upsell(WireModel):
    id: str
    title: str
    price: JsonNumber
    currency: str
    notes: str = ""


class Guest(WireModel):
    name: str
    language_hint: Optional[str] = Field(default=None, alias="languageHint")


class Stay(WireModel):
    check_in_date: str = Field(..., alias="checkInDate")
    check_out_date: str = Field(..., alias="checkOutDate")
    n_guests: JsonNumber = Field(..., alias="nGuests")


class Property(WireModel):
    name: str
    timezone: str
    house_rules: str = Field(..., alias="houseRules")
    check_in_instructions: str = Field(..., alias="checkInInstructions")
    check_out_instructions: str = Field(..., alias="checkOutInstructions")
    amenities: str
    faq: str


class Business(WireModel):
    brand_voice: str = Field(..., alias="brandVoice")
    allowed_upsells: List[Upsell] = Field(..., alias="allowedUpsells")
    upsell_policy: str = Field(..., alias="upsellPolicy")
    escalation_policy: str = Field(..., alias="escalationPolicy")


class SessionContext(WireModel):
    guest: Guest
    stay: Stay
    property: Property
    business: Business


class ChatRequest(WireModel):
    session_id: str = Field(..., alias="sessionId", description="Opaque client session id")
    message: str = Field(..., description="Guest's latest message")
    guest: Guest
    stay: Stay
    property: Property
    business: Business

    def context(self) -> SessionContext:
        return SessionContext(
            guest=self.guest,
            stay=self.stay,
            property=self.property,
            business=self.business,
        )


class AgentUpsell(WireModel):
    id: str
    title: str
    price: float
    currency: str
    pitch: str


class AgentInternal(WireModel):
    detected_intent: str = Field(..., alias="detectedIntent")
    sentiment: str
    missing_info: List[str] = Field(default_factory=list, alias="missingInfo")


class AgentResult(WireModel):
    reply: str
    language: str
    confidence: float
    escalate: bool
    escalation_reason: Optional[str] = Field(default=None, alias="escalationReason")
    upsell: Optional[AgentUpsell] = None
    delay_seconds: float = Field(..., alias="delaySeconds")
    internal: AgentInternal


class Turn(WireModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    role: Literal["guest", "agent"]
    text: str
    ts: int = Field(..., description="Epoch milliseconds")


class ChatResponse(WireModel):
    session_id: str = Field(..., alias="sessionId")
    agent: AgentResult
    messages: List[Turn]
