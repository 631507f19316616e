"""
Classifier prompt construction.
"""

from condo_messaging.contracts.payloads import Language, MaintenanceCategory, ResidentRole
from condo_messaging.knowledge.lookup import KnowledgeSnippet

MAX_KNOWLEDGE_SNIPPETS = 5

_INTENTS = """\
   - maintenance_request (repairs, issues in the unit or common areas)
   - status_inquiry (asking about the status of their own maintenance requests)
   - general_question (rules, amenities, hours, etc.)
   - noise_complaint
   - visitor_access (guest parking, entrance codes)
   - hoa_fee_question
   - amenity_reservation (pool, gym, party room)
   - document_request (bylaws, financial statements)
   - emergency (fire, flood, security threat)
   - other"""

_CATEGORY_HINTS = {
    MaintenanceCategory.PLUMBER: "water leaks, pipes, drains, toilets, sinks",
    MaintenanceCategory.ELECTRICIAN: "electrical issues, outlets, breakers, lights",
    MaintenanceCategory.HANDYMAN: "general repairs, doors, windows, minor fixes",
    MaintenanceCategory.AC_TECHNICIAN: "air conditioning, heating, HVAC",
    MaintenanceCategory.WASHER_DRYER_TECHNICIAN: "washing machines, dryers, laundry appliances",
    MaintenanceCategory.PAINTER: "painting, wall repairs",
    MaintenanceCategory.LOCKSMITH: "locks, keys",
    MaintenanceCategory.PEST_CONTROL: "insects, rodents, pests",
    MaintenanceCategory.CLEANING: "deep cleaning, move-out cleaning",
    MaintenanceCategory.SECURITY: "security systems, cameras",
    MaintenanceCategory.LANDSCAPING: "gardens, plants, outdoor maintenance",
    MaintenanceCategory.ELEVATOR: "elevator issues",
    MaintenanceCategory.POOL_MAINTENANCE: "pool, hot tub",
    MaintenanceCategory.OTHER: "none of the above",
}

_LANGUAGE_NAMES = {Language.ES: "Spanish", Language.EN: "English"}


def _knowledge_section(snippets: list[KnowledgeSnippet]) -> str:
    snippets = snippets[:MAX_KNOWLEDGE_SNIPPETS]
    if not snippets:
        return ""
    lines = [f"BUILDING KNOWLEDGE BASE ({len(snippets)} relevant entries):"]
    for idx, snippet in enumerate(snippets, start=1):
        lines.append(f"{idx}. Q: {snippet.question}")
        lines.append(f"   A: {snippet.answer}")
        lines.append(f"   Category: {snippet.category}")
    lines.append(
        "Only use entries that are DIRECTLY relevant to the resident's message."
    )
    return "\n".join(lines)


def build_classification_prompt(
    message_text: str,
    sender_role: ResidentRole,
    language: Language,
    tenant_name: str,
    knowledge: list[KnowledgeSnippet] | None = None,
) -> str:
    """Build the single-turn instruction asking for a JSON-only classification."""
    categories = "\n".join(
        f'     * "{category.value}" - {hint}' for category, hint in _CATEGORY_HINTS.items()
    )
    language_name = _LANGUAGE_NAMES[language]

    return f"""You are the assistant of a condominium management service.

CONTEXT:
- Resident type: {sender_role.value}
- Language: {language.value}
- Building: {tenant_name or "N/A"}

{_knowledge_section(knowledge or [])}

MESSAGE FROM RESIDENT:
\"\"\"{message_text}\"\"\"

TASK: Analyze the message and answer with a single JSON object with exactly these fields:

1. "intent": one of
{_INTENTS}

2. "priority": low | medium | high | emergency
   - low/medium = general questions, questions answered by the knowledge base
   - high = maintenance issues, urgent requests
   - emergency = fire, flood, security threats

3. "routeTo": who besides the administration must see this message
   - "admin" = only the building administration
   - "owner" = forward to the unit owner (when the sender is the renter)
   - "renter" = forward to the renter (when the sender is the owner)
   - "both" = both owner and renter should be notified

4. "suggestedResponse": a reply in {language_name}, professional, warm and concise (2-3 sentences).
   - If the knowledge base answers the question, answer it directly with that information.
   - For maintenance requests, acknowledge and say the administration will review it.
   - Otherwise say the administration will follow up within 24 hours.

5. "requiresHumanReview": true or false
   - false = questions answered by the knowledge base, simple general questions
   - true = maintenance requests, emergencies, complaints, anything needing the administration

6. "extractedData": object with relevant details (location, urgency, etc.)
   - For maintenance requests "maintenanceCategory" must be one of:
{categories}

RESPONSE FORMAT: JSON only, no markdown, no commentary. Example:
{{"intent": "maintenance_request", "priority": "high", "routeTo": "admin", "suggestedResponse": "...", "requiresHumanReview": true, "extractedData": {{"maintenanceCategory": "plumber", "location": "kitchen"}}}}
"""
