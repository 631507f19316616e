"""
Localized Message Templates

Every resident- or admin-facing string the pipeline sends, in Spanish and
English. Tables are keyed by Language; callers resolve stored
preferences with Language.coerce, which defaults to Spanish.
"""

from condo_messaging.contracts.payloads import Channel, Language, Priority, RouteTo

UNKNOWN_SENDER = {
    Language.ES: (
        "Hola! No reconocemos tu número en nuestro sistema. "
        "Por favor contacta a la administración de {building_name}."
    ),
    Language.EN: (
        "Hello! We don't recognize your number in our system. "
        "Please contact the administration of {building_name}."
    ),
}

# Forward headers keyed by (route_to, language)
FORWARD_HEADERS = {
    (RouteTo.OWNER, Language.ES): "Mensaje de inquilino",
    (RouteTo.OWNER, Language.EN): "Message from your tenant",
    (RouteTo.RENTER, Language.ES): "Mensaje del propietario",
    (RouteTo.RENTER, Language.EN): "Message from the unit owner",
    (RouteTo.BOTH, Language.ES): "Mensaje importante",
    (RouteTo.BOTH, Language.EN): "Important message",
}

FORWARD_FOOTERS = {
    Language.ES: "_Este mensaje fue enviado por {sender_name}_",
    Language.EN: "_This message was sent by {sender_name}_",
}

UNIT_LABEL = {Language.ES: "Unidad", Language.EN: "Unit"}

STATUS_NONE = {
    Language.ES: "No tienes solicitudes de mantenimiento activas en este momento.",
    Language.EN: "You have no active maintenance requests at the moment.",
}

STATUS_HEADER = {
    Language.ES: "Tienes {total} solicitud(es) de mantenimiento activa(s). Mostrando {shown}:",
    Language.EN: "You have {total} active maintenance request(s). Showing {shown}:",
}

STATUS_FOOTER = {
    Language.ES: "Para más detalles, contacta a la administración.",
    Language.EN: "For more details, please contact the administration.",
}

STATUS_LABELS = {
    Language.ES: {"open": "Abierta", "in_progress": "En progreso"},
    Language.EN: {"open": "Open", "in_progress": "In progress"},
}

PRIORITY_LABELS = {
    Language.ES: {"low": "baja", "medium": "media", "high": "alta", "emergency": "emergencia"},
    Language.EN: {"low": "low", "medium": "medium", "high": "high", "emergency": "emergency"},
}

NOTIFICATION_REVIEW_TITLE = "Mensaje requiere revisión ({priority})"
NOTIFICATION_NEW_TITLE = "Nuevo Mensaje ({channel})"
NOTIFICATION_ESCALATION_TITLE = "Alerta {priority}: {intent}"

ADMIN_ALERT_SUBJECT = {
    Language.ES: "[{building_name}] Alerta {priority}: mensaje de la unidad {unit}",
    Language.EN: "[{building_name}] {priority} alert: message from unit {unit}",
}

ADMIN_ALERT_WHATSAPP = {
    Language.ES: (
        "🚨 *Alerta {priority} - {building_name}*\n\n"
        "Unidad {unit} ({sender_name}):\n{message}\n\n"
        "Revisar: {link}"
    ),
    Language.EN: (
        "🚨 *{priority} alert - {building_name}*\n\n"
        "Unit {unit} ({sender_name}):\n{message}\n\n"
        "Review: {link}"
    ),
}

ADMIN_ALERT_HTML = {
    Language.ES: (
        "<h2>Alerta {priority}</h2>"
        "<p>Hola {admin_name},</p>"
        "<p><strong>Edificio:</strong> {building_name}<br>"
        "<strong>Unidad:</strong> {unit}<br>"
        "<strong>Residente:</strong> {sender_name}<br>"
        "<strong>Tipo:</strong> {intent}</p>"
        "<blockquote>{message}</blockquote>"
        '<p><a href="{link}">Ver conversación</a></p>'
    ),
    Language.EN: (
        "<h2>{priority} alert</h2>"
        "<p>Hello {admin_name},</p>"
        "<p><strong>Building:</strong> {building_name}<br>"
        "<strong>Unit:</strong> {unit}<br>"
        "<strong>Resident:</strong> {sender_name}<br>"
        "<strong>Type:</strong> {intent}</p>"
        "<blockquote>{message}</blockquote>"
        '<p><a href="{link}">View conversation</a></p>'
    ),
}


def unknown_sender_notice(language: Language, building_name: str) -> str:
    return UNKNOWN_SENDER[language].format(building_name=building_name)


def forward_message(
    route_to: RouteTo,
    language: Language,
    unit_number: str,
    message_text: str,
    sender_name: str,
) -> str:
    header = FORWARD_HEADERS[(route_to, language)]
    footer = FORWARD_FOOTERS[language].format(sender_name=sender_name)
    return f"📨 *{header} - {UNIT_LABEL[language]} {unit_number}*\n\n{message_text}\n\n{footer}"


def notification_title(priority: Priority, requires_human_review: bool, channel: Channel) -> str:
    if requires_human_review:
        return NOTIFICATION_REVIEW_TITLE.format(priority=priority.value)
    return NOTIFICATION_NEW_TITLE.format(channel=channel.value.upper())
