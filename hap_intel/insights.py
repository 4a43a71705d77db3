"""Display metrics derived from a fetched profile. No I/O."""
import math
import re

PRODUCT_URL = "https://www.honei.app/servicios/honei-terminal"

ANGLE_SPEED = "Speed at the counter / reduced waits"
ANGLE_CASH_CONTROL = "Automatic closing and cash control"
ANGLE_TIPS = "Tip increase and payment control"
ANGLE_DEFAULT = "Commission savings and bank reconciliation"

# First match wins
ANGLE_RULES = [
    (re.compile(r"\bcola|\bespera|\bqueue|\bwait"), ANGLE_SPEED),
    (re.compile(r"\bdescuadre|\bcaja|\barqueo|\bcash|\bmismatch"), ANGLE_CASH_CONTROL),
    (re.compile(r"\bpropina|\btip"), ANGLE_TIPS),
]

STEP_LOW = "Do not invest time: prioritize other leads or send a light email."
STEP_MEDIUM = "Send a short email and validate the decision-maker before persisting."
STEP_HIGH = "Prioritize multi-channel contact with a personalized proposal."


def _round(x: float) -> int:
    return math.floor(x + 0.5)


def _fit_score(profile: dict) -> float:
    score = (profile.get("honeiAnalysis") or {}).get("fitScore")
    try:
        score = float(score)
    except (TypeError, ValueError):
        return 0.0
    return score if math.isfinite(score) else 0.0


def volume_boost(estimated_volume: str | None) -> int:
    text = (estimated_volume or "").lower()
    if "alto" in text:
        return 15
    if "medio" in text:
        return 8
    return 0


def sub_scores(profile: dict) -> dict:
    payment_methods = (profile.get("operationalInfo") or {}).get("paymentMethods") or []
    return {
        "volumePotential": min(100, _round(_fit_score(profile) * 0.7 + volume_boost(profile.get("estimatedVolume")))),
        "operationalComplexity": min(100, 50 + 10 * (len(payment_methods) or 1)),
        "painPointLikelihood": min(100, 40 + 10 * len(profile.get("painPoints") or [])),
        "digitalMaturity": min(100, 30 + 12 * len(profile.get("techStack") or [])),
    }


def outreach_angle(profile: dict) -> str:
    text = " ".join(str(p) for p in profile.get("painPoints") or []).lower()
    for pattern, angle in ANGLE_RULES:
        if pattern.search(text):
            return angle
    return ANGLE_DEFAULT


def next_step(fit_score: float) -> str:
    if fit_score < 45:
        return STEP_LOW
    if fit_score < 65:
        return STEP_MEDIUM
    return STEP_HIGH


def email_confidence(bounce_risk: str | None) -> str:
    if bounce_risk == "Bajo":
        return "Alta"
    if bounce_risk == "Medio":
        return "Media"
    return "Baja"


def primary_contact(profile: dict) -> dict | None:
    contacts = profile.get("strategicContacts") or []
    for contact in contacts:
        if contact.get("area") == "Finanzas":
            return contact
    return contacts[0] if contacts else None


def outreach_email(profile: dict, sender_name: str | None = None) -> dict:
    """First-touch email for the primary contact, in Spanish."""
    contact = primary_contact(profile)
    name = (contact or {}).get("name") or ""
    first_name = name.split()[0] if name.split() else "Propiedad"
    suggested = profile.get("suggestedEmails") or []
    to = (profile.get("directContacts") or {}).get("email") or (suggested[0].get("email") if suggested else "") or ""
    sender = sender_name or "el equipo de Honei"
    body = (
        f"Hola {first_name},\n\n"
        f"Soy {sender}, de Honei ({PRODUCT_URL}). He seguido vuestra trayectoria y me gustaría comentaros "
        "cómo estamos ayudando a otros grupos similares a optimizar su operativa de cobro.\n\n"
        "Trabajo con directivos financieros ayudándoles a eliminar descuadres de caja y reducir costes bancarios "
        "mediante la integración total del datáfono con el TPV (Honei Terminal).\n\n"
        "Para vuestra operativa actual, ¿os ayudaría automatizar el cierre de mesas y el enrutamiento inteligente "
        "multibanco para ahorrar en comisiones?\n\n"
        "Normalmente vemos un ahorro de hasta 250€/mes y unas 3 horas diarias de gestión operativa en sala.\n\n"
        "Si te parece interesante, ¿podríamos hablar 10 minutos esta semana?\n\n"
        "Un saludo,"
    )
    return {"to": to, "subject": "Optimización de cobros y TPV - Honei", "body": body}


def cfo_research_prompt(profile: dict) -> str:
    business_name = profile.get("businessName") or ""
    return (
        "Actúa como analista de inteligencia comercial B2B. Necesito identificar al Director/a Financiero/a (CFO) "
        f"de la empresa de hostelería en España: {business_name} (si es un grupo, incluye filiales y marca comercial).\n\n"
        "Devuélveme nombre y apellidos, cargo exacto, empresa/filial, ciudad y periodo (año inicio–fin si aparece).\n\n"
        "Aporta evidencia: incluye 3–6 enlaces y cita textualmente (frase corta) la parte que lo confirma. Prioriza:\n"
        "1. Web corporativa (equipo directivo, notas de prensa, memoria/informe anual).\n"
        "2. LinkedIn (perfil personal + página de empresa).\n"
        "3. BORME / registros mercantiles / comunicados oficiales si aplica.\n\n"
        "Si no hay una confirmación única, propón un top 3 de candidatos (con probabilidad alta/media/baja) y explica "
        "en 1 línea por qué.\n\n"
        "Datos de búsqueda:\n"
        f"Empresa: {business_name}\n"
        f"Ubicación: {profile.get('city') or ''}"
    )


def insights(profile: dict, sender_name: str | None = None) -> dict:
    return {
        "subScores": sub_scores(profile),
        "outreachAngle": outreach_angle(profile),
        "nextStep": next_step(_fit_score(profile)),
        "emailConfidence": [
            {"email": e.get("email"), "confidence": email_confidence(e.get("bounceRisk"))}
            for e in profile.get("suggestedEmails") or []
        ],
        "primaryContact": primary_contact(profile),
        "outreachEmail": outreach_email(profile, sender_name),
        "cfoResearchPrompt": cfo_research_prompt(profile),
    }
