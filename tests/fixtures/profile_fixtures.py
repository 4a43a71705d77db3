"""
Shared fixtures for profile tests.

Sample model output, backend responses and helpers for building httpx
clients that answer from memory.
"""
import json
from typing import Callable, List, Optional

import httpx


SAMPLE_PROFILE = {
    "businessName": "Bar Uno",
    "city": "Madrid",
    "fullAddress": "Calle Mayor 1, 28013 Madrid",
    "owners": [{"firstName": "Lucía", "lastName": "García"}],
    "strategicContacts": [
        {
            "name": "Pedro Ruiz",
            "role": "Gerente",
            "area": "Operaciones",
            "relevance": "Gestiona la sala y el TPV",
            "validity": "2024",
            "confidence": "Medio",
            "source": "linkedin.com",
        },
        {
            "name": "Marta López",
            "role": "Directora Financiera",
            "area": "Finanzas",
            "relevance": "Decide proveedores de pago",
            "validity": "2025",
            "confidence": "Alto",
            "source": "elconfidencial.com",
        },
    ],
    "legalInfo": {"legalName": "Bar Uno Restauración S.L.", "owners": ["Lucía García"]},
    "directContacts": {"email": "", "phone": "+34 910 000 000"},
    "emailDomain": "baruno.es",
    "suggestedEmails": [
        {"email": "administracion@baruno.es", "status": "Público", "source": "aviso legal", "bounceRisk": "Bajo"},
        {"email": "marta.lopez@baruno.es", "status": "Inferido", "source": "patrón", "bounceRisk": "Medio"},
    ],
    "contactChannels": [{"type": "Instagram", "data": "@baruno", "status": "Público", "source": "instagram.com"}],
    "techStack": [{"category": "TPV", "provider": "Revo"}, {"category": "Reservas", "provider": "CoverManager"}],
    "operationalInfo": {
        "menuType": "Tapas",
        "orderingSystem": "Camarero",
        "paymentMethods": ["Tarjeta", "Efectivo", "Bizum"],
        "terrace": True,
        "reservations": True,
        "amex": False,
    },
    "swot": {"strengths": ["Ubicación"], "weaknesses": [], "opportunities": [], "threats": []},
    "estimatedVolume": "Volumen Alto",
    "painPoints": ["Colas en la barra en hora punta"],
    "honeiAnalysis": {
        "fitScore": 60,
        "fitLabel": "Alta",
        "executiveSummary": "Decide la directora financiera.",
        "reasoning": "Alto volumen de tarjeta.",
        "matchedFeatures": ["Multibanco"],
    },
    "osintNotes": {"unverified": "Email de la CFO", "verificationSteps": "Llamada al local"},
}

GROUNDING_CHUNKS = [
    {"web": {"uri": "https://baruno.es/aviso-legal", "title": "Aviso legal - Bar Uno"}},
    {"web": {"uri": "https://www.linkedin.com/in/martalopez", "title": ""}},
    {"web": {"title": "Sin enlace"}},
    {"retrievedContext": {"uri": "gs://bucket/doc"}},
    {"web": {"uri": "https://www.thefork.es/bar-uno", "title": "Bar Uno | TheFork"}},
]

EXPECTED_SOURCES = [
    {"uri": "https://baruno.es/aviso-legal", "title": "Aviso legal - Bar Uno"},
    {"uri": "https://www.thefork.es/bar-uno", "title": "Bar Uno | TheFork"},
]


def gemini_response(text: Optional[str], chunks: Optional[List[dict]] = None) -> dict:
    """Body of a generateContent response carrying `text` as a single part."""
    candidate = {"content": {"role": "model", "parts": [] if text is None else [{"text": text}]}}
    if chunks is not None:
        candidate["groundingMetadata"] = {"groundingChunks": chunks}
    return {"candidates": [candidate]}


def wrapped_profile_text(profile: dict = SAMPLE_PROFILE) -> str:
    return "Aquí tienes el resultado:\n```json\n" + json.dumps(profile, ensure_ascii=False) + "\n```\nFuentes consultadas."


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(body: dict, status: int = 200, seen: Optional[list] = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=body)
    return handler
