from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONTACT_AREAS = ["Finanzas", "Operaciones", "Tecnología", "Propiedad", "Otros"]
CONFIDENCE_LEVELS = ["Alto", "Medio", "Bajo"]
EMAIL_STATUSES = ["Público", "Inferido"]
BOUNCE_RISKS = ["Bajo", "Medio", "Alto"]
FIT_LABELS = ["Muy Alta", "Alta", "Media", "Baja"]

CrmStatus = Literal["Nuevo", "Cualificado", "Contactado", "Respuesta", "Descartado"]
CRM_STATUSES = list(get_args(CrmStatus))

CRM_DEFAULTS = {
  "crmStatus": "Nuevo",
  "nextAction": "Generar email",
  "notes": "",
  "outreachStatus": "Pendiente",
}


class _Record(BaseModel):
    # Enum-like fields are plain strings; only types are enforced
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_collections(cls, value, info):
        if value is None:
            factory = cls.model_fields[info.field_name].default_factory
            if factory is not None:
                return factory()
        return value


class Owner(_Record):
    firstName: Optional[str] = None
    lastName: Optional[str] = None


class StrategicContact(_Record):
    name: Optional[str] = None
    role: Optional[str] = None
    area: Optional[str] = None
    relevance: Optional[str] = None
    validity: Optional[str] = None
    confidence: Optional[str] = None
    source: Optional[str] = None
    secondarySource: Optional[str] = None


class LegalInfo(_Record):
    legalName: Optional[str] = None
    owners: List[str] = Field(default_factory=list)


class DirectContacts(_Record):
    email: Optional[str] = None
    phone: Optional[str] = None


class SuggestedEmail(_Record):
    email: Optional[str] = None
    status: Optional[str] = None
    source: Optional[str] = None
    bounceRisk: Optional[str] = None


class ContactChannel(_Record):
    type: Optional[str] = None
    data: Optional[str] = None
    status: Optional[str] = None
    source: Optional[str] = None


class TechStackItem(_Record):
    category: Optional[str] = None
    provider: Optional[str] = None


class OperationalInfo(_Record):
    menuType: Optional[str] = None
    orderingSystem: Optional[str] = None
    paymentMethods: List[str] = Field(default_factory=list)
    terrace: Optional[bool] = None
    reservations: Optional[bool] = None
    amex: Optional[bool] = None
    digitalMenuUrl: Optional[str] = None


class Swot(_Record):
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    threats: List[str] = Field(default_factory=list)


class HoneiAnalysis(_Record):
    fitScore: Optional[float] = Field(default=None, ge=0, le=100, allow_inf_nan=False)
    fitLabel: Optional[str] = None
    executiveSummary: Optional[str] = None
    reasoning: Optional[str] = None
    matchedFeatures: List[str] = Field(default_factory=list)


class OsintNotes(_Record):
    unverified: Optional[str] = None
    verificationSteps: Optional[str] = None


class SearchSource(_Record):
    uri: Optional[str] = None
    title: Optional[str] = None


class BusinessProfile(_Record):
    businessName: Optional[str] = None
    city: Optional[str] = None
    fullAddress: Optional[str] = None
    owners: List[Owner] = Field(default_factory=list)
    strategicContacts: List[StrategicContact] = Field(default_factory=list)
    legalInfo: LegalInfo = Field(default_factory=LegalInfo)
    directContacts: DirectContacts = Field(default_factory=DirectContacts)
    emailDomain: Optional[str] = None
    suggestedEmails: List[SuggestedEmail] = Field(default_factory=list)
    contactChannels: List[ContactChannel] = Field(default_factory=list)
    techStack: List[TechStackItem] = Field(default_factory=list)
    operationalInfo: OperationalInfo = Field(default_factory=OperationalInfo)
    swot: Swot = Field(default_factory=Swot)
    estimatedVolume: Optional[str] = None
    painPoints: List[str] = Field(default_factory=list)
    honeiAnalysis: HoneiAnalysis = Field(default_factory=HoneiAnalysis)
    osintNotes: OsintNotes = Field(default_factory=OsintNotes)
    googleSearchSources: List[SearchSource] = Field(default_factory=list)


class CrmUpdate(BaseModel):
    """The only fields an operator may change on a stored profile."""
    model_config = ConfigDict(extra="forbid")

    crmStatus: CrmStatus = CRM_DEFAULTS["crmStatus"]
    nextAction: str = CRM_DEFAULTS["nextAction"]
    notes: str = CRM_DEFAULTS["notes"]
    outreachStatus: str = CRM_DEFAULTS["outreachStatus"]


def normalize_profile(data: dict) -> dict:
    """Validate model output against BusinessProfile and return it as a plain dict.

    Missing or null collections come back as [] or as objects with their own
    collections defaulted. Unknown keys are kept. Raises pydantic's
    ValidationError when a field has the wrong type.
    """
    return BusinessProfile.model_validate(data).model_dump()


def crm_changes(fields: dict) -> dict:
    """Only the CRM fields present in `fields`, validated. Raises ValidationError."""
    return CrmUpdate.model_validate(fields).model_dump(exclude_unset=True)


def apply_crm_defaults(profile: dict) -> dict:
    out = dict(profile)
    for name, default in CRM_DEFAULTS.items():
        if out.get(name) is None:
            out[name] = default
    if out["crmStatus"] not in CRM_STATUSES:
        out["crmStatus"] = CRM_DEFAULTS["crmStatus"]
    return out


def profile_key(profile: dict) -> tuple[str, str]:
    return (profile.get("businessName"), profile.get("city"))
