import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+\Z")

STATUT_CHOICES = [
    "🚀 Jamais touché n8n, je découvre",
    "👨‍💻 J'ai fait quelques workflows basiques",
    "⚙️ J'utilise n8n régulièrement (agence/perso)",
    "🏢 J'ai une agence automation qui tourne",
]

OBJECTIF_CHOICES = [
    "Je ne sais pas comment héberger n8n (c'est compliqué)",
    "Mes workflows bug tout le temps, je perds du temps",
    "Je dois coder des trucs complexes, ça prend des heures",
    "Je galère à trouver les bons prompts pour l'IA",
    "Je n'ai pas encore commencé mais ça m'intéresse",
]

CA_MENSUEL_CHOICES = [
    "Pas encore lancé (0€)",
    "< 1000€/mois",
    "1000€ - 5000€/mois",
    "5000€ - 10 000€/mois",
    "10 000€+/mois",
]

EARLY_ACCESS_ANSWER = "Oui, carrément ! Préviens-moi en premier 🔥"

INTERESSE_SAAS_CHOICES = [
    EARLY_ACCESS_ANSWER,
    "Peut-être, ça dépend du prix",
    "Non, je préfère gérer moi-même",
]


class LeadIn(BaseModel):
    """
    Qualification form. Every field is required and trimmed; answers are not restricted to the choices.
    Maximum lengths follow the leads table columns.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=1, max_length=255)
    statut: str = Field(..., min_length=1, max_length=255)
    objectif: str = Field(..., min_length=1, max_length=255)
    ca_mensuel: str = Field(..., min_length=1, max_length=100)
    interesse_saas: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not EMAIL_RE.match(value):
            raise ValueError("invalid email")
        return value.lower()


class LeadSubmission(BaseModel):
    """Raw payload of the JSON intake route, validated by the service."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    statut: Optional[str] = None
    objectif: Optional[str] = None
    ca_mensuel: Optional[str] = None
    interesse_saas: Optional[str] = None


class LeadTokenOut(BaseModel):
    access_token: str
    redirect_url: str


class LeadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
