import re
from typing import NamedTuple


class WorkflowMeta(NamedTuple):
    name: str
    description: str


# Hand-curated metadata keyed by the exact file name in the bucket.
# To add a preset, add a line with the exact file name.
WORKFLOW_PRESETS: dict[str, WorkflowMeta] = {
    "search-console-reports.json": WorkflowMeta(
        name="Workflow SEO Pro",
        description="Génération automatique de rapports SEO depuis Google Search Console vers Google Sheets.",
    ),
    "landing-page-cro-audit.json": WorkflowMeta(
        name="CRO & A/B Testing",
        description="Analyse automatique de landing pages avec suggestions d'optimisation CRO par IA.",
    ),
    "CLAUDE.md": WorkflowMeta(
        name="Claude Context Remotion",
        description="Mon contexte Claude pour générer des vidéos Remotion automatiquement avec l'IA.",
    ),
    "Veille IA 8H.json": WorkflowMeta(
        name="Veille IA - Automatisation 8H",
        description="Workflow de veille technologique IA avec extraction et synthèse automatique toutes les 8 heures.",
    ),
    "lead-gen.json": WorkflowMeta(
        name="Lead Gen LinkedIn",
        description="Extraction et qualification automatique de leads depuis LinkedIn.",
    ),
    "email-automation.json": WorkflowMeta(
        name="Email Automation Pro",
        description="Séquences d'emails automatisées avec segmentation et personnalisation IA.",
    ),
}

DEFAULT_NAME = "Workflow n8n"
GENERIC_DESCRIPTION = "Workflow d'automatisation n8n prêt à l'emploi."

# Checked in order, first match wins
KEYWORD_DESCRIPTIONS: list[tuple[tuple[str, ...], str]] = [
    (("seo",), "Workflow d'optimisation SEO et génération de contenu automatique."),
    (("lead", "prospect"), "Automatisation de la prospection et qualification de leads."),
    (("cro", "conversion"), "Analyse et optimisation du taux de conversion de vos pages."),
    (("email", "mail"), "Automatisation d'emails et séquences de nurturing."),
    (("scraping", "scrape"), "Extraction automatique de données depuis le web."),
    (("social", "instagram", "tiktok"), "Automatisation de posts et engagement sur les réseaux sociaux."),
    (("claude", "context"), "Contexte et prompts optimisés pour automatiser avec l'IA."),
    (("veille", "monitoring", "watch"), "Système de veille automatisée avec collecte et synthèse d'informations."),
]

WORKFLOW_EXTENSION_RE = re.compile(r"\.(json|md)\Z", re.IGNORECASE)
SCREENSHOT_EXTENSION_RE = re.compile(r"\.(png|jpg|jpeg|webp)\Z", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"[-_\s]+")


def is_workflow_file(filename: str) -> bool:
    return bool(WORKFLOW_EXTENSION_RE.search(filename))


def workflow_stem(filename: str) -> str:
    """Strip a trailing .json / .md, e.g. "search-console.json" -> "search-console"."""
    return WORKFLOW_EXTENSION_RE.sub("", filename)


def screenshot_stem(filename: str) -> str:
    return SCREENSHOT_EXTENSION_RE.sub("", filename)


def _format_word(word: str) -> str:
    # Short all-caps words are acronyms (IA, SEO, CRO)
    if len(word) <= 3 and word == word.upper():
        return word
    return word[:1].upper() + word[1:].lower()


def generate_name_from_filename(filename: str) -> str:
    """
    Build a readable name from a file name.
    Ex: "lead-gen.json" -> "Lead Gen"
    """
    words = [_format_word(word) for word in _SEPARATOR_RE.split(workflow_stem(filename)) if word]
    return " ".join(words) or DEFAULT_NAME


def generate_description_from_filename(filename: str) -> str:
    lower_filename = filename.lower()
    for keywords, description in KEYWORD_DESCRIPTIONS:
        if any(keyword in lower_filename for keyword in keywords):
            return description
    return GENERIC_DESCRIPTION


def resolve_workflow_meta(filename: str) -> WorkflowMeta:
    """
    Name and description for a workflow file.
    Uses the preset when one exists, otherwise derives both from the file name.
    """
    preset = WORKFLOW_PRESETS.get(filename)
    if preset is not None:
        return preset

    return WorkflowMeta(
        name=generate_name_from_filename(filename),
        description=generate_description_from_filename(filename),
    )
