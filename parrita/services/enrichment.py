import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from sqlalchemy import or_, select

from parrita.models import DiscoveryCall
from parrita.services.context import ConversationContext, extract_context


logger = logging.getLogger(__name__)

COLD_START_LIMIT = 7
SIMILAR_CALLS_LIMIT = 3

INTRO_EXCERPT = 400
PHASE_EXCERPT = 350
NEXT_STEPS_EXCERPT = 200
BESOIN_EXCERPT = 100

COLD_START_INSTRUCTION = (
    "**INSTRUCTION:** Tu DOIS commencer par une question ouverte similaire. "
    "Ne propose PAS de solution tout de suite. Écoute d'abord.\n"
)

SIMILAR_CALLS_INSTRUCTION = (
    "**INSTRUCTION CLEF:** Utilise la progression de Paul (phases 1→2→3→4). "
    "Adapte tes questions au secteur et au besoin détecté. "
    "Pose UNE question à la fois.\n"
)


@dataclass
class Enrichment:
    prompt: str
    reference_calls: List[Dict[str, str]] = field(default_factory=list)


def _excerpt(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


# -----------------------------
# COLD START
# -----------------------------

def _cold_start_section(calls: Sequence[DiscoveryCall]) -> str:

    section = "\n\n## EXEMPLES D'APPROCHE INITIALE (Méthode Paul - appels réels)\n\n"
    section += (
        "Voici comment Paul commence typiquement ses appels de découverte. "
        "Inspire-toi de ces techniques pour ton premier échange :\n\n"
    )

    for idx, call in enumerate(calls, start=1):
        section += f"### Exemple {idx} - {call.entreprise or 'Client'} ({call.secteur or 'secteur'})\n"
        section += f"{_excerpt(call.phase_1_introduction, INTRO_EXCERPT)}\n\n"

    return section + COLD_START_INSTRUCTION


def _fetch_cold_start_calls(db) -> List[DiscoveryCall]:

    return list(
        db.scalars(
            select(DiscoveryCall)
            .where(DiscoveryCall.phase_1_introduction.isnot(None))
            .where(DiscoveryCall.phase_1_introduction != "")
            .limit(COLD_START_LIMIT)
        )
    )


# -----------------------------
# SIMILAR CALLS
# -----------------------------

def _context_line(context: ConversationContext) -> str:

    parts = []

    if context.secteur:
        parts.append(", ".join(context.secteur))
    if context.besoin:
        parts.append(", ".join(context.besoin))
    if context.role:
        parts.append("Rôle: " + ", ".join(context.role))

    return " | ".join(parts)


def _similar_calls_section(
    calls: Sequence[DiscoveryCall],
    context: ConversationContext
) -> str:

    section = "\n\n## MÉTHODE DE PAUL - Appels similaires détectés\n\n"
    section += f"**Contexte identifié:** {_context_line(context)}\n\n"

    phases = (
        ("phase_1_introduction", "Phase 1 - Introduction", PHASE_EXCERPT),
        ("phase_2_exploration", "Phase 2 - Exploration", PHASE_EXCERPT),
        ("phase_3_affinage", "Phase 3 - Affinage", PHASE_EXCERPT),
        ("phase_4_next_steps", "Phase 4 - Next Steps", NEXT_STEPS_EXCERPT),
    )

    for idx, call in enumerate(calls, start=1):

        besoin = _excerpt(call.besoin, BESOIN_EXCERPT) if call.besoin else "Non spécifié"

        section += f"### Appel {idx}: {call.entreprise or 'Client'}\n"
        section += f"**Secteur:** {call.secteur or 'Non spécifié'} | **Besoin:** {besoin}\n\n"

        for attr, title, limit in phases:
            text = getattr(call, attr)
            if text:
                section += f"**{title}:**\n{_excerpt(text, limit)}\n\n"

        section += "---\n\n"

    return section + SIMILAR_CALLS_INSTRUCTION


def _fetch_similar_calls(db, context: ConversationContext) -> List[DiscoveryCall]:

    query = select(DiscoveryCall).limit(SIMILAR_CALLS_LIMIT)

    if context.secteur:
        query = query.where(
            or_(*[DiscoveryCall.secteur.ilike(f"%{s}%") for s in context.secteur])
        )

    return list(db.scalars(query))


def _reference_calls(calls: Sequence[DiscoveryCall]) -> List[Dict[str, str]]:

    return [
        {
            "entreprise": call.entreprise or "Client",
            "secteur": call.secteur or "Non spécifié",
            "phase": "toutes phases",
        }
        for call in calls
    ]


# -----------------------------
# MAIN ENTRY
# -----------------------------

def enrich_prompt(db, messages: Sequence, base_prompt: str) -> Enrichment:
    """
    Append discovery-call excerpts matching the conversation to the
    system prompt.

    Without any detected signal, a handful of first-phase openers are
    shown and nothing is disclosed to the visitor. Once a sector, need
    or role shows up, up to three full calls are included and listed
    in reference_calls. Any failure falls back to base_prompt.
    """

    try:
        context = extract_context(messages)

        if not context.has_signal:

            calls = _fetch_cold_start_calls(db)

            if not calls:
                logger.info("No discovery calls available for cold start")
                return Enrichment(prompt=base_prompt)

            logger.info("No context detected - using %s opening examples", len(calls))

            return Enrichment(prompt=base_prompt + _cold_start_section(calls))

        calls = _fetch_similar_calls(db, context)

        if not calls:
            logger.info(
                "No similar discovery calls for secteur=%s besoin=%s role=%s",
                context.secteur, context.besoin, context.role
            )
            return Enrichment(prompt=base_prompt)

        logger.info("Found %s similar discovery calls", len(calls))

        return Enrichment(
            prompt=base_prompt + _similar_calls_section(calls, context),
            reference_calls=_reference_calls(calls)
        )

    except Exception:
        db.rollback()
        logger.exception("Error enriching prompt, using base prompt")
        return Enrichment(prompt=base_prompt)
