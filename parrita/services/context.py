from dataclasses import dataclass, field
from typing import Dict, Iterable, List


# Sector labels, company size included
SECTEUR_KEYWORDS: Dict[str, List[str]] = {
    "énergie": ["énergie", "renouvelable", "solaire", "éolien", "électricité", "utilities"],
    "retail": ["retail", "commerce", "vente", "magasin", "e-commerce", "boutique", "distribution"],
    "finance": ["finance", "banque", "assurance", "fintech", "crédit", "investissement"],
    "santé": ["santé", "médical", "hôpital", "pharma", "clinique", "cabinet"],
    "tech": ["tech", "software", "saas", "it", "digital", "startup", "scale-up"],
    "industrie": ["industrie", "manufacture", "production", "usine", "fabrication"],
    "logistique": ["logistique", "transport", "supply chain", "livraison", "entrepôt"],
    "rh": ["rh", "ressources humaines", "recrutement", "formation", "talent"],
    "consulting": ["conseil", "consulting", "consultance", "cabinet de conseil"],
    "immobilier": ["immobilier", "promotion", "foncier", "construction"],
    "pme": ["pme", "tpe", "petite entreprise"],
    "corporate": ["corporate", "grande entreprise", "multinational", "groupe"],
}

BESOIN_KEYWORDS: Dict[str, List[str]] = {
    "automatisation": ["automatisation", "automatiser", "automation", "on a besoin d'automatiser", "automatiquement"],
    "veille": ["veille", "scouting", "monitoring", "surveillance", "tracker"],
    "qualification": ["qualification", "qualifier", "leads", "prospects"],
    "reporting": ["reporting", "rapport", "dashboard", "kpi", "tableau de bord", "suivi"],
    "data": ["data", "données", "database", "analytics", "base de données"],
    "facturation": ["facturation", "facture", "billing", "invoicing"],
    "onboarding": ["onboarding", "intégration", "accueil", "nouvel arrivant"],
    "workflow": ["workflow", "processus", "flux de travail", "étapes"],
    "notification": ["notification", "alerte", "alert", "rappel"],
}

ROLE_KEYWORDS: Dict[str, List[str]] = {
    "direction": ["ceo", "directeur", "dirigeant", "président", "dg", "fondateur"],
    "finance": ["daf", "cfo", "comptable", "contrôleur financier"],
    "ops": ["ops", "opérations", "responsable opérations", "coo"],
    "rh": ["drh", "responsable rh", "chro", "talent manager"],
    "it": ["cto", "cio", "responsable it", "tech lead"],
}


@dataclass
class ConversationContext:
    secteur: List[str] = field(default_factory=list)
    besoin: List[str] = field(default_factory=list)
    role: List[str] = field(default_factory=list)

    @property
    def has_signal(self) -> bool:
        return bool(self.secteur or self.besoin or self.role)


def _detect(text: str, keywords: Dict[str, List[str]]) -> List[str]:
    return [
        label
        for label, terms in keywords.items()
        if any(term in text for term in terms)
    ]


def extract_context(messages: Iterable) -> ConversationContext:
    """
    Detect sector, need and role labels in a conversation.

    Plain substring matching on the lower-cased history, so short
    keywords ("it", "rh", "dg") also fire inside longer words.
    """

    text = " ".join(m.content for m in messages).lower()

    return ConversationContext(
        secteur=_detect(text, SECTEUR_KEYWORDS),
        besoin=_detect(text, BESOIN_KEYWORDS),
        role=_detect(text, ROLE_KEYWORDS),
    )
