import re
from dataclasses import dataclass


ENTREPRISE_RE = re.compile(r"Entreprise:\s*([^|]+)", re.IGNORECASE)
SECTEUR_RE = re.compile(r"Secteur:\s*([^|]+)", re.IGNORECASE)
BESOIN_RE = re.compile(r"Besoin:\s*([^|]+?)(?:\s*\||$)", re.IGNORECASE)


@dataclass
class ClientInfo:
    entreprise: str = ""
    secteur: str = ""
    besoin: str = ""
    contexte: str = ""


def _first_group(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def parse_client_info(infos_client: str) -> ClientInfo:
    """
    Pull company, sector and need out of an
    "Entreprise: X | Secteur: Y | Besoin: Z" cell.

    Missing labels come back empty, the raw text is kept as contexte.
    """

    return ClientInfo(
        entreprise=_first_group(ENTREPRISE_RE, infos_client),
        secteur=_first_group(SECTEUR_RE, infos_client),
        besoin=_first_group(BESOIN_RE, infos_client),
        contexte=infos_client,
    )
