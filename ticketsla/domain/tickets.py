"""
Manual ticket model and the timestamp helpers used by the ticket form.

Stored records keep the field names of the shared data service
(``piattaforma``, ``data_domanda`` ...); the model exposes them under
English attribute names.
"""

from typing import Any, Dict, List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .business_hours import parse_timestamp

MODERATORS = [
    "Del Tevere Giuseppe", "Furnari Alfredo", "Gamiddo Marialorenza", "Giuffrida Giusi",
    "Giuffrida Martina", "Leocata Rita", "Lo Cicero Laura", "Mangani Federica",
    "Mazzaglia Cinzia", "Paparo Tiziana", "Perri Marilisa", "Romano Roberta",
    "Venuto Mariannunziata",
]
THRESHOLDS = ["OK", "KO"]
TOPICS = ["Richiesta di servizi", "Richiedi una demo", "Supporto", "Opportunità di carriera", "Altro"]
PLATFORMS = [
    "Facebook Pubblico", "Facebook Privato", "X Pubblico", "X Privato",
    "Instagram Pubblico", "Instagram Direct", "LinkedIn Pubblico", "LinkedIn Privato",
    "TikTok Pubblico", "TikTok Privato",
]

NOT_ANSWERED = "Non Risposto"
MAIN_ACTIONS = ["Risposto", "Nascosto", "Reaction", "Ignorato"]
FORWARD_ACTIONS = ["Inoltrato al BO", "Rilasciato al FO"]
FLAG_NAMES = [NOT_ANSWERED, "Risposto", "Ignorato", "Nascosto", *FORWARD_ACTIONS, "Reaction"]

PLACEHOLDER = "–"
INVALID_DATE = "Data non valida"

MainAction = Literal["Risposto", "Nascosto", "Reaction", "Ignorato"]
ForwardAction = Literal["Inoltrato al BO", "Rilasciato al FO", ""]
Threshold = Literal["OK", "KO", ""]


class ManualTicket(BaseModel):
    """A manually recorded social-media ticket."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    platform: str = Field(default="", alias="piattaforma")
    user_name: str = Field(default="", alias="nome_utente")
    content: str = Field(default="", alias="testo_contenuto")
    asked_at: str = Field(alias="data_domanda")
    handled_at: str | None = Field(default=None, alias="data_gestione")
    moderator: str | None = Field(default=None, alias="moderatore")
    threshold: Threshold | None = Field(default=None, alias="soglia")
    platform_item_id: str | None = Field(default=None, alias="id_piattaforma")
    topic: str | None = Field(default=None, alias="argomento")
    main_action: MainAction | None = Field(default=None, alias="azione_principale")
    forward_action: ForwardAction = Field(default="", alias="azione_inoltro")

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ManualTicket":
        """Build a ticket from a stored record."""
        return cls.model_validate(record)

    def to_record(self) -> Dict[str, Any]:
        """Serialize using the stored field names."""
        return self.model_dump(by_alias=True)

    def flag_texts(self) -> List[str]:
        """Main action (``Non Risposto`` when missing), then the forward action if any."""
        flags = [self.main_action or NOT_ANSWERED]
        if self.forward_action:
            flags.append(self.forward_action)
        return flags


def combine_date_time(date_str: str | None, time_str: str | None, timezone: str) -> str | None:
    """
    Combine form date (YYYY-MM-DD) and time (HH:mm) fields into a UTC ISO 8601 string.

    Returns None if either part is missing or the result is not a valid instant.
    """
    if not date_str or not time_str:
        return None

    dt = parse_timestamp(f"{date_str}T{time_str}", timezone)
    if dt is None:
        return None

    return dt.in_timezone("UTC").to_iso8601_string()


def split_timestamp(iso_string: str | None, timezone: str) -> Tuple[str, str]:
    """Split a timestamp into local (date, time) form values; empty strings if absent."""
    dt = parse_timestamp(iso_string, timezone)
    if dt is None:
        return "", ""
    return dt.format("YYYY-MM-DD"), dt.format("HH:mm")


def format_timestamp(iso_string: str | None, timezone: str) -> str:
    """Format a timestamp for reports as ``DD/MM/YYYY, HH:mm``."""
    if not iso_string:
        return PLACEHOLDER

    dt = parse_timestamp(iso_string, timezone)
    if dt is None:
        return INVALID_DATE

    return dt.format("DD/MM/YYYY, HH:mm")
