"""Identity-document text parser.

Turns raw OCR text from an identity card into a name, a date of birth and
a 12-digit national ID number using the ordered strategies in
:mod:`src.extraction.strategies`. Parsing never raises: a field that no
strategy accepts comes back as an empty string so the caller can ask for
manual entry instead.
"""

from dataclasses import asdict, dataclass

from src.utils.logger import get_logger

from .strategies import (
    DATE_OF_BIRTH_STRATEGIES,
    ID_NUMBER_STRATEGIES,
    NAME_STRATEGIES,
    Strategy,
    first_accepted,
    normalize_text,
)

logger = get_logger(__name__)


@dataclass
class ExtractedIdentity:
    """Identity fields read from a document; empty strings mean not found."""

    name: str = ""
    date_of_birth: str = ""
    id_number: str = ""

    @property
    def is_empty(self) -> bool:
        """True when no field could be extracted."""
        return not (self.name or self.date_of_birth or self.id_number)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class IdentityParser:
    """Heuristic field extractor for identity-card OCR text.

    The strategy tuples can be replaced to tune priority for a different
    card layout without touching the parsing loop.

    Args:
        name_strategies: Name strategies in priority order.
        date_of_birth_strategies: Date-of-birth strategies in priority order.
        id_number_strategies: ID number strategies in priority order.
    """

    def __init__(
        self,
        name_strategies: tuple[Strategy, ...] = NAME_STRATEGIES,
        date_of_birth_strategies: tuple[Strategy, ...] = DATE_OF_BIRTH_STRATEGIES,
        id_number_strategies: tuple[Strategy, ...] = ID_NUMBER_STRATEGIES,
    ) -> None:
        self.name_strategies = name_strategies
        self.date_of_birth_strategies = date_of_birth_strategies
        self.id_number_strategies = id_number_strategies

    def parse(self, raw_text: str) -> ExtractedIdentity:
        """Extract identity fields from raw recognized text.

        Args:
            raw_text: Text as returned by the OCR engine, newlines included.

        Returns:
            A fresh :class:`ExtractedIdentity`.
        """
        text = normalize_text(raw_text)
        identity = ExtractedIdentity(
            name=first_accepted(self.name_strategies, text),
            date_of_birth=first_accepted(self.date_of_birth_strategies, text),
            id_number=first_accepted(self.id_number_strategies, text),
        )

        if identity.is_empty:
            logger.warning("Identity parse found no fields in %d chars of text", len(text))
            return identity

        found = [key for key, value in identity.to_dict().items() if value]
        logger.info("Identity parse found %d/3 fields: %s", len(found), found)
        return identity


def parse_identity(raw_text: str) -> ExtractedIdentity:
    """Parse with the default strategy order."""
    return IdentityParser().parse(raw_text)
