"""Roster adapters for converting roster-provider records to Athlete objects.

The roster provider supplies one record per entrant with camelCase keys
(``athleteId``, ``rankingScore``, ``clubId``, ``countryCode``). This module
turns them into validated :class:`Athlete` objects.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from pisteformula.exceptions import ConfigurationError
from pisteformula.models.athlete import Athlete
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)


def _parse_date(value: Any, athlete_id: str) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        logger.warning("Invalid date of birth for %s: %s", athlete_id, value)
        return None


def roster_record_to_athlete(record: Dict[str, Any]) -> Athlete:
    """Convert one roster record to an Athlete.

    Args:
        record: Roster record

    Returns:
        The validated athlete

    Raises:
        ConfigurationError: If the id is missing or a field is invalid

    Example:
        >>> record = {
        ...     "athleteId": "a-17",
        ...     "name": "Durand, Lea",
        ...     "rankingScore": 112.5,
        ...     "clubId": "CE Paris",
        ...     "countryCode": "fra",
        ... }
        >>> roster_record_to_athlete(record).nationality
        'FRA'
    """
    athlete_id = str(record.get("athleteId") or "").strip()
    if not athlete_id:
        raise ConfigurationError(f"Roster record without athleteId: {record}")

    # Several affiliations may come as clubIds; clubId is the primary club
    club_ids: List[str] = []
    if record.get("clubId"):
        club_ids.append(str(record["clubId"]))
    for club_id in record.get("clubIds") or ():
        if club_id and str(club_id) not in club_ids:
            club_ids.append(str(club_id))

    ranking = record.get("rankingScore")
    try:
        ranking_score = float(ranking) if ranking is not None else 0.0
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Athlete {athlete_id}: ranking score is not a number: {ranking}"
        )

    return Athlete(
        id=athlete_id,
        name=(record.get("name") or "").strip(),
        nationality=record.get("countryCode") or None,
        club_ids=tuple(club_ids),
        ranking_score=ranking_score,
        date_of_birth=_parse_date(record.get("dateOfBirth"), athlete_id),
    )


def athletes_from_records(records: Iterable[Dict[str, Any]]) -> List[Athlete]:
    """Convert a whole roster, keeping the provider's order.

    Raises:
        ConfigurationError: If a record is invalid or an id repeats
    """
    athletes: List[Athlete] = []
    seen = set()
    for record in records:
        athlete = roster_record_to_athlete(record)
        if athlete.id in seen:
            raise ConfigurationError(f"Duplicate athleteId in roster: {athlete.id}")
        seen.add(athlete.id)
        athletes.append(athlete)
    logger.debug("Converted %s roster record(s)", len(athletes))
    return athletes
