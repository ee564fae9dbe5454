"""Text normalization and designation vocabulary for HUBZone records."""
import re
import unicodedata
from typing import Dict, Optional, Tuple


# Canonical zone types, in match-ordering priority (first = highest)
ZONE_TYPES: Tuple[str, ...] = (
    "qualified_census_tract",
    "qualified_non_metro_county",
    "indian_lands",
    "base_closure_area",
    "governor_designated",
    "disaster_area",
    "redesignated",
)

ZONE_TYPE_PRIORITY: Dict[str, int] = {zone_type: i for i, zone_type in enumerate(ZONE_TYPES)}

DEFAULT_ZONE_TYPE = "qualified_census_tract"

# Source vocabularies seen in SBA and public datasets
ZONE_TYPE_ALIASES: Dict[str, str] = {
    "qct": "qualified_census_tract",
    "qualified census tract": "qualified_census_tract",
    "qnmc": "qualified_non_metro_county",
    "qualified non metro county": "qualified_non_metro_county",
    "qualified nonmetropolitan county": "qualified_non_metro_county",
    "indian land": "indian_lands",
    "indian lands": "indian_lands",
    "base closure": "base_closure_area",
    "base closure area": "base_closure_area",
    "brac": "base_closure_area",
    "governor designated": "governor_designated",
    "disaster": "disaster_area",
    "disaster area": "disaster_area",
    "qda": "disaster_area",
    "qualified disaster area": "disaster_area",
    "redesignated": "redesignated",
    "redesignated area": "redesignated",
}

ZONE_STATUSES: Tuple[str, ...] = ("active", "pending", "expired", "redesignated")

ZONE_STATUS_ALIASES: Dict[str, str] = {
    "current": "active",
    "designated": "active",
    "qualified": "active",
    "proposed": "pending",
    "inactive": "expired",
    "lapsed": "expired",
    "grace period": "redesignated",
}

# (FIPS, name, USPS abbreviation)
STATE_FIPS_CODES: Tuple[Tuple[str, str, str], ...] = (
    ("01", "Alabama", "AL"), ("02", "Alaska", "AK"), ("04", "Arizona", "AZ"),
    ("05", "Arkansas", "AR"), ("06", "California", "CA"), ("08", "Colorado", "CO"),
    ("09", "Connecticut", "CT"), ("10", "Delaware", "DE"), ("11", "District of Columbia", "DC"),
    ("12", "Florida", "FL"), ("13", "Georgia", "GA"), ("15", "Hawaii", "HI"),
    ("16", "Idaho", "ID"), ("17", "Illinois", "IL"), ("18", "Indiana", "IN"),
    ("19", "Iowa", "IA"), ("20", "Kansas", "KS"), ("21", "Kentucky", "KY"),
    ("22", "Louisiana", "LA"), ("23", "Maine", "ME"), ("24", "Maryland", "MD"),
    ("25", "Massachusetts", "MA"), ("26", "Michigan", "MI"), ("27", "Minnesota", "MN"),
    ("28", "Mississippi", "MS"), ("29", "Missouri", "MO"), ("30", "Montana", "MT"),
    ("31", "Nebraska", "NE"), ("32", "Nevada", "NV"), ("33", "New Hampshire", "NH"),
    ("34", "New Jersey", "NJ"), ("35", "New Mexico", "NM"), ("36", "New York", "NY"),
    ("37", "North Carolina", "NC"), ("38", "North Dakota", "ND"), ("39", "Ohio", "OH"),
    ("40", "Oklahoma", "OK"), ("41", "Oregon", "OR"), ("42", "Pennsylvania", "PA"),
    ("44", "Rhode Island", "RI"), ("45", "South Carolina", "SC"), ("46", "South Dakota", "SD"),
    ("47", "Tennessee", "TN"), ("48", "Texas", "TX"), ("49", "Utah", "UT"),
    ("50", "Vermont", "VT"), ("51", "Virginia", "VA"), ("53", "Washington", "WA"),
    ("54", "West Virginia", "WV"), ("55", "Wisconsin", "WI"), ("56", "Wyoming", "WY"),
    ("60", "American Samoa", "AS"), ("66", "Guam", "GU"),
    ("69", "Northern Mariana Islands", "MP"), ("72", "Puerto Rico", "PR"),
    ("78", "Virgin Islands", "VI"),
)


def normalize_text(text: str) -> str:
    """
    Normalize text for matching: strip accents, lowercase, replace punctuation
    and underscores with spaces, collapse whitespace.

    Args:
        text: Input text string

    Returns:
        Normalized text string
    """
    if not text:
        return ""

    # Unicode normalization
    text = unicodedata.normalize("NFD", str(text))
    text = "".join(c for c in text if unicodedata.category(c) != "Mn")

    text = text.lower()
    text = re.sub(r'[^\w\s]|_', ' ', text)
    text = re.sub(r'\s+', ' ', text)

    return text.strip()


def clean_label(text) -> str:
    """Trim a display label and collapse inner whitespace, keeping case."""
    if text is None:
        return ""
    return re.sub(r'\s+', ' ', str(text)).strip()


def _build_state_lookup() -> Dict[str, Tuple[str, str]]:
    lookup = {}
    for fips, name, abbreviation in STATE_FIPS_CODES:
        entry = (abbreviation, name)
        lookup[fips] = entry
        lookup[abbreviation.lower()] = entry
        lookup[normalize_text(name)] = entry
    return lookup


_STATE_LOOKUP = _build_state_lookup()


def normalize_state(value) -> Tuple[str, str]:
    """
    Resolve a state given as FIPS code, USPS abbreviation or name.

    Args:
        value: Raw state field from the source dataset

    Returns:
        Tuple of (state code, state name). Unknown values are returned
        cleaned, as both code and name.
    """
    label = clean_label(value)
    if not label:
        return "", ""

    key = label.zfill(2) if label.isdigit() else normalize_text(label)
    if key in _STATE_LOOKUP:
        return _STATE_LOOKUP[key]
    return label, label


def map_zone_type(value) -> Optional[str]:
    """
    Map a designation type string to its canonical zone type.

    Missing values default to a qualified census tract; unrecognized values
    return None so the caller can reject the record.
    """
    label = normalize_text(value) if value is not None else ""
    if not label:
        return DEFAULT_ZONE_TYPE

    canonical = label.replace(" ", "_")
    if canonical in ZONE_TYPE_PRIORITY:
        return canonical
    return ZONE_TYPE_ALIASES.get(label)


def map_zone_status(value) -> Optional[str]:
    """
    Map a designation status string to its canonical status.

    Missing values default to active; unrecognized values return None.
    """
    label = normalize_text(value) if value is not None else ""
    if not label:
        return "active"
    if label in ZONE_STATUSES:
        return label
    return ZONE_STATUS_ALIASES.get(label)
