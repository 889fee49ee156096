"""
core/countries.py -- Country calling codes for the phone-number picker.

phonenumbers knows the international calling code of every region it can
parse numbers for; pycountry supplies the display name. Regions that
pycountry does not list (e.g. "AC" Ascension Island, "XK" Kosovo) fall back
to the phonenumbers region code as their name so no dialable region is
silently dropped.

The list never changes for the lifetime of the process, so it is built once
and cached.
"""

from functools import lru_cache

import phonenumbers
import pycountry

FLAG_URL = "https://flagcdn.com/{alpha2}.svg"

# phonenumbers' pseudo-region for non-geographic numbering plans.
_NON_GEOGRAPHIC = "001"


def _country_name(alpha2: str) -> str:
    country = pycountry.countries.get(alpha_2=alpha2)
    if country is None:
        return alpha2
    return getattr(country, "common_name", None) or country.name


@lru_cache(maxsize=1)
def phone_codes() -> tuple[dict[str, str], ...]:
    """Return one entry per region, sorted by country name.

    Each entry has phone_code ("+44"), name, alpha2 ("GB") and flag_url.
    A tuple is returned so the cached value cannot be mutated by callers.
    """
    entries = []
    for alpha2 in phonenumbers.SUPPORTED_REGIONS:
        if alpha2 == _NON_GEOGRAPHIC:
            continue
        calling_code = phonenumbers.country_code_for_region(alpha2)
        if not calling_code:
            continue
        entries.append(
            {
                "phone_code": f"+{calling_code}",
                "name": _country_name(alpha2),
                "alpha2": alpha2,
                "flag_url": FLAG_URL.format(alpha2=alpha2.lower()),
            }
        )
    entries.sort(key=lambda e: e["name"])
    return tuple(entries)
