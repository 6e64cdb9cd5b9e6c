"""Static business profiles used to ground every generation request."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Tuple


class BusinessNotFound(LookupError):
    """Raised when a business identifier has no registered profile."""

    def __init__(self, business_id: str):
        super().__init__(f"Business not found: {business_id}")
        self.business_id = business_id


@dataclass(frozen=True)
class BusinessProfile:
    """Brand and domain reference data for one tenant."""

    id: str
    name: str
    business_type: str
    location: str
    description: str
    context: str
    menu_items: Tuple[str, ...]
    target_audiences: Tuple[str, ...]
    specialties: Tuple[str, ...]
    vocabulary: Tuple[str, ...]
    catalog_label: str
    expertise: str
    fallback_hashtags: Tuple[str, ...]

    def summary(self) -> str:
        """One-line description used by insight prompts."""
        return f"{self.name}, a {self.business_type.lower()} in {self.location} ({self.description.lower()})"

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        return data


_PROFILES: Tuple[BusinessProfile, ...] = (
    BusinessProfile(
        id="allii-fish-market",
        name="Allii Fish Market",
        business_type="Hawaiian Poke Shop",
        location="Honolulu, Hawaii",
        description="Premium poke bowls, smoked meats, and authentic Hawaiian cuisine",
        context=(
            "Allii Fish Market is a premium Hawaiian poke shop in Honolulu specializing in:\n"
            "- Fresh poke bowls (Limu Ahi, Spicy Creamy Garlic Ahi, Wasabi Ginger A'u)\n"
            "- Smoked meats (Pipikaula beef jerky, Lechon pork)\n"
            "- Specialty items (Inari Poke Bombs, Wasabi Fried Chicken)\n"
            "- Authentic Hawaiian flavors with modern presentation\n"
            "- Located in Honolulu, serving locals and tourists\n"
            "- Focus on fresh, daily-sourced fish and traditional preparation methods"
        ),
        menu_items=(
            "Limu Ahi Poke Bowl",
            "Spicy Creamy Garlic Ahi",
            "Wasabi Ginger A'u",
            "Pipikaula Beef Jerky",
            "Lechon Pork",
            "Inari Poke Bombs",
            "Wasabi Fried Chicken",
        ),
        target_audiences=(
            "locals",
            "tourists",
            "poke enthusiasts",
            "seafood lovers",
            "Hawaiian culture enthusiasts",
        ),
        specialties=("fresh fish", "Hawaiian authenticity", "traditional recipes", "daily sourcing"),
        vocabulary=("ahi", "a'u", "poke", "limu", "ohana", "pupus", "ono"),
        catalog_label="menu",
        expertise="Hawaiian cuisine and poke culture",
        fallback_hashtags=(
            "poke",
            "hawaiianfood",
            "freshfish",
            "honolulu",
            "ahi",
            "pokebowl",
            "seafood",
            "healthy",
            "local",
            "authentic",
        ),
    ),
    BusinessProfile(
        id="allii-coconut-water",
        name="Allii Coconut Water",
        business_type="Beverage Company",
        location="Hawaii & Mainland",
        description="Organic coconut water and tropical beverages",
        context=(
            "Allii Coconut Water is a premium beverage company specializing in:\n"
            "- 100% organic coconut water sourced from Hawaiian coconuts\n"
            "- Natural electrolyte-rich hydration drinks\n"
            "- Tropical fruit-infused coconut waters (Pineapple, Mango, Passion Fruit)\n"
            "- Sustainable farming practices and eco-friendly packaging\n"
            "- Direct-from-source freshness with no added sugars or preservatives\n"
            "- Distributed across Hawaii and expanding to mainland US markets\n"
            "- Focus on health-conscious consumers and active lifestyle enthusiasts"
        ),
        menu_items=(
            "Pure Organic Coconut Water",
            "Pineapple Coconut Fusion",
            "Mango Coconut Blend",
            "Passion Fruit Coconut",
            "Coconut Water with Electrolytes",
            "Coconut Water + Vitamin C",
            "Sparkling Coconut Water",
        ),
        target_audiences=(
            "health-conscious consumers",
            "athletes",
            "yoga practitioners",
            "tropical drink lovers",
            "organic lifestyle enthusiasts",
        ),
        specialties=(
            "organic sourcing",
            "no artificial additives",
            "sustainable practices",
            "electrolyte balance",
            "Hawaiian coconuts",
        ),
        vocabulary=("hydration", "electrolytes", "organic", "niu", "aloha", "tropical", "replenish"),
        catalog_label="product line",
        expertise="functional beverages and healthy active lifestyles",
        fallback_hashtags=(
            "coconutwater",
            "hydration",
            "organic",
            "hawaii",
            "electrolytes",
            "healthydrinks",
            "plantbased",
            "wellness",
            "tropical",
            "natural",
        ),
    ),
)

BUSINESS_PROFILES: Dict[str, BusinessProfile] = {profile.id: profile for profile in _PROFILES}


def resolve_business(business_id: str) -> BusinessProfile:
    """Return the profile for ``business_id`` or raise ``BusinessNotFound``."""

    profile = BUSINESS_PROFILES.get((business_id or "").strip())
    if profile is None:
        raise BusinessNotFound(business_id)
    return profile


def list_businesses() -> List[BusinessProfile]:
    return list(BUSINESS_PROFILES.values())


__all__ = [
    "BusinessNotFound",
    "BusinessProfile",
    "BUSINESS_PROFILES",
    "list_businesses",
    "resolve_business",
]
