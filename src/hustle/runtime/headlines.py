from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

from hustle.catalog import COMMODITIES, Region, in_category
from hustle.state import Headline

if TYPE_CHECKING:
    from hustle.runtime.rng_service import RNGService


@dataclass(frozen=True, slots=True)
class HeadlineTemplate:
    text: str
    impact: float
    commodity_specific: bool = False
    categories: Tuple[str, ...] = ()


HEADLINE_TEMPLATES: Tuple[HeadlineTemplate, ...] = (
    HeadlineTemplate("Police crack down on {drug} trade in {location}. Prices affected!", 0.25, commodity_specific=True),
    HeadlineTemplate("Major bust! {drug} supply dwindles across the city.", 0.15, commodity_specific=True),
    HeadlineTemplate("New synthetic {drug} floods {location}'s market. Prices affected!", -0.20, commodity_specific=True),
    HeadlineTemplate("Celebrity overdoses on {drug} in a Manhattan penthouse. Public outcry!", -0.10, commodity_specific=True),
    HeadlineTemplate("Economic boom in the city! More disposable income for recreational use.", 0.10),
    HeadlineTemplate("City-wide recession hits. People cutting back on luxuries.", -0.08),
    HeadlineTemplate("Music festival in Brooklyn! Demand for party drugs up.", 0.20, categories=("party",)),
    HeadlineTemplate(
        "Wall Street traders seek focus enhancers. Demand high in Manhattan.",
        0.12,
        categories=("stimulants", "prescription"),
    ),
    HeadlineTemplate("Increased patrols on bridges and tunnels. Smuggling routes disrupted.", 0.15),
    HeadlineTemplate("New city legislation eases penalties for some drugs.", -0.10),
    HeadlineTemplate("Rival gang war in The Bronx disrupts supply chains.", 0.08),
    HeadlineTemplate("Health crisis in Queens leads to crackdown on opioids.", 0.20, categories=("opioids",)),
    HeadlineTemplate(
        "Influencer promotes microdosing in trendy Brooklyn cafes. Psychedelics popular.",
        0.09,
        categories=("psychedelics",),
    ),
    HeadlineTemplate("Heatwave grips the city! People staying indoors, less street activity.", -0.03),
    HeadlineTemplate("Staten Island Ferry becomes popular spot for discreet deals.", 0.04),
    HeadlineTemplate("Art scene in Queens creates demand for 'creative' substances.", 0.07, categories=("psychedelics", "cheap")),
)


@dataclass(slots=True)
class HeadlineConfig:
    min_headlines: int = 1
    max_headlines: int = 3
    deterministic_salt: str = "headlines-v1"


def headline_matches(headline: Headline, commodity: str) -> bool:
    """Named commodity, a category containing it, or an untargeted headline."""

    if headline.general:
        return True
    if headline.affected_commodity == commodity:
        return True
    return any(in_category(commodity, category) for category in headline.affected_categories)


def generate_headlines(
    rng: "RNGService",
    *,
    region: Region,
    cfg: Optional[HeadlineConfig] = None,
    templates: Tuple[HeadlineTemplate, ...] = HEADLINE_TEMPLATES,
) -> List[Headline]:
    """Draw 1-3 distinct templates and fill their placeholders."""

    cfg = cfg or HeadlineConfig()
    scope = {"region": region.value, "salt": cfg.deterministic_salt}
    count = rng.randint("headlines.count", cfg.min_headlines, cfg.max_headlines, scope=scope)
    chosen = rng.sample("headlines.pick", templates, min(count, len(templates)), scope=scope)

    headlines: List[Headline] = []
    for template in chosen:
        text = template.text.replace("{location}", region.value)
        affected: Optional[str] = None
        if template.commodity_specific:
            affected = rng.choice("headlines.commodity", COMMODITIES, scope=scope).name
            text = text.replace("{drug}", affected)
        headlines.append(
            Headline(
                headline=text,
                price_impact=template.impact,
                affected_commodity=affected,
                affected_categories=template.categories,
            )
        )
    return headlines


__all__ = ["HEADLINE_TEMPLATES", "HeadlineConfig", "HeadlineTemplate", "generate_headlines", "headline_matches"]
