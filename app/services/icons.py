"""Static icon URLs per asset name."""

PLACEHOLDER_ICON_URL = "https://example.com/questionmark_icon.png"

ICON_URLS = {
    "bitcoin": "https://cdn-icons-png.flaticon.com/128/5968/5968260.png",
    "ethereum": "https://cdn-icons-png.flaticon.com/128/14446/14446160.png",
    "ripple": "https://cdn-icons-png.flaticon.com/128/4821/4821657.png",
    "litecoin": "https://cdn-icons-png.flaticon.com/128/14446/14446185.png",
    "cardano": "https://cdn-icons-png.flaticon.com/128/14446/14446142.png",
    "dogecoin": "https://cdn-icons-png.flaticon.com/128/6557/6557093.png",
    "polkadot": "https://cdn-icons-png.flaticon.com/128/15301/15301733.png",
    "solana": "https://cdn-icons-png.flaticon.com/128/15208/15208206.png",
    "binancecoin": "https://cdn-icons-png.flaticon.com/128/15301/15301504.png",
}


def icon_url_for(name: str) -> str:
    return ICON_URLS.get(name.lower(), PLACEHOLDER_ICON_URL)
