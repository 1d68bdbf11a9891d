from finediet.fallbacks.loader import load_fallback

WAITLIST_DEFAULTS = {
    "title": "Join the Waitlist",
    "subtitle": "",
    "description": "",
    "image": "",
    "formHeadline": "",
    "formSubheadline": "",
    "successMessage": "Thank you! You've been added to the waitlist. We'll be in touch soon.",
    "seoTitle": "",
    "seoDescription": "",
    "successTitle": "You're on the list!",
    "submitButtonLabel": "Join Waitlist",
    "submitButtonLoadingLabel": "Submitting...",
    "goalPlaceholder": "Select a goal...",
    "privacyNote": "We respect your privacy. Unsubscribe at any time.",
    "emailLabel": "Email",
    "nameLabel": "Name",
    "goalLabel": "Goal",
    "requiredLabel": "(required)",
    "optionalLabel": "(optional)",
    "emailPlaceholder": "your.email@example.com",
    "namePlaceholder": "Your name",
    "logoPath": "/images/home/Fine-Diet-Logo.svg",
    "logoAlt": "Fine Diet",
}

FALLBACK_FILES = {
    "navigation": "navigation.json",
    "home": "home.json",
    "footer": "footer.json",
}


def default_for_key(key: str) -> dict | None:
    if key in FALLBACK_FILES:
        return load_fallback(FALLBACK_FILES[key])
    if key == "waitlist":
        return dict(WAITLIST_DEFAULTS)
    if key == "global":
        return {}
    return None


def product_skeleton(title: str) -> dict:
    return {
        "hero": {"title": title},
        "valueProps": [],
        "sections": [],
        "faq": [],
        "seo": {},
    }
