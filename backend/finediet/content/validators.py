"""Shapes of the JSON documents stored in site_content.

Stored documents use camelCase keys (they are consumed by the frontend as-is),
so every model here aliases its snake_case fields.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel


class ContentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


ButtonVariant = Literal["primary", "secondary", "tertiary", "quaternary"]


class ButtonConfig(ContentModel):
    label: str
    variant: ButtonVariant
    href: str


class ResponsiveImages(ContentModel):
    desktop: str
    mobile: str


class WaitlistConfig(ContentModel):
    enabled: bool
    title: str | None = None
    description: str | None = None
    button_label: str | None = None


# Navigation

class NavigationTopLink(ContentModel):
    label: str
    href: str


class NavigationTopLinks(ContentModel):
    journal: NavigationTopLink
    account: NavigationTopLink


class NavigationItem(ContentModel):
    id: str
    type: str
    title: str
    description: str
    image: str
    href: str
    available: bool
    waitlist: WaitlistConfig | None = None
    buttons: list[ButtonConfig]


class NavigationSubcategory(ContentModel):
    id: str
    name: str
    items: list[NavigationItem]


class NavigationProspectProduct(ContentModel):
    subcategory_label: str
    id: str
    title: str
    description: str
    badge: str
    image: str
    href: str
    available: bool
    waitlist: WaitlistConfig
    buttons: list[ButtonConfig]


class NavigationLayout(ContentModel):
    show_hero: bool
    show_grid: bool
    show_cta: bool = Field(alias="showCTA")


class PricingCard(ContentModel):
    id: str
    image: str
    title: str
    subtitle: str
    description: str
    price: str
    payment_schedule: str
    button: ButtonConfig


class PricingColumns(ContentModel):
    mobile: float
    tablet: float
    desktop: float


class NavigationPricingSection(ContentModel):
    type: Literal["pricing"]
    id: str
    enabled: bool
    title: str
    description: str
    columns: PricingColumns
    cards: list[PricingCard]


class NavigationCategory(ContentModel):
    id: str
    label: str
    headline: str
    subtitle: str
    layout: NavigationLayout
    subcategories: list[NavigationSubcategory]
    prospect_product: NavigationProspectProduct
    sections: list[NavigationPricingSection] | None = None


class NavigationContent(ContentModel):
    top_links: NavigationTopLinks
    categories: list[NavigationCategory]


# Home

class HeroContent(ContentModel):
    title: str
    description: str
    buttons: list[ButtonConfig]
    images: ResponsiveImages


class FeatureSlide(ContentModel):
    id: str | None = None
    title: str | None = None
    description: str | None = None
    images: ResponsiveImages | None = None
    buttons: list[ButtonConfig] | None = None


class FeatureSection(ContentModel):
    title: str | None = None
    description: str | None = None
    buttons: list[ButtonConfig] | None = None
    images: ResponsiveImages
    slides: list[FeatureSlide] | None = None


class GridItem(ContentModel):
    title: str
    description: str | None = None
    image: str | None = None
    button: ButtonConfig | None = None


class GridSection(ContentModel):
    items: list[GridItem]


class CtaSection(ContentModel):
    title: str
    description: str | None = None
    button: ButtonConfig | None = None
    images: ResponsiveImages | None = None


class HomeContent(ContentModel):
    hero: HeroContent
    feature_sections: list[FeatureSection]
    grid_sections: list[GridSection]
    cta_section: CtaSection


# Footer

class FooterLink(ContentModel):
    label: str
    href: str


class FooterNewsletter(ContentModel):
    headline: str
    subheadline: str


class FooterLinkSection(ContentModel):
    title: str
    links: list[FooterLink]


class FooterLegal(ContentModel):
    links: list[FooterLink]
    copyright: str


class FooterContent(ContentModel):
    newsletter: FooterNewsletter
    explore: FooterLinkSection
    resources: FooterLinkSection
    connect: FooterLinkSection
    legal: FooterLegal


# Waitlist page

class WaitlistContent(ContentModel):
    title: str
    subtitle: str | None = None
    description: str | None = None
    image: str | None = None
    form_headline: str | None = None
    form_subheadline: str | None = None
    success_message: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    success_title: str | None = None
    submit_button_label: str | None = None
    submit_button_loading_label: str | None = None
    goal_placeholder: str | None = None
    privacy_note: str | None = None
    email_label: str | None = None
    name_label: str | None = None
    goal_label: str | None = None
    required_label: str | None = None
    optional_label: str | None = None
    email_placeholder: str | None = None
    name_placeholder: str | None = None
    logo_path: str | None = None
    logo_alt: str | None = None


# Product pages

class ProductHero(ContentModel):
    title: str
    subtitle: str | None = None
    description: str | None = None
    image_desktop: str | None = None
    image_mobile: str | None = None
    buttons: list[ButtonConfig] | None = None


class ProductValueProp(ContentModel):
    id: str
    title: str
    description: str | None = None
    icon: str | None = None


class ProductSection(ContentModel):
    id: str
    type: Literal["text", "image", "cta", "pricing", "faq"]
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    image: str | None = None
    items: list[Any] | None = None


class ProductFAQ(ContentModel):
    question: str
    answer: str


class ProductSEO(ContentModel):
    title: str | None = None
    description: str | None = None


class ProductPageContent(ContentModel):
    hero: ProductHero
    value_props: list[ProductValueProp] | None = None
    sections: list[ProductSection] | None = None
    faq: list[ProductFAQ] | None = None
    seo: ProductSEO | None = None


# Global

class AnnouncementBar(ContentModel):
    enabled: bool
    message: str
    href: str | None = None


class GlobalContent(ContentModel):
    site_name: str | None = None
    meta_default_title: str | None = None
    meta_default_description: str | None = None
    announcement_bar: AnnouncementBar | None = None


# SEO

TwitterCard = Literal["summary", "summary_large_image"]


class SeoGlobalConfig(ContentModel):
    site_name: str
    title_template: str
    default_title: str
    default_description: str
    canonical_base: str
    og_image: str | None = None
    twitter_card: TwitterCard | None = None
    robots: str | None = None


class SeoOpenGraph(ContentModel):
    title: str | None = None
    description: str | None = None
    image: str | None = None
    type: str | None = None


class SeoTwitter(ContentModel):
    card: TwitterCard | None = None
    title: str | None = None
    description: str | None = None
    image: str | None = None


class SeoRouteConfig(ContentModel):
    page_title: str | None = None
    page_description: str | None = None
    canonical_path: str | None = None
    og_image: str | None = None
    robots: str | None = None
    title: str | None = None
    description: str | None = None
    canonical: str | None = None
    noindex: bool | None = None
    og: SeoOpenGraph | None = None
    twitter: SeoTwitter | None = None


class BrowserAssets(ContentModel):
    favicon: str | None = None
    apple_touch_icon: str | None = None
    theme_color: str | None = None
    manifest_name: str | None = None
    manifest_short_name: str | None = None


class RobotsContent(ContentModel):
    content: str


SEO_ROUTE_PREFIX = "seo:route:"
PRODUCT_PREFIX = "product:"

FIXED_KEY_SCHEMAS: dict[str, type[ContentModel]] = {
    "navigation": NavigationContent,
    "home": HomeContent,
    "footer": FooterContent,
    "waitlist": WaitlistContent,
    "global": GlobalContent,
    "seo:global": SeoGlobalConfig,
    "seo:assets": BrowserAssets,
    "seo:robots": RobotsContent,
}


def schema_for_key(key: str) -> type[ContentModel] | None:
    if key in FIXED_KEY_SCHEMAS:
        return FIXED_KEY_SCHEMAS[key]
    if key.startswith(PRODUCT_PREFIX) and len(key) > len(PRODUCT_PREFIX):
        return ProductPageContent
    if key.startswith(SEO_ROUTE_PREFIX) and len(key) > len(SEO_ROUTE_PREFIX):
        return SeoRouteConfig
    return None


def clean(schema: type[ContentModel], data: Any) -> dict:
    """Validate and return the document with unknown keys dropped. Raises ValidationError."""
    return schema.model_validate(data).model_dump(by_alias=True, exclude_unset=True)


def format_errors(exc: ValidationError) -> list[dict]:
    return [
        {"path": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
