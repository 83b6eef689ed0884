"""Payment SDK domains, URL patterns, and other fixed reference data."""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Host suffixes
# ---------------------------------------------------------------------------

ADYEN_CDN_HOST_SUFFIX = ".cdn.adyen.com"
ADYEN_HOST_SUFFIX = ".adyen.com"
ADYEN_PAYMENTS_HOST_SUFFIX = ".adyenpayments.com"

# ---------------------------------------------------------------------------
# Checkout domains
# ---------------------------------------------------------------------------

# Static checkout assets (*.cdn.adyen.com)
ADYEN_CDN_DOMAINS: tuple[str, ...] = (
    "checkoutshopper-live-apse.cdn.adyen.com",
    "checkoutshopper-live-au.cdn.adyen.com",
    "checkoutshopper-live-in.cdn.adyen.com",
    "checkoutshopper-live-nea.cdn.adyen.com",
    "checkoutshopper-live-us.cdn.adyen.com",
    "checkoutshopper-live.cdn.adyen.com",
    "checkoutshopper-test.cdn.adyen.com",
)

# Checkoutshopper origins without the cdn label
ADYEN_CHECKOUTSHOPPER_DOMAINS: tuple[str, ...] = (
    "checkoutshopper-live-apse.adyen.com",
    "checkoutshopper-live-au.adyen.com",
    "checkoutshopper-live-in.adyen.com",
    "checkoutshopper-live-nea.adyen.com",
    "checkoutshopper-live-us.adyen.com",
    "checkoutshopper-live.adyen.com",
    "checkoutshopper-test.adyen.com",
)

ADYEN_API_DOMAINS: tuple[str, ...] = (
    "checkout-live-apse.adyenpayments.com",
    "checkout-live-au.adyenpayments.com",
    "checkout-live-in.adyenpayments.com",
    "checkout-live-nea.adyenpayments.com",
    "checkout-live-us.adyenpayments.com",
    "checkout-live.adyenpayments.com",
    "checkout-test.adyen.com",
)

ADYEN_ANALYTICS_DOMAINS: tuple[str, ...] = (
    "checkoutanalytics-live.adyen.com",
    "checkoutanalytics-test.adyen.com",
)

ANALYTICS_URL_PATTERNS: tuple[str, ...] = (
    "*://checkoutanalytics-live.adyen.com/*",
    "*://checkoutanalytics-test.adyen.com/*",
)

ALL_ADYEN_DOMAINS: tuple[str, ...] = (
    ADYEN_CDN_DOMAINS
    + ADYEN_CHECKOUTSHOPPER_DOMAINS
    + ADYEN_API_DOMAINS
    + ADYEN_ANALYTICS_DOMAINS
)

# ---------------------------------------------------------------------------
# Client key prefixes
# ---------------------------------------------------------------------------

CLIENT_KEY_TEST_PREFIX = "test_"
CLIENT_KEY_LIVE_PREFIX = "live_"
# Legacy origin key, deprecated in favour of client keys
ORIGIN_KEY_PREFIX = "pub.v2."

# ---------------------------------------------------------------------------
# Environment / region
# ---------------------------------------------------------------------------

ENVIRONMENT_REGION_MAP: dict[str, str] = {
    "checkout-live-apse.adyenpayments.com": "APSE",
    "checkout-live-au.adyenpayments.com": "AU",
    "checkout-live-in.adyenpayments.com": "IN",
    "checkout-live-nea.adyenpayments.com": "NEA",
    "checkout-live-us.adyenpayments.com": "US",
    "checkout-live.adyenpayments.com": "EU",
    "checkout-test.adyen.com": "EU",
    "checkoutshopper-live-apse.adyen.com": "APSE",
    "checkoutshopper-live-apse.cdn.adyen.com": "APSE",
    "checkoutshopper-live-au.adyen.com": "AU",
    "checkoutshopper-live-au.cdn.adyen.com": "AU",
    "checkoutshopper-live-in.adyen.com": "IN",
    "checkoutshopper-live-in.cdn.adyen.com": "IN",
    "checkoutshopper-live-nea.adyen.com": "NEA",
    "checkoutshopper-live-nea.cdn.adyen.com": "NEA",
    "checkoutshopper-live-us.adyen.com": "US",
    "checkoutshopper-live-us.cdn.adyen.com": "US",
    "checkoutshopper-live.adyen.com": "EU",
    "checkoutshopper-live.cdn.adyen.com": "EU",
    "checkoutshopper-test.adyen.com": "EU",
    "checkoutshopper-test.cdn.adyen.com": "EU",
}

# ---------------------------------------------------------------------------
# Translation locales shipped with the web SDK
# ---------------------------------------------------------------------------

SUPPORTED_LOCALES: frozenset[str] = frozenset(
    {
        "ar",
        "bg-BG",
        "ca-ES",
        "cs-CZ",
        "da-DK",
        "de-DE",
        "el-GR",
        "en-US",
        "es-ES",
        "et-EE",
        "fi-FI",
        "fr-FR",
        "hr-HR",
        "hu-HU",
        "is-IS",
        "it-IT",
        "ja-JP",
        "ko-KR",
        "lt-LT",
        "lv-LV",
        "nl-NL",
        "no-NO",
        "pl-PL",
        "pt-BR",
        "pt-PT",
        "ro-RO",
        "ru-RU",
        "sk-SK",
        "sl-SI",
        "sv-SE",
        "zh-CN",
        "zh-TW",
    }
)

LOCALES_SOURCE_URL = (
    "https://github.com/Adyen/adyen-web/tree/"
    "522975889a4287fe9c81cc138fcf3457e6bd5a6e/packages/server/translations"
)

# ---------------------------------------------------------------------------
# Request patterns
# ---------------------------------------------------------------------------

SESSIONS_API_PATTERN = re.compile(r"/v\d+/sessions")
API_FALLBACK_PATTERN = re.compile(r"/v\d+/(?:payments/details|paymentMethods)\b")

# Script URLs that suggest the SDK is present even before config is captured
SDK_SCRIPT_HINT = re.compile(r"checkoutshopper-|@adyen|adyen", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Third-party script patterns
# ---------------------------------------------------------------------------

SESSION_REPLAY_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Hotjar", re.compile(r"hotjar\.com|hjid|hjsv")),
    ("FullStory", re.compile(r"fullstory\.com|FS\.identify")),
    ("Microsoft Clarity", re.compile(r"clarity\.ms")),
    ("Mouseflow", re.compile(r"mouseflow\.com")),
    ("LogRocket", re.compile(r"logrocket\.com|LogRocket\.init")),
    ("Inspectlet", re.compile(r"inspectlet\.com")),
    ("Smartlook", re.compile(r"smartlook\.com")),
)

TAG_MANAGER_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Google Tag Manager", re.compile(r"googletagmanager\.com|gtm\.js")),
    ("Tealium", re.compile(r"tealiumiq\.com|utag\.js")),
    ("Adobe Launch", re.compile(r"assets\.adobedtm\.com")),
    ("Segment", re.compile(r"segment\.com|analytics\.js")),
)

ANALYTICS_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Google Analytics", re.compile(r"google-analytics\.com/analytics\.js|gtag/js")),
    ("GA4", re.compile(r"googletagmanager\.com/gtag/js")),
)

AD_PIXEL_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Meta Pixel", re.compile(r"connect\.facebook\.net|fbq\(")),
    ("TikTok Pixel", re.compile(r"analytics\.tiktok\.com")),
    ("LinkedIn Insight", re.compile(r"snap\.licdn\.com")),
    ("Twitter/X Pixel", re.compile(r"static\.ads-twitter\.com")),
)

# ---------------------------------------------------------------------------
# Risk module
# ---------------------------------------------------------------------------

DF_IFRAME_NAME = "dfIframe"
DF_IFRAME_URL_PATTERN = re.compile(r"dfp\.[^/]+\.html")

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

SCAN_RESULT_KEY_PREFIX = "scan-result:"


def scan_result_key(tab_id: int) -> str:
    return f"{SCAN_RESULT_KEY_PREFIX}{tab_id}"
