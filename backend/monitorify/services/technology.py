"""Website technology detection from URL, HTML and response headers."""
import re
from typing import Callable, Dict, List, Mapping, Protocol, Tuple


class TechnologyClassifier(Protocol):
    """Classifies the stack a page was built with."""

    def classify(self, url: str, html: str, headers: Mapping[str, str]) -> Dict[str, object]: ...


_SHOPIFY_META_RE = re.compile(r"<meta[^>]+name=[\"']shopify-")
_SHOPIFY_RUNTIME_RE = re.compile(r"window\.shopify|shopify\.theme|shopify\.routes")


class _Haystack:
    """Lower-cased search material for one page."""

    def __init__(self, url: str, html: str, headers: Mapping[str, str]):
        self.headers = {str(k).lower(): str(v) for k, v in (headers or {}).items()}
        headers_dump = "\n".join(f"{k}:{v}" for k, v in self.headers.items()).lower()
        # Body text is last so header/URL evidence is found first
        self.text = f"{(url or '').lower()}\n{headers_dump}\n{(html or '').lower()}"

    def has(self, *needles: str) -> bool:
        return any(n in self.text for n in needles)

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def header_startswith(self, prefix: str) -> bool:
        return any(k.startswith(prefix) for k in self.headers)

    def header_contains(self, name: str, needle: str) -> bool:
        return needle in self.headers.get(name, "").lower()


Rule = Tuple[str, int, Callable[[_Haystack], bool]]

# (technology, score, predicate). Highest score per technology wins.
RULES: List[Rule] = [
    # CMS / site builders
    ("Webflow", 10, lambda h: h.has("website-files.com")),
    ("Webflow", 9, lambda h: h.has("webflow.js")),
    ("Webflow", 8, lambda h: h.has("data-wf-site", "data-wf-page")),
    ("Webflow", 6, lambda h: h.has("w-webflow-badge", "w-nav", "w-inline-block")),
    ("Webflow", 7, lambda h: h.has('name="generator"') and h.has("webflow")),
    ("WordPress", 10, lambda h: h.has("wp-content", "wp-includes")),
    ("WordPress", 7, lambda h: h.has("/wp-json/")),
    ("WordPress", 8, lambda h: h.has('name="generator"') and h.has("wordpress")),
    ("Wix", 10, lambda h: h.has("wixsite.com", "wixstatic.com")),
    ("Squarespace", 10, lambda h: h.has("squarespace.com", "static.squarespace.com")),
    ("Framer", 10, lambda h: h.has("framerusercontent.com", "framer.com/m/")),
    # Shopify only on store-level signals, never on the bare word
    ("Shopify", 12, lambda h: (
        h.has("cdn.shopify.com", "myshopify.com", "shopifycloud.com")
        or bool(_SHOPIFY_META_RE.search(h.text))
        or bool(_SHOPIFY_RUNTIME_RE.search(h.text))
        or h.header_startswith("x-shopify-")
        or h.header_contains("server", "shopify")
        or h.header_contains("via", "shopify")
    )),
    ("Magento", 9, lambda h: h.has("mage/cookies", "magento")),
    ("BigCommerce", 9, lambda h: h.has("cdn.bc0a.com", "bigcommerce")),
    # Frameworks
    ("Next.js", 9, lambda h: h.has("__next_data__", "/_next/")),
    ("Next.js", 6, lambda h: h.has("next-head-count")),
    ("Nuxt", 8, lambda h: h.has("__nuxt", "/_nuxt/")),
    ("Gatsby", 7, lambda h: h.has("gatsby") and h.has("webpackchunk", "__gatsby")),
    ("React", 6, lambda h: h.has("data-reactroot", "react-dom", "__react_devtools_global_hook__")),
    ("Vue", 6, lambda h: h.has("data-v-", "__vue__")),
    ("SvelteKit", 8, lambda h: h.has("sveltekit", "/_app/immutable/")),
    # Backend hints
    ("PHP", 4, lambda h: h.header_contains("x-powered-by", "php") or h.has(".php")),
    ("Laravel", 7, lambda h: h.has("laravel_session") or h.header_contains("x-powered-by", "laravel")),
    ("ASP.NET", 7, lambda h: h.has_header("x-aspnet-version") or h.has("asp.net")),
]


class HeuristicTechnologyClassifier:
    """Score-based signature matching."""

    def __init__(self, rules: List[Rule] = None):
        self.rules = rules if rules is not None else RULES

    def classify(self, url: str, html: str, headers: Mapping[str, str]) -> Dict[str, object]:
        haystack = _Haystack(url, html, headers)

        best: Dict[str, int] = {}
        for name, score, predicate in self.rules:
            if predicate(haystack) and score > best.get(name, 0):
                best[name] = score

        # Stable sort keeps rule order for ties
        detected = [name for name, _ in sorted(best.items(), key=lambda item: -item[1])]
        return {
            "primary": detected[0] if detected else "Unknown",
            "detected": detected,
        }
