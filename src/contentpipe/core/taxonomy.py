"""Controlled vocabularies: topic tags, NIST Phish Scale cues and difficulty levels"""

from dataclasses import dataclass

from contentpipe.core.models import Difficulty


ALLOWED_TAGS = (
    "brand-impersonation", "compliance", "emotions", "financial-transactions", "cloud",
    "mobile", "news-and-events", "office-communications", "passwords", "reporting",
    "safe-web-browsing", "shipment-and-deliveries", "small-medium-businesses", "social-media",
    "spear-phishing", "data-breach", "malware", "mfa", "personal-security", "physical-security",
    "ransomware", "shared-file", "bec-ceo-fraud", "credential-phish", "qr-codes", "url-phish",
)

# Title keywords used to tag content too large (or too opaque) for model analysis.
TITLE_KEYWORDS = ("phishing", "ransomware", "malware", "password", "security", "privacy", "email")


@dataclass(frozen=True)
class Cue:
    name:     str
    label:    str
    criteria: str


@dataclass(frozen=True)
class CueType:
    type:  str
    color: str
    cues:  tuple[Cue, ...]


CUE_TYPES = (
    CueType("Error", "#EF4444", (
        Cue("spelling-grammar", "Spelling & Grammar",
            "Does the message contain inaccurate spelling or grammar use, including mismatched plurality?"),
        Cue("inconsistency", "Inconsistency",
            "Are there inconsistencies contained in the email message?"),
    )),
    CueType("Technical indicator", "#F59E0B", (
        Cue("attachment-type", "Attachment Type",
            "Is there a potentially dangerous attachment?"),
        Cue("display-name-email-mismatch", "Display Name / Email Mismatch",
            "Does a display name hide the real sender or reply-to email address?"),
        Cue("url-hyperlinking", "URL Hyperlinking",
            "Is there text that hides the true URL behind the text?"),
        Cue("domain-spoofing", "Domain Spoofing",
            "Is a domain name used in addresses or links plausibly similar to a legitimate entity's domain?"),
    )),
    CueType("Visual presentation indicator", "#8B5CF6", (
        Cue("no-minimal-branding", "No / Minimal Branding",
            "Are appropriately branded labeling, symbols, or insignias missing?"),
        Cue("logo-imitation-outdated", "Logo Imitation / Outdated",
            "Do any branding elements appear to be an imitation or out-of-date?"),
        Cue("unprofessional-design", "Unprofessional Design",
            "Does the design and formatting violate any conventional professional practices? "
            "Do the design elements appear to be unprofessionally generated?"),
        Cue("security-indicators-icons", "Security Indicators / Icons",
            "Are any markers, images, or logos that imply the security of the email present?"),
    )),
    CueType("Language and content", "#3B82F6", (
        Cue("legal-language-disclaimers", "Legal Language & Disclaimers",
            "Does the message contain any legal-type language such as copyright information, "
            "disclaimers, or tax information?"),
        Cue("distracting-detail", "Distracting Detail",
            "Does the email contain details that are superfluous or unrelated to the email's main premise?"),
        Cue("requests-sensitive-info", "Requests Sensitive Info",
            "Does the message contain a request for any sensitive information, including personally "
            "identifying information or credentials?"),
        Cue("sense-of-urgency", "Sense of Urgency",
            "Does the message contain time pressure to get users to quickly comply with the request, "
            "including implied pressure?"),
        Cue("threatening-language", "Threatening Language",
            "Does the message contain a threat, including an implied threat, such as legal ramifications for inaction?"),
        Cue("generic-greeting", "Generic Greeting",
            "Does the message lack a greeting or lack personalization in the message?"),
        Cue("lack-signer-details", "Lack of Signer Details",
            "Does the message lack detail about the sender, such as contact information?"),
        Cue("humanitarian-appeals", "Humanitarian Appeals",
            "Does the message make an appeal to help others in need?"),
    )),
    CueType("Common tactic", "#10B981", (
        Cue("too-good-to-be-true", "Too Good to Be True",
            "Does the message offer anything that is too good to be true, such as winning a contest, "
            "lottery, free vacation and so on?"),
        Cue("youre-special", "You're Special",
            "Does the email offer anything just for you, such as a valentine e-card from a secret admirer?"),
        Cue("limited-time-offer", "Limited Time Offer",
            "Does the email offer anything that won't last long or for a limited length of time?"),
        Cue("mimics-business-process", "Mimics Business Process",
            "Does the message appear to be a work or business-related process, such as a new voicemail, "
            "package delivery, order confirmation, notice to reset credentials and so on?"),
        Cue("poses-as-authority", "Poses as Authority",
            "Does the message appear to be from a friend, colleague, boss or other authority entity?"),
    )),
)

DIFFICULTY_LEVELS = {
    Difficulty.least: ("Least Difficult", "Multiple obvious red flags, amateur mistakes, very easy to detect"),
    Difficulty.moderately: ("Moderately Difficult", "Some red flags but requires closer inspection, decent attempt"),
    Difficulty.very: ("Very Difficult", "Sophisticated, few obvious indicators, requires expert knowledge to detect"),
}


def all_cue_names() -> list[str]:
    return [cue.name for cue_type in CUE_TYPES for cue in cue_type.cues]


def cue_prompt() -> str:
    """Cue catalogue rendered as the indented list the tagging prompt embeds."""
    lines = []
    for cue_type in CUE_TYPES:
        lines.append(f"\n{cue_type.type}:")
        lines.extend(f"  - {cue.name}: {cue.criteria}" for cue in cue_type.cues)
    return "\n".join(lines) + "\n"


def parse_difficulty(text: str) -> Difficulty:
    """Map free text like 'Very Difficult' onto a Difficulty; anything unclear is moderately."""
    text = text.lower()
    if "least" in text:
        return Difficulty.least
    if "very" in text:
        return Difficulty.very
    return Difficulty.moderately
