"""Rewriter-backed analysis: topic tags, phish cues, chunked tagging and protected translation"""

import json
import logging
import re

from contentpipe.core.errors import ExternalServiceError, ValidationError
from contentpipe.core.models import EmailAnalysis
from contentpipe.core.taxonomy import ALLOWED_TAGS, TITLE_KEYWORDS, all_cue_names, cue_prompt, parse_difficulty
from contentpipe.core.transform.chunk import join_chunks, split_html
from contentpipe.core.transform.protect import protect, restore
from contentpipe.core.transform.tokenize import detokenize, tokenize
from contentpipe.services.rewriter import ContentRewriter


logger = logging.getLogger(__name__)

MAX_ANALYSIS_CHARS = 50_000

LANGUAGE_NAMES = {
    "en": "English", "es": "Spanish", "fr": "French", "de": "German",
    "pt": "Portuguese", "pt-br": "Portuguese (Brazil)", "ar": "Arabic",
    "ja": "Japanese", "ko": "Korean", "it": "Italian", "nl": "Dutch",
    "zh": "Chinese (Simplified)", "zh-tw": "Chinese (Traditional)",
    "ru": "Russian", "pl": "Polish", "sv": "Swedish", "da": "Danish",
    "fi": "Finnish", "nb": "Norwegian", "tr": "Turkish", "he": "Hebrew",
    "th": "Thai", "vi": "Vietnamese", "hi": "Hindi",
}
RTL_LANGUAGES = ("ar", "he")

_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_FENCE_RE = re.compile(r"```(?:html)?\s*\n?(.*?)\n?```", re.DOTALL)
_HTML_START_RE = re.compile(r"^\s*(<(!DOCTYPE|html|head|body|div|form|script|style|!--|meta|link))", re.IGNORECASE)
_TITLE_RE = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_JSON_ARRAY_RE = re.compile(r"\[.*?\]", re.DOTALL)
_DATA_TAG_RE = re.compile(r'data-tag="([^"]+)"')
_DATA_CUE_RE = re.compile(r'data-cue="([^"]+)"')
_DIFFICULTY_RE = re.compile(r"^DIFFICULTY:\s*(.+?)$", re.IGNORECASE | re.MULTILINE)
_DIFFICULTY_LINE_RE = re.compile(r"^DIFFICULTY:\s*.+?(\n|$)", re.IGNORECASE | re.MULTILINE)

ANALYZE_SYSTEM = (
    "You are an expert at analyzing educational content about cybersecurity and phishing awareness. "
    "Your task is to identify the core learning objectives and security topics in the provided HTML content.\n\n"
    "Return a JSON array of tags from the ALLOWED LIST below that best match the content topics.\n\n"
    "ALLOWED TAGS:\n{tags}\n\n"
    "RULES:\n"
    "1. Only use tags from the allowed list above\n"
    "2. Return 1-5 tags that best describe the main topics\n"
    "3. Return ONLY the JSON array, no explanation (e.g., [\"passwords\", \"social-media\"])\n"
    "4. If no topics match, return an empty array: []"
)

TAG_SYSTEM = (
    "You are an expert at analyzing educational content and identifying key assessment elements. "
    "Your task is to SELECTIVELY add data-tag attributes ONLY to the most important interactive elements "
    "that represent core learning objectives or assessments.\n\n"
    "ALLOWED TAGS (use ONLY these tags):\n{tags}\n\n"
    "CRITICAL RULES - FOLLOW EXACTLY:\n"
    "1. ONLY add data-tag attributes to interactive elements (inputs, buttons, selects, textareas, clickable elements)\n"
    "2. Tag values MUST be one of the allowed tags listed above\n"
    "3. Make ZERO other changes to the HTML: keep formatting, attributes, text, comments and encoding exactly\n"
    "4. Leave every __ASSET_REF_NNNN__ and __PROTECTED_BLOCK_NNNN__ token exactly where it is\n"
    "5. Return the COMPLETE HTML with ONLY data-tag attributes added, no markdown or explanation\n"
    "6. If this appears to be a partial HTML chunk, process it as-is"
)

CUE_SYSTEM = (
    "You are an expert at analyzing phishing emails using the NIST Phishing Scale methodology. "
    "Your task is to identify phishing indicators and add data-cue attributes to mark them.\n\n"
    "PHISHING CUE TYPES AND CRITERIA:\n{cues}\n"
    "NIST Phish Scale Difficulty Ratings:\n"
    "- Least Difficult (\"least\"): Multiple obvious red flags, amateur mistakes, very easy to detect\n"
    "- Moderately Difficult (\"moderately\"): Some red flags but requires closer inspection, decent attempt\n"
    "- Very Difficult (\"very\"): Sophisticated, few obvious indicators, requires expert knowledge to detect\n\n"
    "Rules:\n"
    "1. Add data-cue=\"cue-name\" attributes to elements containing phishing indicators, using the exact cue names above\n"
    "2. On the FIRST line, output: DIFFICULTY:X (where X is one of: \"least\", \"moderately\", \"very\")\n"
    "3. Then output the complete HTML with data-cue attributes added and nothing else changed\n"
    "4. Only add cues where the criteria are clearly met in the email content"
)

TRANSLATE_SYSTEM = (
    "You are an expert translator specializing in web content localization. "
    "Translate the following HTML content from {source} to {target}.\n\n"
    "CRITICAL RULES:\n"
    "1. Translate ONLY human-readable text content and alt attributes\n"
    "2. Preserve ALL HTML tags, attributes, and structure exactly as-is\n"
    "3. Preserve ALL placeholder tokens (e.g. __ASSET_REF_XXXX__, __PROTECTED_BLOCK_XXXX__)\n"
    "4. Preserve ALL data-cue, data-tag, data-basename, and other data-* attributes unchanged\n"
    "5. Preserve ALL inline styles, classes, and IDs unchanged\n"
    "6. Preserve ALL placeholder text like RECIPIENT_EMAIL_ADDRESS, CURRENT_YEAR, FROM_EMAIL_ADDRESS, etc.\n"
    "7. Maintain the same tone and formality level as the original\n"
    "8. Return ONLY the translated HTML, without explanations or markdown\n"
)


# --- response cleanup ---

def strip_code_fences(text: str) -> str:
    """Unwrap a response that came back inside a markdown code fence."""
    if not text.lstrip().startswith("```"):
        return text.strip()
    return _FENCE_RE.sub(r"\1", text).strip()


def extract_html_only(text: str) -> str:
    """Drop explanatory prose the rewriter wrapped around its HTML."""
    if _HTML_START_RE.match(text):
        for closing in ("</html>", "</body>"):
            m = re.match(rf"(.*?{closing}\s*)(?:[^<]|$)", text, re.IGNORECASE | re.DOTALL)
            if m:
                return m.group(1).strip()
    m = re.search(r"<.*>", text, re.DOTALL)
    return m.group(0).strip() if m else text.strip()


def _clean_response(response: str, original: str) -> str:
    """Rewriter output trimmed to HTML, keeping the whitespace that framed the original."""
    text = strip_code_fences(response)
    body = original.strip()
    if body.startswith("<") and body.endswith(">"):
        text = extract_html_only(text)
    lead = original[:len(original) - len(original.lstrip())]
    trail = original[len(original.rstrip()):]
    return lead + text.strip() + trail


def clean_for_analysis(html: str) -> str:
    """Scripts, styles and comments removed, whitespace collapsed, capped for prompt size."""
    text = _COMMENT_RE.sub("", _STYLE_RE.sub("", _SCRIPT_RE.sub("", html)))
    text = re.sub(r"\s+", " ", text).strip()
    if len(text) > MAX_ANALYSIS_CHARS:
        logger.info("Analysis input truncated from %d to %d chars", len(text), MAX_ANALYSIS_CHARS)
        text = text[:MAX_ANALYSIS_CHARS]
    return text


def _check_ratio(label: str, output: str, size: int, truncation_ratio: float) -> bool:
    """Log a warning and return False when output shrank below truncation_ratio of size."""
    ratio = len(output) / size if size else 1.0
    if ratio < truncation_ratio:
        logger.warning(
            "%s output is %d chars vs %d input (%.1f%%); response may be truncated",
            label, len(output), size, ratio * 100,
        )
        return False
    return True


def _allowed(values, vocabulary) -> list[str]:
    """Distinct values in first-seen order, restricted to vocabulary."""
    return [v for v in dict.fromkeys(values) if v in vocabulary]


# --- topic tags ---

def analyze_html(html: str, rewriter: ContentRewriter) -> list[str]:
    """Ask for a JSON array of topic tags; any failure degrades to no tags."""
    cleaned = clean_for_analysis(html)
    logger.debug("Analysis input reduced from %d to %d chars", len(html), len(cleaned))
    system = ANALYZE_SYSTEM.format(tags=", ".join(ALLOWED_TAGS))
    prompt = "Analyze this educational content and return matching tags as a JSON array:\n\n" + cleaned
    try:
        response = rewriter.rewrite(prompt, system)
    except ExternalServiceError as e:
        logger.warning("Topic analysis failed, continuing without tags: %s", e)
        return []

    m = _JSON_ARRAY_RE.search(response)
    if m:
        try:
            values = json.loads(m.group(0))
        except json.JSONDecodeError:
            values = None
        if isinstance(values, list):
            tags = _allowed((v for v in values if isinstance(v, str)), ALLOWED_TAGS)
            logger.info("Topic analysis found %d tag(s): %s", len(tags), ", ".join(tags))
            return tags
    logger.warning("Could not parse tags from analysis response: %.200s", response)
    return []


def keyword_tags(html: str) -> list[str]:
    """Title keywords, for content that skips model analysis."""
    m = _TITLE_RE.search(html)
    if not m:
        return []
    title = m.group(1).strip().lower()
    return [keyword for keyword in TITLE_KEYWORDS if keyword in title]


def tag_html(
    html: str,
    rewriter: ContentRewriter,
    max_content_size: int = 500_000,
    truncation_ratio: float = 0.8,
    ) -> tuple[str, list[str]]:
    """Have the rewriter add data-tag attributes with scripts, links and URLs shielded.

    Content over max_content_size is returned unchanged with no tags. A rewrite
    failure raises ExternalServiceError.
    """
    size = len(html)
    if size > max_content_size:
        logger.info("Content size %d exceeds max_content_size %d; skipping tagging", size, max_content_size)
        return html, []

    protected, blocks = protect(html)
    tokenized, refs = tokenize(protected)
    logger.info("Tagging %d chars with %d protected block(s) and %d reference(s)", size, len(blocks), len(refs))

    system = TAG_SYSTEM.format(tags=", ".join(ALLOWED_TAGS))
    prompt = (
        "Add data-tag attributes to interactive elements in this HTML. Make NO other changes whatsoever. "
        "Return ONLY the HTML with data-tag attributes added:\n\n" + tokenized
    )
    tagged = _clean_response(rewriter.rewrite(prompt, system), tokenized)
    tagged = restore(detokenize(tagged, refs), blocks)

    _check_ratio("Tagged", tagged, size, truncation_ratio)
    return tagged, _allowed(_DATA_TAG_RE.findall(tagged), ALLOWED_TAGS)


def process_in_chunks(
    html: str,
    rewriter: ContentRewriter,
    max_size: int = 50_000,
    max_content_size: int = 500_000,
    truncation_ratio: float = 0.8,
    ) -> tuple[str, list[str]]:
    """Tag html chunk by chunk; a failed chunk is kept as it was. Tags are unioned in order."""
    chunks = split_html(html, max_size)
    rewritten: list[str] = []
    tags: list[str] = []
    for chunk in chunks:
        try:
            out, chunk_tags = tag_html(chunk.content, rewriter, max_content_size, truncation_ratio)
        except ExternalServiceError as e:
            logger.warning("Chunk %d/%d failed, keeping original: %s", chunk.position + 1, len(chunks), e)
            out, chunk_tags = chunk.content, []
        rewritten.append(out)
        tags.extend(t for t in chunk_tags if t not in tags)
    return join_chunks(rewritten), tags


# --- phish cues ---

def tag_phishing_email(html: str, rewriter: ContentRewriter, truncation_ratio: float = 0.8) -> EmailAnalysis:
    """Cue names and difficulty for an email, with scripts, links and URLs shielded from the rewriter.

    The returned html carries the data-cue attributes, or is the input unchanged
    when the response looks truncated.
    """
    protected, blocks = protect(html)
    tokenized, refs = tokenize(protected)

    system = CUE_SYSTEM.format(cues=cue_prompt())
    prompt = (
        "Add data-cue attributes to phishing indicators in this email using the standardized cue names, "
        "and assess its difficulty level. First line must be DIFFICULTY:X (\"least\", \"moderately\", \"very\"), "
        "then the modified HTML:\n\n" + tokenized
    )
    response = rewriter.rewrite(prompt, system)

    analysis = EmailAnalysis(html=html)
    m = _DIFFICULTY_RE.search(response)
    if m:
        analysis.difficulty = parse_difficulty(m.group(1))
        response = _DIFFICULTY_LINE_RE.sub("", response, count=1)

    tagged = _clean_response(response, tokenized)
    analysis.cues = _allowed(_DATA_CUE_RE.findall(tagged), all_cue_names())
    if _check_ratio("Cue-tagged", tagged, len(tokenized), truncation_ratio):
        analysis.html = restore(detokenize(tagged, refs), blocks)
    logger.info("Email analysis: %d cue(s), difficulty %s", len(analysis.cues), analysis.difficulty.value)
    return analysis


# --- translation ---

def translate_html(
    html: str,
    rewriter: ContentRewriter,
    target: str,
    source: str = "en",
    max_content_size: int = 500_000,
    ) -> str:
    """Translate prose while scripts, links and URLs ride through as tokens."""
    target, source = target.lower(), source.lower()
    for code in (target, source):
        if code not in LANGUAGE_NAMES:
            raise ValidationError(f"Unsupported language: {code}", items=[code])
    if len(html) > max_content_size:
        raise ValidationError(f"Content size ({len(html)} chars) exceeds maximum for translation")

    protected, blocks = protect(html)
    tokenized, refs = tokenize(protected)

    system = TRANSLATE_SYSTEM.format(source=LANGUAGE_NAMES[source], target=LANGUAGE_NAMES[target])
    if target in RTL_LANGUAGES:
        system += '9. Add dir="rtl" to the root <html> or outermost <div> element for right-to-left display\n'
    prompt = (
        f"Translate this HTML from {LANGUAGE_NAMES[source]} to {LANGUAGE_NAMES[target]}. "
        f"Return ONLY the translated HTML:\n\n{tokenized}"
    )
    translated = _clean_response(rewriter.rewrite(prompt, system), tokenized)
    logger.info("Translated %d chars %s -> %s (%d chars out)", len(html), source, target, len(translated))
    return restore(detokenize(translated, refs), blocks)
