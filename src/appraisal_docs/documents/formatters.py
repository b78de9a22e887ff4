"""Plain-text renderers for appraisal values and container placeholders.

Google Docs replaceAllText inserts literal text, so the summary card and the
statistics section are laid out as text lines rather than markup.
"""

import re
from datetime import datetime

MAX_AUCTION_RESULTS = 10


def format_percentage(value) -> str:
    """45 → '45%', '45%' → '45%', blank → 'N/A'."""
    if value is None or value == "":
        return "N/A"
    text = str(value).strip()
    if text.endswith("%"):
        return text
    try:
        number = float(text)
    except ValueError:
        return "N/A"
    return f"{number:g}%"


def format_currency(value) -> str:
    """Format as whole US dollars: 1234.6 → '$1,235', '$12,000' → '$12,000'."""
    if value is None or value == "":
        return "N/A"
    if isinstance(value, str):
        cleaned = re.sub(r"[^\d.-]", "", value)
        try:
            number = float(cleaned)
        except ValueError:
            return "N/A"
    else:
        number = float(value)
    sign = "-" if number < 0 else ""
    return f"{sign}${abs(number):,.0f}"


def _humanize_key(key: str) -> str:
    key = key.strip().replace("_", " ")
    key = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", key)
    return re.sub(r"\s+", " ", key).strip()


def format_summary_field(text: str) -> str:
    """Lay out a '*_summary' value that carries key: value pairs.

    '- a - b' becomes bullet lines; 'Key_Name: v - Other: w' becomes
    'Key Name: v' / 'Other: w' paragraphs.
    """
    if ":" not in text:
        return text

    if text.strip().startswith("-"):
        items = [item.strip() for item in text.split("-") if item.strip()]
        if not items:
            return text
        return "\n\n".join(f"• {item}" for item in items)

    lines = [line.strip() for line in re.split(r"[\n\r-]", text) if line.strip()]
    formatted = []
    for line in lines:
        colon = line.find(":")
        if colon > 0:
            formatted.append(f"{_humanize_key(line[:colon])}: {line[colon + 1:].strip()}")
        else:
            formatted.append(line)
    return "\n\n".join(formatted)


def build_appraisal_card(metadata: dict) -> str:
    """Render the {{appraisal_card}} summary block."""
    title = metadata.get("title") or "Untitled"
    creator = metadata.get("creator") or "Unknown Artist"
    object_type = metadata.get("object_type") or "Art Object"
    estimated_age = metadata.get("estimated_age") or "Unknown"
    medium = metadata.get("medium") or "Unknown"
    condition = metadata.get("condition_summary") or "Not assessed"
    value = metadata.get("appraisal_value") or "Not determined"

    return "\n".join([
        "APPRAISAL SUMMARY",
        f"Item Title: {title}",
        f"Artist/Creator: {creator}",
        f"Object Type: {object_type}    Period/Age: {estimated_age}",
        f"Medium: {medium}    Condition: {condition}",
        f"APPRAISED VALUE: {value}",
        "",
        "MARKET METRICS",
        f"Market Demand: {format_percentage(metadata.get('market_demand'))}    "
        f"Rarity: {format_percentage(metadata.get('rarity'))}    "
        f"Condition Score: {format_percentage(metadata.get('condition_score'))}",
    ])


def _format_auction_date(raw) -> str:
    if not raw:
        return "Unknown"
    try:
        parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return str(raw)
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def build_statistics_section(
    statistics: dict | None,
    justification: dict | None = None,
    metadata: dict | None = None,
) -> str:
    """Render the {{statistics_section}} block: market figures, narrative, comparables."""
    statistics = statistics or {}
    justification = justification or {}
    metadata = metadata or {}

    count = statistics.get("count") or "N/A"
    if statistics.get("average_price"):
        mean = format_currency(statistics["average_price"])
    elif statistics.get("mean"):
        mean = format_currency(statistics["mean"])
    else:
        mean = "N/A"
    median = format_currency(statistics["median_price"]) if statistics.get("median_price") else "N/A"
    percentile = statistics.get("percentile") or "N/A"
    confidence = statistics.get("confidence_level") or "Low"
    if statistics.get("price_min") and statistics.get("price_max"):
        price_range = f"{format_currency(statistics['price_min'])} - {format_currency(statistics['price_max'])}"
    else:
        price_range = "Not available"

    summary_text = (
        metadata.get("statistics_summary_text")
        or statistics.get("summary_text")
        or "Market statistics analysis is based on comparable items."
    )
    justification_text = (
        justification.get("explanation")
        or "No detailed justification available for this appraisal."
    )

    lines = [
        "Market Statistics & Valuation Analysis",
        f"Sample Size: {count}    Average Price: {mean}",
        f"Median Price: {median}    Price Range: {price_range}",
        f"Value Percentile: {percentile}    Market Confidence: {confidence}",
        "",
        "Statistical Market Analysis",
        summary_text,
        "",
        "Valuation Justification",
        justification_text,
    ]

    auction_results = metadata.get("top_auction_results") or justification.get("auctionResults")
    if not isinstance(auction_results, list):
        auction_results = []
    auction_results = [result for result in auction_results if isinstance(result, dict)]
    if auction_results:
        lines += ["", "Comparable Market Results", "Item | Auction House | Date | Price"]
        for result in auction_results[:MAX_AUCTION_RESULTS]:
            price = format_currency(result["price"]) if result.get("price") else "N/A"
            diff = f" ({result['diff']})" if result.get("diff") else ""
            marker = " (this item)" if result.get("is_current") else ""
            lines.append(
                f"{result.get('title') or 'Unknown Item'}{marker} | "
                f"{result.get('house') or 'Unknown'} | "
                f"{_format_auction_date(result.get('date'))} | {price}{diff}"
            )

    lines += [
        "",
        f"Note: Statistics based on {count} comparable items from auction records and market data. "
        "The appraisal value represents the fair market value as determined by expert analysis and "
        "comparable sales data at the time of appraisal.",
    ]
    return "\n".join(lines)
