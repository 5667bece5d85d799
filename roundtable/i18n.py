"""Labels for console output and exported transcripts."""

_TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "export.created": "Created",
        "discussion.topic": "Discussion Topic",
        "discussion.panel": "Expert Panel",
        "discussion.history": "Discussion",
        "discussion.complete": "Discussion Complete",
        "round.indicator": "Round",
        "round.consensus": "Consensus",
        "moderator.label": "Moderator",
        "moderator.placeholder": "Add your comment or question (Enter to skip)",
        "summary.title": "Discussion Summary",
        "summary.keyTakeaways": "Key Takeaways",
        "summary.actionItems": "Action Items",
        "summary.sentiment": "Sentiment",
        "summary.consensus": "Consensus Level",
        "summary.nextSteps": "Next Steps",
        "sentiment.positive": "Positive",
        "sentiment.neutral": "Neutral",
        "sentiment.mixed": "Mixed",
        "sentiment.negative": "Critical",
        "unknown.speaker": "Unknown",
    },
    "de": {
        "export.created": "Erstellt",
        "discussion.topic": "Diskussionsthema",
        "discussion.panel": "Experten-Panel",
        "discussion.history": "Diskussionsverlauf",
        "discussion.complete": "Diskussion abgeschlossen",
        "round.indicator": "Runde",
        "round.consensus": "Konsens",
        "moderator.label": "Moderator",
        "moderator.placeholder": "Fügen Sie Ihren Kommentar oder Ihre Frage hinzu (Enter zum Überspringen)",
        "summary.title": "Zusammenfassung",
        "summary.keyTakeaways": "Wichtigste Erkenntnisse",
        "summary.actionItems": "To-Dos / Action Items",
        "summary.sentiment": "Sentiment",
        "summary.consensus": "Konsens-Level",
        "summary.nextSteps": "Nächste Schritte",
        "sentiment.positive": "Positiv",
        "sentiment.neutral": "Neutral",
        "sentiment.mixed": "Gemischt",
        "sentiment.negative": "Kritisch",
        "unknown.speaker": "Unbekannt",
    },
}


def t(key: str, language: str = "en") -> str:
    """Label for key in language, falling back to English, then the key itself."""
    return _TRANSLATIONS.get(language, {}).get(key) or _TRANSLATIONS["en"].get(key) or key
