"""Instruction prompt and response schema for OCR calls."""

OCR_PROMPT = """Extract text from the document with high accuracy.
Maintain original layout, paragraph breaks, and indentations.
Correct OCR errors while preserving meaning.
Return strictly JSON."""

# Gemini response schema; field names match the camelCase wire format.
OCR_RESPONSE_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "rawText": {
            "type": "STRING",
            "description": "Initial raw extraction.",
        },
        "correctedText": {
            "type": "STRING",
            "description": "Corrected text with preserved structure.",
        },
        "corrections": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "original": {"type": "STRING"},
                    "fixed": {"type": "STRING"},
                    "reason": {"type": "STRING"},
                },
                "required": ["original", "fixed", "reason"],
            },
        },
        "language": {"type": "STRING"},
        "confidence": {"type": "NUMBER"},
    },
    "required": ["rawText", "correctedText", "corrections", "language"],
}
