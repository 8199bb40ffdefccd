"""Gemini responseSchema definitions (OpenAPI subset) for structured calls."""

from typing import Any, Dict, Iterable


def _string_fields(names: Iterable[str]) -> Dict[str, Any]:
    return {name: {"type": "STRING"} for name in names}


TECHPACK_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "docs": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "part": {
                        "type": "STRING",
                        "description": "TOP, BOTTOM, DRESS, or SETUP",
                    },
                    "details": {
                        "type": "OBJECT",
                        "properties": _string_fields(
                            [
                                "stitching",
                                "seamFinishing",
                                "pocketConstruction",
                                "neck",
                                "closure",
                                "hem",
                                "etc",
                            ]
                        ),
                    },
                    "measurement": {
                        "type": "OBJECT",
                        "description": "Finished garment measurements (Points of Measure)",
                        "properties": _string_fields(
                            [
                                # Common / Top
                                "totalLength",
                                "shoulderWidth",
                                "chestWidth",
                                "waistWidth",
                                "hemWidth",
                                "sleeveLength",
                                "armhole",
                                "cuffOpening",
                                "neckWidth",
                                "frontDrop",
                                # Bottom
                                "hipWidth",
                                "thighWidth",
                                "kneeWidth",
                                "frontRise",
                                "backRise",
                                "inseam",
                                "outseam",
                                "legOpening",
                            ]
                        ),
                    },
                    "materials": {
                        "type": "OBJECT",
                        "properties": _string_fields(
                            ["mainFabric", "composition", "subMaterial"]
                        ),
                    },
                    "designSummary": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "factoryRecommendations": {
                        "type": "ARRAY",
                        "items": {
                            "type": "OBJECT",
                            "properties": _string_fields(["name", "location", "reason"]),
                        },
                    },
                    "sourceMeasurements": {
                        "type": "OBJECT",
                        "properties": _string_fields(
                            ["height", "chest", "waist", "shoulder"]
                        ),
                    },
                },
                "required": ["part"],
            },
        }
    },
    "required": ["docs"],
}

NEWS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "articles": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    **_string_fields(["title", "url", "source", "date"]),
                    "summary": {
                        "type": "STRING",
                        "description": "A comprehensive 3-4 sentence professional intelligence report.",
                    },
                    "features": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "thumbnail": {
                        "type": "STRING",
                        "description": "A valid image URL for the product/article if found.",
                    },
                },
            },
        }
    },
}

MARKET_REACTION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "fundingRate": {
            "type": "INTEGER",
            "description": "Predicted funding/pre-order percentage goal reached (e.g. 120, 85)",
        },
        "currentAmount": {
            "type": "INTEGER",
            "description": "Simulated sales amount in dollars",
        },
        "targetAmount": {"type": "INTEGER", "description": "Target sales goal"},
        "backers": {
            "type": "INTEGER",
            "description": "Number of people who pre-ordered",
        },
        "chips": {"type": "ARRAY", "items": {"type": "STRING"}},
        "feedback": {
            "type": "OBJECT",
            "properties": _string_fields(["complaint", "praise"]),
        },
        "demographics": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "label": {"type": "STRING"},
                    "percent": {"type": "INTEGER"},
                },
            },
        },
    },
}


__all__ = ["TECHPACK_SCHEMA", "NEWS_SCHEMA", "MARKET_REACTION_SCHEMA"]
