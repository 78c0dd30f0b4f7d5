"""Instruction text sent with every title/keyword request."""

KEYWORD_TARGET = 45


def build_instruction(keyword_target: int = KEYWORD_TARGET) -> str:
    """Return the fixed instruction asking for one title and single-word keywords."""
    return (
        "Based on this image, generate a trendy, appealing title following general Adobe Stock "
        "guidelines (e.g., descriptive, unique, marketable). "
        f"Also, provide approximately {keyword_target} single-word keywords highly relevant to the image content. "
        "Ensure keywords are distinct and represent key elements, concepts, and styles present in the image. "
        "Use only single words."
    )
