"""Instruction validation for image generation and editing.

Validates instruction text before sending to the Gemini API.
"""

MAX_INSTRUCTION_LENGTH = 2000


def validate_prompt(prompt: str) -> str:
    """Validate instruction text for image generation.

    Args:
        prompt: Instruction text (catalog prompt, preset or user draft)

    Returns:
        Validated instruction with surrounding whitespace removed

    Raises:
        ValueError: If instruction is empty, blank, or exceeds 2000 characters
    """
    if not isinstance(prompt, str):
        raise ValueError(f"Prompt must be a string, got {type(prompt).__name__}")

    prompt = prompt.strip()
    if not prompt:
        raise ValueError("Prompt cannot be empty")

    if len(prompt) > MAX_INSTRUCTION_LENGTH:
        raise ValueError(
            f"Prompt exceeds maximum length of {MAX_INSTRUCTION_LENGTH} characters "
            f"(got {len(prompt)})"
        )

    return prompt
