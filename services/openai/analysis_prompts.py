"""Prompt builders for plant disease analysis."""

def build_system_prompt() -> str:
    """Return the system prompt for the plant analyzer."""
    return (
        "You are an experienced plant pathologist and agronomist. "
        "You are careful and conservative: only name a disease when the visible symptoms support it, "
        "and report a healthy plant when they do not. "
    )


def build_user_prompt() -> str:
    """Return the user prompt that accompanies the plant photo."""
    return (
        "Examine the following plant photo. Identify any disease, pest damage, or nutrient deficiency. "
        "Explain the diagnosis briefly, give practical treatment recommendations, "
        "and estimate your confidence as a number between 0 and 1."
    )
