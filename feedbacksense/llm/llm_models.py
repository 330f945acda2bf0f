"""
Context window sizes for the LLM models commonly used for classification.
"""

from typing import Dict, Optional


class Model:
    def __init__(self, name: str, context_length: int, litellm_name: str = ""):
        self.name = name
        self.context_length = context_length
        self.litellm_name = litellm_name

    @property
    def max_prompt_tokens(self) -> int:
        """Half of the context window is reserved for the prompt."""
        return self.context_length // 2


class Models:
    # Google models
    google_gla_gemini_1_5_flash = Model(
        "google-gla:gemini-1.5-flash", 1_000_000, "gemini/gemini-1.5-flash"
    )
    google_gla_gemini_1_5_pro = Model(
        "google-gla:gemini-1.5-pro", 2_000_000, "gemini/gemini-1.5-pro"
    )
    google_gla_gemini_2_0_flash = Model(
        "google-gla:gemini-2.0-flash", 1_000_000, "gemini/gemini-2.0-flash"
    )
    google_gla_gemini_2_5_flash = Model(
        "google-gla:gemini-2.5-flash", 1_000_000, "gemini/gemini-2.5-flash"
    )
    google_gla_gemini_2_5_flash_lite = Model(
        "google-gla:gemini-2.5-flash-lite", 1_000_000, "gemini/gemini-2.5-flash-lite"
    )

    # OpenAI models
    openai_gpt_4o = Model("openai:gpt-4o", 128_000, "gpt-4o")
    openai_gpt_4o_mini = Model("openai:gpt-4o-mini", 128_000, "gpt-4o-mini")
    openai_gpt_4_1_mini = Model("openai:gpt-4.1-mini", 1_047_576, "gpt-4.1-mini")

    # Anthropic models
    anthropic_claude_3_5_haiku_latest = Model(
        "anthropic:claude-3-5-haiku-latest", 200_000, "claude-3-5-haiku-latest"
    )
    anthropic_claude_sonnet_4_5 = Model(
        "anthropic:claude-sonnet-4-5", 200_000, "claude-sonnet-4-5"
    )

    # Groq models
    groq_llama_3_3_70b_versatile = Model(
        "groq:llama-3.3-70b-versatile", 128_000, "groq/llama-3.3-70b-versatile"
    )


# Conservative window for models not listed above
DEFAULT_CONTEXT_LENGTH = 32_000


def _registry() -> Dict[str, Model]:
    return {
        value.name: value
        for value in vars(Models).values()
        if isinstance(value, Model)
    }


def get_model(model_name: str) -> Model:
    """Look up a known model, or describe an unknown one conservatively."""
    known: Optional[Model] = _registry().get(model_name)
    if known is not None:
        return known

    _, _, bare_name = model_name.partition(":")
    return Model(model_name, DEFAULT_CONTEXT_LENGTH, bare_name or model_name)
