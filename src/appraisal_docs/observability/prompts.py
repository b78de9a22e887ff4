"""Prompt registry — versioned prompts for LLM document formatting.

Keeps prompt text out of pipeline code so each generation can record the
exact prompt version it used.
"""

DOCUMENT_FORMATTER_PROMPT_V1 = """\
You are a document formatter. Your task is to fill the provided template with the appraisal data.
DO NOT modify, change, or add to the appraisal content - only format it according to the template.

TEMPLATE:
{template}

APPRAISAL DATA:
{data}

FORMAT INSTRUCTIONS:
1. Replace each placeholder (e.g. {{{{placeholder_name}}}}) with its corresponding value from the data
2. Maintain all markdown formatting in the template
3. If a placeholder has no corresponding data, leave it empty (do not remove it)
4. Do not add any commentary or additional content
5. Return ONLY the filled template with no additional text before or after
"""

# Registry: name → (version, prompt_text)
_PROMPT_REGISTRY: dict[str, tuple[str, str]] = {
    "document_formatter": ("v1", DOCUMENT_FORMATTER_PROMPT_V1),
}


def get_active_prompt(name: str) -> str:
    """Return the active prompt text for a given prompt name.

    Raises:
        KeyError: If prompt name is not registered.
    """
    if name not in _PROMPT_REGISTRY:
        raise KeyError(f"Unknown prompt: {name!r}. Available: {list(_PROMPT_REGISTRY.keys())}")
    return _PROMPT_REGISTRY[name][1]


def get_prompt_version(name: str) -> str:
    """Return the version tag for a given prompt name."""
    if name not in _PROMPT_REGISTRY:
        raise KeyError(f"Unknown prompt: {name!r}. Available: {list(_PROMPT_REGISTRY.keys())}")
    return _PROMPT_REGISTRY[name][0]


def list_prompts() -> list[dict[str, str]]:
    """List all registered prompts with name and version."""
    return [{"name": name, "version": ver} for name, (ver, _) in _PROMPT_REGISTRY.items()]
