"""Extension to language mapping and language families."""

from enum import Enum


EXTENSION_LANGUAGES = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "py": "python",
    "pyw": "python",
    "java": "java",
    "kt": "kotlin",
    "kts": "kotlin",
    "cs": "csharp",
    "go": "go",
    "rs": "rust",
    "rb": "ruby",
    "php": "php",
    "c": "c",
    "cpp": "cpp",
    "cc": "cpp",
    "cxx": "cpp",
    "h": "c",
    "hpp": "cpp",
    "swift": "swift",
    "vue": "vue",
    "svelte": "svelte",
}

UNKNOWN_LANGUAGE = "unknown"


class LanguageFamily(Enum):
    """Which extraction strategy handles a language."""
    BRACE = "brace"        # curly-brace scoped, C-like declarations
    INDENT = "indent"      # indentation scoped blocks
    GENERIC = "generic"    # keyword scan fallback


LANGUAGE_FAMILIES = {
    "typescript": LanguageFamily.BRACE,
    "javascript": LanguageFamily.BRACE,
    "vue": LanguageFamily.BRACE,
    "svelte": LanguageFamily.BRACE,
    "python": LanguageFamily.INDENT,
}


def detect_language(file_path: str) -> str:
    """Return the language tag for a path, judged by its extension only.

    A path without a dot is treated as if the whole basename were the
    extension, so ``Makefile`` maps to ``"unknown"``.
    """
    name = file_path.replace("\\", "/").rsplit("/", 1)[-1]
    ext = name.rsplit(".", 1)[-1].lower()
    return EXTENSION_LANGUAGES.get(ext, UNKNOWN_LANGUAGE)


def language_family(language: str) -> LanguageFamily:
    return LANGUAGE_FAMILIES.get(language, LanguageFamily.GENERIC)
