"""Code-fence language mapping.

Notion only accepts a fixed set of code block language identifiers.
:func:`normalize_language` maps a fence info string (``py``, ``Python3``,
``c++``) to one of them, falling back to ``"plain text"``.
"""

from __future__ import annotations

import re

NOTION_LANGUAGES: frozenset[str] = frozenset({
    "abap", "arduino", "bash", "basic", "c", "clojure", "coffeescript",
    "c++", "c#", "css", "dart", "diff", "docker", "elixir", "elm",
    "erlang", "flow", "fortran", "f#", "gherkin", "glsl", "go", "graphql",
    "groovy", "haskell", "html", "java", "javascript", "json", "julia",
    "kotlin", "latex", "less", "lisp", "livescript", "lua", "makefile",
    "markdown", "markup", "matlab", "mermaid", "nix", "objective-c",
    "ocaml", "pascal", "perl", "php", "plain text", "powershell",
    "prolog", "protobuf", "python", "r", "reason", "ruby", "rust",
    "sass", "scala", "scheme", "scss", "shell", "sql", "swift",
    "typescript", "vb.net", "verilog", "vhdl", "visual basic",
    "webassembly", "xml", "yaml", "java/c/c++/c#",
})

LANGUAGE_ALIASES: dict[str, str] = {
    "py": "python",
    "js": "javascript",
    "ts": "typescript",
    "sh": "shell",
    "zsh": "shell",
    "console": "shell",
    "rb": "ruby",
    "rs": "rust",
    "yml": "yaml",
    "md": "markdown",
    "cs": "c#",
    "csharp": "c#",
    "cpp": "c++",
    "objc": "objective-c",
    "dockerfile": "docker",
    "make": "makefile",
    "tex": "latex",
    "htm": "html",
    "jsx": "javascript",
    "tsx": "typescript",
    "jsonc": "json",
    "vb": "visual basic",
    "fs": "f#",
    "fsharp": "f#",
    "golang": "go",
    "hs": "haskell",
    "kt": "kotlin",
    "pl": "perl",
    "ps1": "powershell",
    "wasm": "webassembly",
    "text": "plain text",
    "txt": "plain text",
    "plaintext": "plain text",
}


def normalize_language(info: str | None) -> str:
    """Map a code fence info string to a Notion language name."""
    if not info or not info.strip():
        return "plain text"
    lang = info.strip().lower().split()[0]
    if lang in NOTION_LANGUAGES:
        return lang
    if lang in LANGUAGE_ALIASES:
        return LANGUAGE_ALIASES[lang]
    # "python3" -> "python"
    stripped = re.sub(r"\d+$", "", lang)
    if stripped in NOTION_LANGUAGES:
        return stripped
    return LANGUAGE_ALIASES.get(stripped, "plain text")
