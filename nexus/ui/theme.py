"""Terminal symbols and styles."""

from __future__ import annotations

from nexus.conversation.state import Role

SYMBOLS: dict[str, str] = {
    "user": "❯",
    "assistant": "●",
    "thinking": "◐",
    "tool": "⚡",
    "success": "✓",
    "error": "✗",
    "warning": "⚠",
    "info": "ℹ",
    "arrow": "→",
    "bullet": "•",
}

# Role -> (symbol key, label, rich style)
ROLE_STYLES: dict[Role, tuple[str, str, str]] = {
    Role.USER: ("user", "You", "bold green"),
    Role.ASSISTANT: ("assistant", "Claude", "bold cyan"),
    Role.TOOL: ("tool", "Tool", "yellow"),
    Role.SYSTEM: ("info", "System", "dim"),
}

THINKING_STYLE = "bold bright_black"
ERROR_STYLE = "red"
MUTED_STYLE = "dim"


def role_label(role: Role) -> str:
    symbol_key, label, _ = ROLE_STYLES[role]
    return f"{SYMBOLS[symbol_key]} {label}"
