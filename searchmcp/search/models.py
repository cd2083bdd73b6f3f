"""Value types passed between the search components."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from mcp.types import TextContent


@dataclass(frozen=True)
class SearchRecord:
    """A single search hit. ``title`` and ``url`` are always non-empty."""
    title: str
    url: str
    snippet: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "url": self.url, "snippet": self.snippet}


@dataclass(frozen=True)
class ToolResult:
    """Result of a ``tools/call``: text content blocks plus optional metadata."""
    texts: Tuple[str, ...]
    meta: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @classmethod
    def from_text(cls, text: str, meta: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(texts=(text,), meta=meta)

    @property
    def text(self) -> str:
        """All text blocks joined together."""
        return "".join(self.texts)

    def to_dict(self) -> Dict[str, Any]:
        """Render the MCP ``CallToolResult`` payload."""
        result: Dict[str, Any] = {
            "content": [
                TextContent(type="text", text=text).model_dump(exclude_none=True)
                for text in self.texts
            ],
        }
        if self.meta is not None:
            result["_meta"] = dict(self.meta)
        return result
