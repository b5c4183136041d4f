"""Source content models."""
from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass
class IssueRecord:
    """Single issue/question/guidance entry of a source."""
    type: str = "issue"
    content: str = ""
    resolution: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IssueRecord":
        return cls(
            type=data.get("type") or "issue",
            content=data.get("content") or "",
            resolution=data.get("resolution") or "",
        )


@dataclass
class SourceRecord:
    """Logical document (knowledge card) whose sections get chunked."""
    id: str
    title: str = ""
    content: Optional[str] = None
    sections: dict[str, str] = field(default_factory=dict)
    # Raw JSON string or already decoded list of issue dicts
    issues_resolutions: Union[str, list, None] = None
    status: str = "active"
