"""Row-level change notification as delivered by the realtime channel."""

from typing import Any, Dict, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ChangeEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_type: Literal["INSERT", "UPDATE", "DELETE"] = Field(validation_alias=AliasChoices("eventType", "event", "event_type"))
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
