"""Raw feed entry representation before extraction."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RawEntry(BaseModel):
    """
    One feed entry as a generic tree: dicts of element/attribute names,
    lists for repeated elements, strings for text. No fixed schema; read it
    through the accessor helpers in connectors.placsp.parsers.
    """

    model_config = ConfigDict(extra="allow")

    data: dict[str, Any] = Field(default_factory=dict)
