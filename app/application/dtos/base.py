"""Shared base for use-case inputs and API responses."""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

DTOType = TypeVar("DTOType", bound="DTO")


class DTO(BaseModel):
    """
    Immutable DTO that can be read straight off a domain dataclass.

    Responses whose fields mirror their entity use the inherited from_entity;
    the rest override it with their own mapping.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @classmethod
    def from_entity(cls: type[DTOType], entity: Any) -> DTOType:
        return cls.model_validate(entity)
