"""
Pydantic DTOs for cats and users.

Create payloads carry the field constraints; read models mirror what the
services return. Both accept the snake_case field names and the camelCase
wire aliases (``tailLength``, ``catNames``).
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

NAME_MAX_LENGTH = 50


class CreateCatDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    tail_length: float = Field(..., ge=1, allow_inf_nan=False, alias="tailLength")


class CatDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    tail_length: float = Field(..., alias="tailLength")


class CreateUserDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    cat_names: List[str] = Field(default_factory=list, alias="catNames")


class UserDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    cats: List[CatDTO] = Field(default_factory=list)
