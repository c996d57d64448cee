"""Table descriptions and the row and request types shared by both engines."""

from typing import Any, Dict, List, NamedTuple, Tuple, Union

from pydantic import BaseModel, ConfigDict, model_validator

Scalar = Union[bool, int, float, str, None]
Row = Dict[str, Scalar]


class TableSchema(BaseModel):
    """Static description of one table: its name and column sets."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: Tuple[str, ...]
    key_columns: Tuple[str, ...]
    mandatory_columns: Tuple[str, ...] = ()

    @model_validator(mode="after")
    def column_sets_must_be_consistent(self) -> "TableSchema":
        if not self.key_columns:
            raise ValueError(f"Table {self.name} must declare at least one key column")
        unknown_keys = [c for c in self.key_columns if c not in self.columns]
        if unknown_keys:
            raise ValueError(f"Key columns {unknown_keys} are not columns of table {self.name}")
        unknown_mandatory = [c for c in self.mandatory_columns if c not in self.columns]
        if unknown_mandatory:
            raise ValueError(
                f"Mandatory columns {unknown_mandatory} are not columns of table {self.name}"
            )
        return self


class Request(NamedTuple):
    """One entry of the relational engine's request history."""

    statement: str
    parameters: List[Any]
