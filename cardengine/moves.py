"""Tagged-union move payloads and the per-game move parser."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import InvalidMove


class Move(BaseModel):
    """Base class for every move variant. Variants are discriminated on ``action``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    action: str

    def describe(self) -> str:
        fields = ", ".join(f"{key}={value}" for key, value in self.model_dump().items() if key != "action")
        return f"{self.action}({fields})" if fields else self.action


class PlayCard(Move):
    action: Literal["play_card"] = "play_card"
    card_id: str = Field(min_length=1)


CardIds = Tuple[str, ...]


class MoveParser:
    """Parse raw mappings into one of a closed set of move variants."""

    def __init__(self, *variants: Type[Move]) -> None:
        if len(variants) < 2:
            raise ValueError("A move union needs at least two variants.")
        self.variants: tuple[Type[Move], ...] = variants
        union = Union[variants]  # type: ignore[valid-type]
        self._adapter: TypeAdapter[Any] = TypeAdapter(Annotated[union, Field(discriminator="action")])

    def parse(self, payload: Union[Move, Mapping[str, Any]]) -> Move:
        if isinstance(payload, Move):
            if not isinstance(payload, self.variants):
                raise InvalidMove("unknown_move", f"Move {payload.action!r} is not part of this game.")
            return payload
        try:
            return self._adapter.validate_python(dict(payload))
        except ValidationError as exc:
            raise InvalidMove("malformed_move", _summarize(exc)) from exc
        except (TypeError, ValueError) as exc:
            raise InvalidMove("malformed_move", str(exc)) from exc

    def accepts(self, move: Move) -> bool:
        return isinstance(move, self.variants)


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "move"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)
