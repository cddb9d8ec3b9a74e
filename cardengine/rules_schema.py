"""Validation schema for seats and per-game rule settings."""

from __future__ import annotations

from typing import Any, Iterable, List, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class PlayerSpec(BaseModel):
    """One seat at the table as supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    seat_position: int = Field(ge=0, validation_alias=AliasChoices("seat_position", "seat"))
    display_name: str = Field(min_length=1, validation_alias=AliasChoices("display_name", "name"))
    is_ai: bool = False


class GameSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    seed: Optional[int] = Field(None, description="Seed for deterministic deals and reshuffles.")


class BlackjackSettings(GameSettings):
    deck_count: int = Field(6, ge=1, le=8, description="Number of 52-card decks in the shoe.")
    dealer_hits_soft_17: bool = Field(True, description="Whether the dealer draws on a soft 17.")
    blackjack_payout: Literal["3:2", "6:5"] = Field("3:2", description="Payout ratio for a natural.")
    double_down_rules: Literal["any_two_cards", "nine_ten_eleven"] = Field(
        "any_two_cards",
        description="Which two-card totals may double down.",
    )
    starting_chips: int = Field(1000, ge=0)
    min_bet: int = Field(10, ge=1)
    max_bet: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_bet_limits(self) -> "BlackjackSettings":
        if self.max_bet is not None and self.max_bet < self.min_bet:
            raise ValueError("max_bet must not be below min_bet.")
        return self


class BridgeSettings(GameSettings):
    bidding_system: str = Field("standard_american", description="Informational; bidding is not system-checked.")
    hand_limit: Optional[int] = Field(None, ge=1, description="End the session after this many scored hands.")


class CanastaSettings(GameSettings):
    minimum_meld_score: int = Field(50, ge=0, description="Card points required for a seat's first meld.")
    wildcard_limit: int = Field(2, ge=0, description="Maximum wildcards in a single meld.")
    winning_score: int = Field(5000, ge=1)
    going_out_bonus: int = Field(100, ge=0)
    red_three_bonus: int = Field(100, ge=0)


class CribbageSettings(GameSettings):
    winning_score: int = Field(121, ge=1)


class HeartsSettings(GameSettings):
    losing_score: int = Field(100, ge=1, description="The session ends once any seat reaches this total.")
    shoot_the_moon: bool = Field(True, description="Invert scoring when one seat takes every point.")


class PinochleSettings(GameSettings):
    minimum_bid: int = Field(20, ge=1)
    maximum_bid: int = Field(50, ge=1, description="Upper bound used when listing bid moves.")
    winning_score: int = Field(150, ge=1)

    @field_validator("maximum_bid")
    @classmethod
    def maximum_above_minimum(cls, value: int, info: Any) -> int:
        minimum = info.data.get("minimum_bid", 20)
        if value < minimum:
            raise ValueError("maximum_bid must not be below minimum_bid.")
        return value


PlayerInput = Union[PlayerSpec, Mapping[str, Any]]


def parse_players(players: Iterable[PlayerInput], *, min_players: int, max_players: int) -> List[PlayerSpec]:
    """Validate seats and return them ordered by seat position."""
    specs = [player if isinstance(player, PlayerSpec) else PlayerSpec.model_validate(player) for player in players]
    if not min_players <= len(specs) <= max_players:
        raise ValueError(f"Expected {min_players}-{max_players} players, got {len(specs)}.")
    specs.sort(key=lambda spec: spec.seat_position)
    positions = [spec.seat_position for spec in specs]
    if positions != list(range(len(specs))):
        raise ValueError(f"Seat positions must be 0..{len(specs) - 1} without gaps, got {positions}.")
    return specs
