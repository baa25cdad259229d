"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    winning_score: int = Field(
        default=1000,
        ge=100,
        description="Cumulative score that ends the game"
    )
    floor_bid: int = Field(
        default=100,
        ge=0,
        description="Opening bid and the default contract when everybody passes"
    )
    bid_step: int = Field(
        default=10,
        ge=1,
        description="Bids must be a multiple of this value"
    )
    max_bid: int = Field(
        default=360,
        description="Highest bid accepted"
    )
    min_players: int = Field(
        default=2,
        ge=2,
        le=4,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=4,
        ge=2,
        le=4,
        description="Maximum number of seats in a room"
    )
    code_length: int = Field(
        default=6,
        ge=4,
        le=12,
        description="Length of the shareable join code"
    )

    @field_validator('max_bid')
    @classmethod
    def validate_max_bid(cls, v, info):
        """Validate the bid ceiling is not below the floor."""
        floor_bid = info.data.get('floor_bid', 100)
        if v < floor_bid:
            raise ValueError(f'max_bid ({v}) must be >= floor_bid ({floor_bid})')
        return v

    def validate_bid(self, amount: int, current_bid: int, has_bid: bool) -> bool:
        """Check an amount against the floor, the step and the standing bid."""
        if amount % self.bid_step != 0 or amount > self.max_bid:
            return False
        if not has_bid:
            return amount >= self.floor_bid
        return amount > current_bid


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
