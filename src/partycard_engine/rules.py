"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for room and session settings.

    The deck itself (4 suits x 5 ranks) and the card effects are fixed;
    only the surrounding limits are configurable.
    """

    min_players: int = Field(
        default=2,
        ge=2,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=12,
        ge=2,
        description="Maximum number of players allowed in a room"
    )
    room_code_length: int = Field(
        default=4,
        ge=3,
        le=8,
        description="Number of characters in a generated room code"
    )
    room_code_retries: int = Field(
        default=20,
        ge=1,
        description="Attempts to find an unused room code before giving up"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't go below the minimum."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def can_start_with(self, player_count: int) -> bool:
        """Check if a player count is enough to start a game."""
        return player_count >= self.min_players

    def has_seat_for(self, player_count: int) -> bool:
        return player_count < self.max_players


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
